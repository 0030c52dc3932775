"""Database models and setup for the route and fare reference data."""

import logging
import os
from decimal import Decimal
from typing import Dict, Optional, Tuple

from sqlalchemy import (
    Column, ForeignKey, Integer, String, UniqueConstraint, and_, create_engine, or_
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from jeepfare.models import Checkpoint, FareSegment, ReferenceData, RouteSequence, to_money
from jeepfare import reference_data

logger = logging.getLogger(__name__)

Base = declarative_base()

BASE_FARE_KEY = "base_fare"
INCREMENTAL_FARE_KEY = "incremental_fare"


def _to_centavos(amount) -> int:
    return int(to_money(amount) * 100)


def _from_centavos(centavos: int) -> Decimal:
    return to_money(Decimal(centavos) / 100)


class RouteDB(Base):
    """One traversal direction of a jeepney route."""
    __tablename__ = "routes"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)

    def __repr__(self):
        return f"<Route(id={self.id}, name={self.name})>"


class RouteCheckpointDB(Base):
    """Checkpoint at a fixed position of a route; id is the fare matrix ID."""
    __tablename__ = "route_checkpoints"

    id = Column(Integer, primary_key=True)
    route_id = Column(Integer, ForeignKey("routes.id"), nullable=False)
    name = Column(String, nullable=False)
    sequence_index = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("route_id", "name", name="_route_name_uc"),
        UniqueConstraint("route_id", "sequence_index", name="_route_index_uc"),
    )

    def __repr__(self):
        return f"<RouteCheckpoint(id={self.id}, route_id={self.route_id}, name={self.name})>"


class FallbackCheckpointDB(Base):
    """Position of a checkpoint in the legacy fallback sequence."""
    __tablename__ = "fallback_sequence"

    position = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)


class FareSegmentDB(Base):
    """Legacy fare between two checkpoints, stored in centavos."""
    __tablename__ = "fare_segments"

    id = Column(Integer, primary_key=True, index=True)
    from_checkpoint = Column(String, nullable=False)
    to_checkpoint = Column(String, nullable=False)
    fare_centavos = Column(Integer, nullable=False)
    description = Column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("from_checkpoint", "to_checkpoint", name="_segment_pair_uc"),
    )

    def __repr__(self):
        return (
            f"<FareSegment(from={self.from_checkpoint}, to={self.to_checkpoint}, "
            f"fare_centavos={self.fare_centavos})>"
        )


class SystemConfigDB(Base):
    """Database model for storing system configuration."""
    __tablename__ = "system_config"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, unique=True, nullable=False)
    value = Column(String, nullable=False)
    description = Column(String, nullable=True)

    def __repr__(self):
        return f"<SystemConfig(key={self.key}, value={self.value})>"


class DatabaseManager:
    """Manager class for reference data operations."""

    def __init__(self, database_url: Optional[str] = None):
        """Initialize database connection."""
        self.database_url = database_url or os.getenv(
            "DATABASE_URL",
            "sqlite:///./jeepney_reference.db"
        )

        connect_args = {"check_same_thread": False} if "sqlite" in self.database_url else {}
        self.engine = create_engine(self.database_url, connect_args=connect_args)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

        Base.metadata.create_all(bind=self.engine)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    def init_default_reference_data(self):
        """Seed routes, checkpoints, legacy fares and config if the store is empty."""
        session = self.get_session()
        try:
            if session.query(RouteDB).count() == 0:
                for row in reference_data.default_route_rows():
                    session.add(RouteDB(id=row["route_id"], name=row["name"]))
                    for index, name in enumerate(row["checkpoints"]):
                        session.add(RouteCheckpointDB(
                            id=row["first_id"] + index,
                            route_id=row["route_id"],
                            name=name,
                            sequence_index=index,
                        ))
                session.commit()
                logger.info("Initialized %d default routes", len(reference_data.default_route_rows()))

            if session.query(FallbackCheckpointDB).count() == 0:
                for position, name in enumerate(reference_data.CANONICAL_SEQUENCE):
                    session.add(FallbackCheckpointDB(position=position, name=name))
                for from_checkpoint, to_checkpoint, fare in reference_data.LEGACY_SEGMENT_FARES:
                    session.add(FareSegmentDB(
                        from_checkpoint=from_checkpoint,
                        to_checkpoint=to_checkpoint,
                        fare_centavos=_to_centavos(Decimal(fare)),
                        description=f"{from_checkpoint} to {to_checkpoint}",
                    ))
                session.commit()
                logger.info(
                    "Initialized %d legacy fare segments",
                    len(reference_data.LEGACY_SEGMENT_FARES),
                )

            defaults = [
                (BASE_FARE_KEY, reference_data.DEFAULT_BASE_FARE,
                 "Minimum fare charged once per trip"),
                (INCREMENTAL_FARE_KEY, reference_data.DEFAULT_INCREMENTAL_FARE,
                 "Fare added per segment missing from the legacy table"),
            ]
            for key, value, description in defaults:
                if not session.query(SystemConfigDB).filter_by(key=key).first():
                    session.add(SystemConfigDB(key=key, value=str(value), description=description))
            session.commit()
        finally:
            session.close()

    def load_reference_data(self) -> ReferenceData:
        """Build the immutable reference data object from the datastore."""
        session = self.get_session()
        try:
            routes = []
            for route in session.query(RouteDB).order_by(RouteDB.id).all():
                rows = (
                    session.query(RouteCheckpointDB)
                    .filter_by(route_id=route.id)
                    .order_by(RouteCheckpointDB.sequence_index)
                    .all()
                )
                routes.append(RouteSequence(
                    route_id=route.id,
                    name=route.name,
                    checkpoints=tuple(
                        Checkpoint(name=row.name, sequence_index=row.sequence_index, id=row.id)
                        for row in rows
                    ),
                ))

            canonical = tuple(
                row.name
                for row in session.query(FallbackCheckpointDB)
                .order_by(FallbackCheckpointDB.position).all()
            )
            segments = tuple(
                FareSegment(
                    from_checkpoint=row.from_checkpoint,
                    to_checkpoint=row.to_checkpoint,
                    fare=_from_centavos(row.fare_centavos),
                )
                for row in session.query(FareSegmentDB).order_by(FareSegmentDB.id).all()
            )
        finally:
            session.close()

        base_fare = self.get_config_value(BASE_FARE_KEY)
        incremental_fare = self.get_config_value(INCREMENTAL_FARE_KEY)
        return ReferenceData(
            routes=tuple(routes),
            canonical_sequence=canonical,
            segments=segments,
            base_fare=Decimal(base_fare) if base_fare else reference_data.DEFAULT_BASE_FARE,
            incremental_fare=(
                Decimal(incremental_fare) if incremental_fare
                else reference_data.DEFAULT_INCREMENTAL_FARE
            ),
        )

    def get_all_segment_fares(self) -> Dict[Tuple[str, str], Decimal]:
        """Retrieve all legacy segment fares."""
        session = self.get_session()
        try:
            return {
                (row.from_checkpoint, row.to_checkpoint): _from_centavos(row.fare_centavos)
                for row in session.query(FareSegmentDB).all()
            }
        finally:
            session.close()

    def get_fallback_sequence(self) -> list:
        """Checkpoint names of the legacy fallback sequence, in order."""
        session = self.get_session()
        try:
            return [
                row.name
                for row in session.query(FallbackCheckpointDB)
                .order_by(FallbackCheckpointDB.position).all()
            ]
        finally:
            session.close()

    def update_segment_fare(self, from_checkpoint: str, to_checkpoint: str, new_fare) -> Decimal:
        """
        Update or create a legacy segment fare.

        A pair has one row whichever way it was stored; updating B -> A
        rewrites an existing A -> B row.
        """
        fare = to_money(new_fare)
        if fare < 0:
            raise ValueError("Fare must not be negative")

        session = self.get_session()
        try:
            row = session.query(FareSegmentDB).filter(or_(
                and_(FareSegmentDB.from_checkpoint == from_checkpoint,
                     FareSegmentDB.to_checkpoint == to_checkpoint),
                and_(FareSegmentDB.from_checkpoint == to_checkpoint,
                     FareSegmentDB.to_checkpoint == from_checkpoint),
            )).first()

            if row:
                row.fare_centavos = _to_centavos(fare)
            else:
                session.add(FareSegmentDB(
                    from_checkpoint=from_checkpoint,
                    to_checkpoint=to_checkpoint,
                    fare_centavos=_to_centavos(fare),
                    description=f"{from_checkpoint} to {to_checkpoint}",
                ))

            session.commit()
            return fare
        finally:
            session.close()

    def get_config_value(self, key: str) -> Optional[str]:
        """Get a configuration value by key."""
        session = self.get_session()
        try:
            config = session.query(SystemConfigDB).filter_by(key=key).first()
            return config.value if config else None
        finally:
            session.close()

    def set_config_value(self, key: str, value: str):
        """Create or overwrite a configuration value."""
        session = self.get_session()
        try:
            config = session.query(SystemConfigDB).filter_by(key=key).first()
            if config:
                config.value = value
            else:
                session.add(SystemConfigDB(key=key, value=value))
            session.commit()
        finally:
            session.close()
