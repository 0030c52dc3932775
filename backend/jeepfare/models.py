"""Models for the jeepney fare and route engine."""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Quantize a value to currency precision (2 decimals, half up)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class DiscountType(str, Enum):
    """Rider categories entitled to a percentage fare reduction."""
    STUDENT = "Student"
    PWD = "PWD"
    SENIOR_CITIZEN = "Senior Citizen"

    @property
    def default_percentage(self) -> Decimal:
        return DEFAULT_DISCOUNT_PERCENTAGES[self]


DEFAULT_DISCOUNT_PERCENTAGES: Dict[DiscountType, Decimal] = {
    DiscountType.STUDENT: Decimal("20"),
    DiscountType.PWD: Decimal("20"),
    DiscountType.SENIOR_CITIZEN: Decimal("30"),
}


class FareMethod(str, Enum):
    """Which path produced the base fare."""
    REMOTE_MATRIX = "remote_matrix"
    LOCAL_FALLBACK = "local_fallback"


class Checkpoint(BaseModel):
    """A named stop at a fixed position of one route direction."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    sequence_index: int = Field(..., ge=0)
    id: int = Field(..., ge=1, description="ID used by the remote fare matrix")


class RouteSequence(BaseModel):
    """Ordered checkpoints of one traversal direction."""
    model_config = ConfigDict(frozen=True)

    route_id: int = Field(..., ge=1)
    name: str
    checkpoints: Tuple[Checkpoint, ...]

    @field_validator("checkpoints")
    @classmethod
    def validate_order(cls, v):
        if len(v) < 2:
            raise ValueError("A route needs at least two checkpoints")
        names = [checkpoint.name for checkpoint in v]
        if len(set(names)) != len(names):
            raise ValueError("Checkpoint names must be unique within a route")
        if [checkpoint.sequence_index for checkpoint in v] != list(range(len(v))):
            raise ValueError("Checkpoint sequence indices must run 0..N-1")
        return v

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(checkpoint.name for checkpoint in self.checkpoints)

    @property
    def origin(self) -> str:
        return self.checkpoints[0].name

    @property
    def destination(self) -> str:
        return self.checkpoints[-1].name

    def index_of(self, name: str) -> Optional[int]:
        for checkpoint in self.checkpoints:
            if checkpoint.name == name:
                return checkpoint.sequence_index
        return None

    def checkpoint_id(self, name: str) -> Optional[int]:
        for checkpoint in self.checkpoints:
            if checkpoint.name == name:
                return checkpoint.id
        return None


class FareSegment(BaseModel):
    """Fare between two checkpoints of the legacy fare table."""
    model_config = ConfigDict(frozen=True)

    from_checkpoint: str
    to_checkpoint: str
    fare: Decimal = Field(..., ge=0)

    @field_validator("fare")
    @classmethod
    def quantize_fare(cls, v):
        return to_money(v)


class ReferenceData(BaseModel):
    """
    Static route and fare configuration.
    Built once at startup and passed to the engine explicitly.
    """
    model_config = ConfigDict(frozen=True)

    routes: Tuple[RouteSequence, ...]
    canonical_sequence: Tuple[str, ...]
    segments: Tuple[FareSegment, ...]
    base_fare: Decimal = Field(Decimal("13.00"), ge=0)
    incremental_fare: Decimal = Field(Decimal("12.00"), ge=0)

    @field_validator("base_fare", "incremental_fare")
    @classmethod
    def quantize_amount(cls, v):
        return to_money(v)

    @field_validator("canonical_sequence")
    @classmethod
    def validate_canonical_sequence(cls, v):
        if len(set(v)) != len(v):
            raise ValueError("Canonical sequence names must be unique")
        return v

    @model_validator(mode="after")
    def validate_route_ids(self):
        route_ids = [route.route_id for route in self.routes]
        if len(set(route_ids)) != len(route_ids):
            raise ValueError("Route IDs must be unique")
        return self

    @model_validator(mode="after")
    def validate_segment_pairs(self):
        pairs = [frozenset((s.from_checkpoint, s.to_checkpoint)) for s in self.segments]
        if len(set(pairs)) != len(pairs):
            raise ValueError("Each checkpoint pair may have only one segment fare")
        return self

    def route(self, route_id: int) -> Optional[RouteSequence]:
        for route in self.routes:
            if route.route_id == route_id:
                return route
        return None

    def segment_fare(self, from_checkpoint: str, to_checkpoint: str) -> Optional[Decimal]:
        """Direct segment fare in either direction, or None."""
        for segment in self.segments:
            if segment.from_checkpoint == from_checkpoint and segment.to_checkpoint == to_checkpoint:
                return segment.fare
        for segment in self.segments:
            if segment.from_checkpoint == to_checkpoint and segment.to_checkpoint == from_checkpoint:
                return segment.fare
        return None


class FareQuery(BaseModel):
    """Request model for a single fare calculation."""
    from_checkpoint: str = Field(..., min_length=1, description="Pickup checkpoint name")
    to_checkpoint: str = Field(..., min_length=1, description="Destination checkpoint name")
    route_id: Optional[int] = Field(None, ge=1, description="Direction selector")
    discount_type: Optional[DiscountType] = None
    discount_percentage: Optional[Decimal] = Field(None, ge=0, le=100)


class FareResult(BaseModel):
    """Outcome of a fare calculation."""
    model_config = ConfigDict(frozen=True)

    from_checkpoint: str
    to_checkpoint: str
    route_id: Optional[int] = None
    base_fare: Decimal
    discount_type: Optional[DiscountType] = None
    discount_percentage: Optional[Decimal] = None
    final_fare: Decimal
    savings: Optional[Decimal] = None
    method: FareMethod


class DestinationInfo(BaseModel):
    """Destinations reachable from a pickup, in travel order."""
    pickup: str
    route_id: int
    route_name: str
    destinations: List[str]
    next_stops: List[str]
    available_count: int


class RemoteFareInfo(BaseModel):
    """fare_info payload returned by the fare matrix service."""
    model_config = ConfigDict(extra="ignore")

    fare_amount: Decimal = Field(..., ge=0)
    from_checkpoint_id: Optional[int] = None
    to_checkpoint_id: Optional[int] = None
    route_name: Optional[str] = None
    calculation_method: Optional[str] = None


class RemoteFareResponse(BaseModel):
    """Envelope returned by GET /fare-matrix/fare/{from}/{to}."""
    model_config = ConfigDict(extra="ignore")

    status: str
    fare_info: Optional[RemoteFareInfo] = None
    message: Optional[str] = None
