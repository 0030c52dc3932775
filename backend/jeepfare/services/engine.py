"""Facade exposing route filtering and fare computation to UI callers."""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from jeepfare.config import Settings
from jeepfare.database import DatabaseManager
from jeepfare.models import DestinationInfo, DiscountType, FareResult, FareSegment, ReferenceData, to_money
from jeepfare.reference_data import default_reference_data
from jeepfare.services.fare_calculator import FareCalculator, LocalFareCalculator
from jeepfare.services.fare_matrix_client import DisabledFareMatrix, FareMatrixClient, FareMatrixLookup
from jeepfare.services.route_resolver import DEFAULT_NEXT_STOP_COUNT, DestinationFilter, RouteSequenceResolver

logger = logging.getLogger(__name__)


def format_currency(amount, symbol: str = "₱") -> str:
    """Format an amount for display, e.g. ₱1,234.50."""
    amount = to_money(amount)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


class FareAndRouteEngine:
    """
    Single entry point for the mobile and admin clients.

    All state is the immutable reference data plus the remote lookup handed
    in at construction, so one instance can serve concurrent queries.
    """

    def __init__(self, reference: ReferenceData, remote: FareMatrixLookup,
                 currency_symbol: str = "₱"):
        self.reference = reference
        self.currency_symbol = currency_symbol
        self.resolver = RouteSequenceResolver(reference.routes)
        self.local = LocalFareCalculator(reference)
        self.calculator = FareCalculator(reference, remote, self.local)

    def destination_info(self, pickup: str, direction_hint: Optional[str] = None,
                         exclude: Optional[str] = None, search: Optional[str] = None,
                         next_stop_count: int = DEFAULT_NEXT_STOP_COUNT) -> DestinationInfo:
        route, pickup_index = self.resolver.resolve(pickup, direction_hint)
        destinations = DestinationFilter(route, pickup_index, exclude=exclude or pickup, search=search)
        return DestinationInfo(
            pickup=pickup,
            route_id=route.route_id,
            route_name=route.name,
            destinations=destinations.destinations,
            next_stops=destinations.next_stops(next_stop_count),
            available_count=destinations.available_count,
        )

    def resolve_destinations(self, pickup: str, direction_hint: Optional[str] = None) -> List[str]:
        """Checkpoints reachable from pickup, in travel order."""
        return self.destination_info(pickup, direction_hint).destinations

    def compute_fare(self, from_checkpoint: str, to_checkpoint: str,
                     route_id: Optional[int] = None,
                     discount_type: Optional[DiscountType] = None,
                     discount_percentage: Optional[Decimal] = None) -> FareResult:
        return self.calculator.calculate(
            from_checkpoint, to_checkpoint, route_id,
            discount_type=discount_type,
            discount_percentage=discount_percentage,
        )

    def format_currency(self, amount) -> str:
        return format_currency(amount, self.currency_symbol)

    def local_fare_matrix(self) -> List[FareSegment]:
        return self.local.fare_matrix()


def load_reference_data(db_manager: DatabaseManager) -> ReferenceData:
    """Reference data from the datastore, or the embedded tables if it cannot be read."""
    try:
        db_manager.init_default_reference_data()
        return db_manager.load_reference_data()
    except SQLAlchemyError as e:
        logger.warning("Could not load reference data from database, using embedded tables: %s", e)
        return default_reference_data()


def build_engine(settings: Settings, db_manager: Optional[DatabaseManager] = None,
                 remote: Optional[FareMatrixLookup] = None) -> FareAndRouteEngine:
    """Construct the engine once at startup."""
    db_manager = db_manager or DatabaseManager(settings.DATABASE_URL)
    reference = load_reference_data(db_manager)

    if remote is None:
        if settings.FARE_API_ENABLED:
            remote = FareMatrixClient(settings.FARE_API_BASE_URL, timeout=settings.FARE_API_TIMEOUT)
        else:
            remote = DisabledFareMatrix()

    return FareAndRouteEngine(reference, remote, currency_symbol=settings.CURRENCY_SYMBOL)
