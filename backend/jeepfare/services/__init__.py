"""Services package for the jeepney fare engine."""

from .engine import FareAndRouteEngine, build_engine, format_currency
from .fare_calculator import FareCalculator, LocalFareCalculator, apply_discount
from .fare_matrix_client import FareMatrixClient, RemoteSuccess, RemoteUnavailable
from .route_resolver import DestinationFilter, RouteSequenceResolver

__all__ = [
    'FareAndRouteEngine',
    'build_engine',
    'format_currency',
    'FareCalculator',
    'LocalFareCalculator',
    'apply_discount',
    'FareMatrixClient',
    'RemoteSuccess',
    'RemoteUnavailable',
    'DestinationFilter',
    'RouteSequenceResolver',
]
