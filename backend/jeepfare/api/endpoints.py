"""API endpoints for route filtering and fare calculation."""

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from jeepfare.errors import CheckpointNotFound, FareUnavailable, InvalidLocation, UnknownCheckpoint
from jeepfare.models import DestinationInfo, FareQuery, FareResult
from jeepfare.services.engine import FareAndRouteEngine

router = APIRouter(prefix="/api", tags=["Fare Calculation"])


class FareResponse(FareResult):
    """Fare result with display strings for the client."""
    formatted_base_fare: str
    formatted_final_fare: str
    formatted_savings: Optional[str] = None


class RouteResponse(BaseModel):
    route_id: int
    name: str
    origin: str
    destination: str
    checkpoints: List[str]


class MatrixEntry(BaseModel):
    from_checkpoint: str
    to_checkpoint: str
    fare: Decimal


def get_engine(request: Request) -> FareAndRouteEngine:
    """Engine constructed once at startup and stored on the application."""
    return request.app.state.engine


@router.post("/calculate-fare", response_model=FareResponse)
def calculate_fare(
    query: FareQuery,
    engine: FareAndRouteEngine = Depends(get_engine)
) -> FareResponse:
    """
    Calculate the fare between two checkpoints.

    The remote fare matrix is consulted first; the local fallback answers
    when it is unreachable.

    Raises:
        HTTPException: 404 for unknown checkpoints, 503 when no fare could be
            determined, 400 for invalid discounts
    """
    try:
        result = engine.compute_fare(
            query.from_checkpoint,
            query.to_checkpoint,
            query.route_id,
            discount_type=query.discount_type,
            discount_percentage=query.discount_percentage,
        )
    except (CheckpointNotFound, UnknownCheckpoint, InvalidLocation) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except FareUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return FareResponse(
        **result.model_dump(),
        formatted_base_fare=engine.format_currency(result.base_fare),
        formatted_final_fare=engine.format_currency(result.final_fare),
        formatted_savings=(
            engine.format_currency(result.savings) if result.savings is not None else None
        ),
    )


@router.get("/destinations", response_model=DestinationInfo)
def get_destinations(
    pickup: str = Query(..., min_length=1),
    direction_hint: Optional[str] = None,
    exclude: Optional[str] = None,
    search: Optional[str] = None,
    next_stop_count: int = Query(2, ge=0),
    engine: FareAndRouteEngine = Depends(get_engine)
) -> DestinationInfo:
    """Destinations reachable from a pickup on its resolved route."""
    try:
        return engine.destination_info(
            pickup,
            direction_hint,
            exclude=exclude,
            search=search,
            next_stop_count=next_stop_count,
        )
    except CheckpointNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/routes", response_model=List[RouteResponse])
def get_routes(engine: FareAndRouteEngine = Depends(get_engine)):
    """All route sequences with their checkpoints in travel order."""
    return [
        RouteResponse(
            route_id=route.route_id,
            name=route.name,
            origin=route.origin,
            destination=route.destination,
            checkpoints=list(route.names),
        )
        for route in engine.reference.routes
    ]


@router.get("/fare-matrix", response_model=List[MatrixEntry])
def get_fare_matrix(engine: FareAndRouteEngine = Depends(get_engine)):
    """Local fallback fares between every pair of the legacy sequence."""
    return [
        MatrixEntry(
            from_checkpoint=segment.from_checkpoint,
            to_checkpoint=segment.to_checkpoint,
            fare=segment.fare,
        )
        for segment in engine.local_fare_matrix()
    ]


@router.get("/health")
def health_check(engine: FareAndRouteEngine = Depends(get_engine)):
    """Health check endpoint including reference data status."""
    return {
        "status": "healthy",
        "service": "Jeepney Fare Engine",
        "routes_count": len(engine.reference.routes),
        "fare_segments_count": len(engine.reference.segments),
    }
