"""Embedded route, checkpoint and legacy fare tables."""

from decimal import Decimal
from typing import Dict, List, Sequence, Tuple

from jeepfare.models import Checkpoint, FareSegment, ReferenceData, RouteSequence

ROUTE_1_NAME = "SM Epza → SM Dasmariñas"
ROUTE_2_NAME = "SM Dasmariñas → SM Epza"

ROUTE_1_CHECKPOINTS: List[str] = [
    "SM Epza", "Robinson Tejero", "Malabon", "Riverside", "Lancaster New City",
    "Pasong Camachile I", "Open Canal", "Santiago", "Bella Vista", "San Francisco",
    "Country Meadow", "Pabahay", "Monterey", "Langkaan", "Tierra Vista",
    "Robinson Dasmariñas", "SM Dasmariñas",
]
ROUTE_2_CHECKPOINTS: List[str] = list(reversed(ROUTE_1_CHECKPOINTS))

# First database ID of each direction; IDs increase along the sequence.
ROUTE_1_FIRST_ID = 46
ROUTE_2_FIRST_ID = 63

# Legacy fare table only covers the Tejero to Pala-pala stretch
CANONICAL_SEQUENCE: List[str] = [
    "Robinson Tejero", "Malabon", "Riverside", "Lancaster New City",
    "Pasong Camachile I", "Open Canal", "Santiago", "Bella Vista",
    "San Francisco", "Country Meadow", "Pabahay", "Monterey", "Langkaan",
    "Tierra Vista", "Robinson Pala-pala",
]

LEGACY_SEGMENT_FARES: List[Tuple[str, str, str]] = [
    ("Robinson Tejero", "Malabon", "12"),
    ("Malabon", "Riverside", "14"),
    ("Riverside", "Lancaster New City", "16"),
    ("Lancaster New City", "Pasong Camachile I", "18"),
    ("Pasong Camachile I", "Open Canal", "20"),
    ("Open Canal", "Santiago", "22"),
    ("Santiago", "Bella Vista", "24"),
    ("Bella Vista", "San Francisco", "26"),
    ("San Francisco", "Country Meadow", "28"),
    ("Country Meadow", "Pabahay", "30"),
    ("Pabahay", "Monterey", "33"),
    ("Monterey", "Langkaan", "36"),
    ("Langkaan", "Tierra Vista", "40"),
    ("Tierra Vista", "Robinson Pala-pala", "45"),
    ("Robinson Tejero", "Robinson Pala-pala", "500"),
    ("Lancaster New City", "Robinson Pala-pala", "30"),
]

DEFAULT_BASE_FARE = Decimal("13.00")
DEFAULT_INCREMENTAL_FARE = Decimal("12.00")


def build_route(route_id: int, name: str, names: Sequence[str], first_id: int) -> RouteSequence:
    """Build a route whose checkpoint IDs are consecutive from first_id."""
    return RouteSequence(
        route_id=route_id,
        name=name,
        checkpoints=tuple(
            Checkpoint(name=checkpoint, sequence_index=index, id=first_id + index)
            for index, checkpoint in enumerate(names)
        ),
    )


def default_route_rows() -> List[Dict]:
    """Route definitions as plain rows, used to seed the datastore."""
    return [
        {"route_id": 1, "name": ROUTE_1_NAME, "checkpoints": ROUTE_1_CHECKPOINTS,
         "first_id": ROUTE_1_FIRST_ID},
        {"route_id": 2, "name": ROUTE_2_NAME, "checkpoints": ROUTE_2_CHECKPOINTS,
         "first_id": ROUTE_2_FIRST_ID},
    ]


def default_reference_data() -> ReferenceData:
    """Reference data embedded in the package."""
    return ReferenceData(
        routes=tuple(
            build_route(row["route_id"], row["name"], row["checkpoints"], row["first_id"])
            for row in default_route_rows()
        ),
        canonical_sequence=tuple(CANONICAL_SEQUENCE),
        segments=tuple(
            FareSegment(from_checkpoint=a, to_checkpoint=b, fare=Decimal(fare))
            for a, b, fare in LEGACY_SEGMENT_FARES
        ),
        base_fare=DEFAULT_BASE_FARE,
        incremental_fare=DEFAULT_INCREMENTAL_FARE,
    )
