"""Route-sequence resolution and adaptive destination filtering."""

from typing import List, Optional, Sequence, Tuple

from jeepfare.errors import CheckpointNotFound
from jeepfare.models import RouteSequence

DIRECTION_ARROWS = ("->", "→")
DEFAULT_NEXT_STOP_COUNT = 2


class RouteSequenceResolver:
    """
    Decides which direction of travel applies to a pickup checkpoint.

    Resolution order, first match wins:
        1. a direction hint naming both termini in order ("A -> B" or "A → B")
        2. the pickup is the origin terminus of a route
        3. the pickup appears on several routes: the one where it is nearer the start
        4. the pickup appears on exactly one route
    Anything else raises CheckpointNotFound.
    """

    def __init__(self, routes: Sequence[RouteSequence]):
        self.routes = tuple(routes)

    def route_for_name(self, route_name: Optional[str]) -> Optional[RouteSequence]:
        """Route whose termini appear in route_name in travel order."""
        if not route_name:
            return None
        for route in self.routes:
            for arrow in DIRECTION_ARROWS:
                if f"{route.origin} {arrow} {route.destination}" in route_name:
                    return route
        return None

    def resolve(self, pickup: str, direction_hint: Optional[str] = None) -> Tuple[RouteSequence, int]:
        """Return the applicable route and the pickup's index on it."""
        hinted = self.route_for_name(direction_hint)
        if hinted is not None:
            index = hinted.index_of(pickup)
            if index is None:
                raise CheckpointNotFound(pickup)
            return hinted, index

        for route in self.routes:
            if route.origin == pickup:
                return route, 0

        candidates = [
            (route.index_of(pickup), position, route)
            for position, route in enumerate(self.routes)
            if route.index_of(pickup) is not None
        ]
        if not candidates:
            raise CheckpointNotFound(pickup)

        # Ties keep the route listed first
        index, _, route = min(candidates, key=lambda candidate: candidate[:2])
        return route, index


class DestinationFilter:
    """Checkpoints that lie strictly after the pickup on its route."""

    def __init__(self, route: RouteSequence, pickup_index: int, exclude: Optional[str] = None,
                 search: Optional[str] = None):
        if not 0 <= pickup_index < len(route.checkpoints):
            raise IndexError(f"Pickup index {pickup_index} outside route {route.route_id}")
        self.route = route
        self.pickup_index = pickup_index

        destinations = [
            name for name in route.names[pickup_index + 1:]
            if name != exclude
        ]
        if search:
            needle = search.lower()
            destinations = [name for name in destinations if needle in name.lower()]
        self._destinations = destinations

    @property
    def destinations(self) -> List[str]:
        return list(self._destinations)

    @property
    def available_count(self) -> int:
        return len(self._destinations)

    def next_stops(self, n: int = DEFAULT_NEXT_STOP_COUNT) -> List[str]:
        """First n destinations, shown as recommended next stops."""
        if n < 0:
            raise ValueError("n must not be negative")
        return self._destinations[:n]
