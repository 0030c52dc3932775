"""Fare calculation service implementing business logic."""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional, Tuple

from jeepfare.errors import (
    CheckpointNotFound,
    FareEngineError,
    FareUnavailable,
    InvalidLocation,
    UnknownCheckpoint,
)
from jeepfare.models import (
    DiscountType,
    FareMethod,
    FareResult,
    FareSegment,
    ReferenceData,
    RouteSequence,
    to_money,
)
from jeepfare.services.fare_matrix_client import FareMatrixLookup, RemoteSuccess
from jeepfare.services.route_resolver import RouteSequenceResolver

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def apply_discount(base_fare: Decimal, discount_percentage: Optional[Decimal]) -> Tuple[Decimal, Optional[Decimal]]:
    """
    Apply a percentage discount to a base fare.

    Returns:
        (final_fare, savings); savings is None when no discount applied.
    """
    base_fare = to_money(base_fare)
    if discount_percentage is None:
        return base_fare, None

    discount_percentage = Decimal(str(discount_percentage))
    if not Decimal("0") <= discount_percentage <= HUNDRED:
        raise ValueError(
            f"Discount percentage must be between 0 and 100, got {discount_percentage}"
        )
    final_fare = to_money(base_fare * (HUNDRED - discount_percentage) / HUNDRED)
    return final_fare, base_fare - final_fare


def resolve_discount_percentage(discount_type: Optional[DiscountType],
                                discount_percentage: Optional[Decimal]) -> Optional[Decimal]:
    """An explicit percentage wins; otherwise the rider category's default."""
    if discount_percentage is not None:
        return Decimal(str(discount_percentage))
    if discount_type is not None:
        return discount_type.default_percentage
    return None


class BaseFareCalculator(ABC):
    """Abstract base class for base-fare sources."""

    @abstractmethod
    def base_fare(self, from_checkpoint: str, to_checkpoint: str) -> Decimal:
        """
        Fare between two checkpoints before any discount.
        Must be implemented by subclasses.
        """
        pass


class LocalFareCalculator(BaseFareCalculator):
    """
    Deterministic fallback over the legacy segment table.

    A direct segment entry (either direction) wins; otherwise the base fare
    is charged once and every segment between the two checkpoints is added,
    using the incremental fare for segments missing from the table.
    """

    def __init__(self, reference: ReferenceData):
        self.reference = reference

    def base_fare(self, from_checkpoint: str, to_checkpoint: str) -> Decimal:
        direct = self.reference.segment_fare(from_checkpoint, to_checkpoint)
        if direct is not None:
            return direct

        sequence = self.reference.canonical_sequence
        if from_checkpoint not in sequence or to_checkpoint not in sequence:
            logger.warning("Invalid locations: %s or %s", from_checkpoint, to_checkpoint)
            raise InvalidLocation(from_checkpoint, to_checkpoint)

        if from_checkpoint == to_checkpoint:
            return self.reference.base_fare

        from_index = sequence.index(from_checkpoint)
        to_index = sequence.index(to_checkpoint)
        start, end = min(from_index, to_index), max(from_index, to_index)

        total = self.reference.base_fare
        for i in range(start, end):
            segment = self.reference.segment_fare(sequence[i], sequence[i + 1])
            total += segment if segment is not None else self.reference.incremental_fare

        logger.debug("Calculated fallback fare from %s to %s: %s", from_checkpoint, to_checkpoint, total)
        return to_money(total)

    def fare_matrix(self) -> List[FareSegment]:
        """Fallback fare between every ordered pair of the canonical sequence."""
        sequence = self.reference.canonical_sequence
        return [
            FareSegment(from_checkpoint=a, to_checkpoint=b, fare=self.base_fare(a, b))
            for a in sequence
            for b in sequence
        ]


class FareCalculator:
    """
    Remote-first fare calculation.

    Checkpoint names are mapped to the IDs of the resolved route and looked
    up in the fare matrix; when that is impossible or the service cannot
    answer, the local calculator supplies the base fare.
    """

    def __init__(self, reference: ReferenceData, remote: FareMatrixLookup,
                 local: Optional[LocalFareCalculator] = None):
        self.reference = reference
        self.remote = remote
        self.local = local or LocalFareCalculator(reference)
        self.resolver = RouteSequenceResolver(reference.routes)

    def infer_route(self, from_checkpoint: str, to_checkpoint: str) -> RouteSequence:
        """
        Pick the direction for a trip given without a route ID.

        The pickup's route from the resolver is kept when the destination lies
        after the pickup on it; otherwise the first route that travels from
        pickup to destination is used.
        """
        route, pickup_index = self.resolver.resolve(from_checkpoint)
        destination_index = route.index_of(to_checkpoint)
        if destination_index is not None and destination_index > pickup_index:
            return route

        for candidate in self.reference.routes:
            start = candidate.index_of(from_checkpoint)
            end = candidate.index_of(to_checkpoint)
            if start is not None and end is not None and end > start:
                return candidate
        return route

    def resolve_checkpoint_ids(self, from_checkpoint: str, to_checkpoint: str,
                               route_id: Optional[int] = None) -> Tuple[int, int, int]:
        """
        Map both names to fare matrix IDs.

        Returns:
            (from_id, to_id, route_id)

        Raises:
            CheckpointNotFound: route_id omitted and from_checkpoint is on no route
            UnknownCheckpoint: a name has no ID on the resolved route
        """
        if route_id is None:
            route = self.infer_route(from_checkpoint, to_checkpoint)
        else:
            route = self.reference.route(route_id)
            if route is None:
                raise UnknownCheckpoint(from_checkpoint, route_id)

        from_id = route.checkpoint_id(from_checkpoint)
        if from_id is None:
            raise UnknownCheckpoint(from_checkpoint, route.route_id)
        to_id = route.checkpoint_id(to_checkpoint)
        if to_id is None:
            raise UnknownCheckpoint(to_checkpoint, route.route_id)
        return from_id, to_id, route.route_id

    def calculate(self, from_checkpoint: str, to_checkpoint: str,
                  route_id: Optional[int] = None,
                  discount_type: Optional[DiscountType] = None,
                  discount_percentage: Optional[Decimal] = None) -> FareResult:
        """
        Calculate the fare for one trip.

        Raises:
            CheckpointNotFound, UnknownCheckpoint: ID resolution failed and the
                local fallback could not price the trip either
            FareUnavailable: remote and local paths both failed
            ValueError: discount percentage outside 0..100
        """
        percentage = resolve_discount_percentage(discount_type, discount_percentage)

        id_error: Optional[FareEngineError] = None
        resolved_route_id = route_id
        base_fare = None
        method = FareMethod.REMOTE_MATRIX

        try:
            from_id, to_id, resolved_route_id = self.resolve_checkpoint_ids(
                from_checkpoint, to_checkpoint, route_id
            )
        except (CheckpointNotFound, UnknownCheckpoint) as e:
            logger.info("Skipping fare matrix lookup: %s", e)
            id_error = e
        else:
            outcome = self.remote.get_fare(from_id, to_id, resolved_route_id)
            if isinstance(outcome, RemoteSuccess):
                base_fare = outcome.fare
            else:
                logger.info(
                    "Fare matrix unavailable for %s -> %s (%s), using local fallback",
                    from_checkpoint, to_checkpoint, outcome.reason,
                )

        if base_fare is None:
            method = FareMethod.LOCAL_FALLBACK
            try:
                base_fare = self.local.base_fare(from_checkpoint, to_checkpoint)
            except InvalidLocation as e:
                if id_error is not None:
                    raise id_error from e
                raise FareUnavailable(
                    f"No fare could be determined from {from_checkpoint} to {to_checkpoint}"
                ) from e

        final_fare, savings = apply_discount(base_fare, percentage)
        return FareResult(
            from_checkpoint=from_checkpoint,
            to_checkpoint=to_checkpoint,
            route_id=resolved_route_id,
            base_fare=to_money(base_fare),
            discount_type=discount_type,
            discount_percentage=percentage,
            final_fare=final_fare,
            savings=savings,
            method=method,
        )
