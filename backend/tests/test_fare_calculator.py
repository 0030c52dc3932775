"""Unit tests for fare calculation."""

from decimal import Decimal, ROUND_HALF_UP

import pytest

from conftest import FakeFareMatrix
from jeepfare.errors import CheckpointNotFound, FareUnavailable, InvalidLocation, UnknownCheckpoint
from jeepfare.models import DiscountType, FareMethod, FareSegment, ReferenceData
from jeepfare.reference_data import CANONICAL_SEQUENCE
from jeepfare.services.engine import format_currency
from jeepfare.services.fare_calculator import (
    FareCalculator,
    LocalFareCalculator,
    apply_discount,
    resolve_discount_percentage,
)
from jeepfare.services.fare_matrix_client import RemoteSuccess


class TestLocalFareCalculator:
    """Test the legacy segment fallback."""

    def setup_method(self):
        from jeepfare.reference_data import default_reference_data
        self.calculator = LocalFareCalculator(default_reference_data())

    def test_direct_segment(self):
        """Test direct segment fares."""
        assert self.calculator.base_fare("Robinson Tejero", "Malabon") == Decimal("12")
        assert self.calculator.base_fare("Lancaster New City", "Robinson Pala-pala") == Decimal("30")
        assert self.calculator.base_fare("Robinson Tejero", "Robinson Pala-pala") == Decimal("500")

    def test_same_checkpoint_charges_base_fare(self):
        """Test same pickup and destination."""
        assert self.calculator.base_fare("Robinson Tejero", "Robinson Tejero") == Decimal("13.00")

    def test_multi_hop_starts_from_base_fare(self):
        """Test multi-segment fares."""
        # 13 + 12 + 14
        assert self.calculator.base_fare("Robinson Tejero", "Riverside") == Decimal("39.00")
        # 13 + 14 + 16
        assert self.calculator.base_fare("Malabon", "Lancaster New City") == Decimal("43.00")

    def test_fare_is_direction_agnostic(self):
        """Test fares are symmetric."""
        for a in CANONICAL_SEQUENCE:
            for b in CANONICAL_SEQUENCE:
                assert self.calculator.base_fare(a, b) == self.calculator.base_fare(b, a)

    def test_repeated_calls_are_identical(self):
        """Test fares are deterministic."""
        first = self.calculator.base_fare("Malabon", "Langkaan")
        assert all(self.calculator.base_fare("Malabon", "Langkaan") == first for _ in range(5))

    def test_missing_segment_uses_incremental_fare(self):
        """Test incremental fare for missing segments."""
        reference = ReferenceData(
            routes=(),
            canonical_sequence=("A", "B", "C"),
            segments=(FareSegment(from_checkpoint="A", to_checkpoint="B", fare=Decimal("10")),),
            base_fare=Decimal("13"),
            incremental_fare=Decimal("12"),
        )
        calculator = LocalFareCalculator(reference)
        assert calculator.base_fare("A", "C") == Decimal("35.00")
        assert calculator.base_fare("C", "A") == Decimal("35.00")

    def test_no_float_drift_over_many_segments(self):
        """Test decimal sums over many segments."""
        reference = ReferenceData(
            routes=(),
            canonical_sequence=tuple(f"S{i}" for i in range(11)),
            segments=tuple(
                FareSegment(from_checkpoint=f"S{i}", to_checkpoint=f"S{i + 1}", fare=Decimal("0.10"))
                for i in range(10)
            ),
            base_fare=Decimal("0.10"),
        )
        assert LocalFareCalculator(reference).base_fare("S0", "S10") == Decimal("1.10")

    def test_one_fare_per_pair(self):
        """A pair listed in both directions is rejected."""
        with pytest.raises(ValueError):
            ReferenceData(
                routes=(),
                canonical_sequence=("A", "B"),
                segments=(
                    FareSegment(from_checkpoint="A", to_checkpoint="B", fare=Decimal("12")),
                    FareSegment(from_checkpoint="B", to_checkpoint="A", fare=Decimal("20")),
                ),
            )

    def test_invalid_location(self):
        """Test checkpoints outside the fallback sequence."""
        with pytest.raises(InvalidLocation):
            self.calculator.base_fare("SM Epza", "Malabon")
        with pytest.raises(InvalidLocation):
            self.calculator.base_fare("Malabon", "Nowhere")

    def test_fare_matrix_covers_every_pair(self):
        """Test fare matrix generation."""
        matrix = self.calculator.fare_matrix()
        assert len(matrix) == len(CANONICAL_SEQUENCE) ** 2
        lookup = {(entry.from_checkpoint, entry.to_checkpoint): entry.fare for entry in matrix}
        assert lookup[("Robinson Tejero", "Malabon")] == Decimal("12")
        assert lookup[("Riverside", "Riverside")] == Decimal("13")


class TestDiscounts:
    """Test percentage discounts."""

    def test_twenty_percent_off_twenty(self):
        """Test 20% discount."""
        final_fare, savings = apply_discount(Decimal("20"), Decimal("20"))
        assert final_fare == Decimal("16.00")
        assert savings == Decimal("4.00")
        assert str(final_fare) == "16.00"

    def test_rounds_half_up_to_centavos(self):
        """Test rounding to centavos."""
        final_fare, savings = apply_discount(Decimal("12.50"), Decimal("33"))
        assert final_fare == Decimal("8.38")
        assert savings == Decimal("4.12")

    def test_savings_is_exact_difference(self):
        """Test savings equals base minus final fare."""
        for base in ("0", "13", "27.35", "500"):
            for pct in ("0", "12.5", "20", "30", "100"):
                final_fare, savings = apply_discount(Decimal(base), Decimal(pct))
                assert final_fare + savings == Decimal(base)
                assert final_fare == (
                    Decimal(base) * (1 - Decimal(pct) / 100)
                ).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    def test_no_discount(self):
        """Test no discount."""
        final_fare, savings = apply_discount(Decimal("13"), None)
        assert final_fare == Decimal("13.00")
        assert savings is None

    def test_out_of_range_percentage(self):
        """Test invalid discount percentages."""
        with pytest.raises(ValueError):
            apply_discount(Decimal("13"), Decimal("101"))
        with pytest.raises(ValueError):
            apply_discount(Decimal("13"), Decimal("-1"))

    def test_discount_type_defaults(self):
        """Test default percentage per rider category."""
        assert resolve_discount_percentage(DiscountType.STUDENT, None) == Decimal("20")
        assert resolve_discount_percentage(DiscountType.PWD, None) == Decimal("20")
        assert resolve_discount_percentage(DiscountType.SENIOR_CITIZEN, None) == Decimal("30")
        assert resolve_discount_percentage(DiscountType.STUDENT, Decimal("5")) == Decimal("5")
        assert resolve_discount_percentage(None, None) is None


class TestFareCalculator:
    """Test remote-first calculation with local fallback."""

    def test_remote_matrix_answer(self, reference, remote_fare_20):
        """Test fare from the fare matrix."""
        calculator = FareCalculator(reference, remote_fare_20)
        result = calculator.calculate("SM Epza", "Malabon")

        assert result.method == FareMethod.REMOTE_MATRIX
        assert result.base_fare == Decimal("20.00")
        assert result.final_fare == Decimal("20.00")
        assert result.savings is None
        assert result.route_id == 1
        assert remote_fare_20.calls == [(46, 48, 1)]

    def test_route_inferred_from_pickup(self, reference, remote_fare_20):
        """Test route inference from the pickup."""
        calculator = FareCalculator(reference, remote_fare_20)
        calculator.calculate("SM Dasmariñas", "Langkaan")
        calculator.calculate("Robinson Tejero", "Riverside")
        assert remote_fare_20.calls == [(63, 66, 2), (47, 49, 1)]

    def test_inferred_route_runs_toward_destination(self, reference, remote_fare_20):
        """A destination behind the pickup selects the opposite direction."""
        calculator = FareCalculator(reference, remote_fare_20)
        result = calculator.calculate("Malabon", "SM Epza")
        assert result.route_id == 2
        assert remote_fare_20.calls == [(77, 79, 2)]

    def test_same_stop_keeps_pickup_route(self, reference, remote_fare_20):
        """With no route running forward the pickup's own route is used."""
        calculator = FareCalculator(reference, remote_fare_20)
        calculator.calculate("Malabon", "Malabon")
        assert remote_fare_20.calls == [(48, 48, 1)]

    def test_explicit_route_ids(self, reference, remote_fare_20):
        """Test explicit route selection."""
        calculator = FareCalculator(reference, remote_fare_20)
        result = calculator.calculate("Malabon", "SM Epza", route_id=2)
        assert result.route_id == 2
        assert remote_fare_20.calls == [(77, 79, 2)]

    def test_remote_failure_falls_back(self, reference, unavailable_remote):
        """Test local fallback when the fare matrix is down."""
        calculator = FareCalculator(reference, unavailable_remote)
        result = calculator.calculate("Robinson Tejero", "Malabon")

        assert result.method == FareMethod.LOCAL_FALLBACK
        assert result.base_fare == Decimal("12.00")
        assert unavailable_remote.calls == [(47, 48, 1)]

    def test_same_checkpoint_fallback(self, reference, unavailable_remote):
        """Test same checkpoint through the fallback."""
        result = FareCalculator(reference, unavailable_remote).calculate(
            "Robinson Tejero", "Robinson Tejero"
        )
        assert result.base_fare == Decimal("13.00")

    def test_fallback_symmetry(self, reference, unavailable_remote):
        """Test fallback fares are symmetric."""
        calculator = FareCalculator(reference, unavailable_remote)
        forward = calculator.calculate("Riverside", "Langkaan")
        backward = calculator.calculate("Langkaan", "Riverside")
        assert forward.base_fare == backward.base_fare

    def test_unknown_id_still_tries_fallback(self, reference, remote_fare_20):
        """Test fallback after a failed ID lookup."""
        calculator = FareCalculator(reference, remote_fare_20)
        result = calculator.calculate("Tierra Vista", "Robinson Pala-pala", route_id=1)

        assert result.method == FareMethod.LOCAL_FALLBACK
        assert result.base_fare == Decimal("45.00")
        assert remote_fare_20.calls == []

    def test_unknown_id_reported_when_fallback_fails(self, reference, remote_fare_20):
        """Test ID error when the fallback fails too."""
        calculator = FareCalculator(reference, remote_fare_20)
        with pytest.raises(UnknownCheckpoint):
            calculator.calculate("SM Epza", "Robinson Pala-pala", route_id=1)
        with pytest.raises(UnknownCheckpoint):
            calculator.calculate("SM Epza", "Malabon", route_id=9)

    def test_checkpoint_on_no_route(self, reference, unavailable_remote):
        """Test pickup on no route."""
        calculator = FareCalculator(reference, unavailable_remote)
        with pytest.raises(CheckpointNotFound):
            calculator.calculate("Nowhere", "Malabon")
        assert unavailable_remote.calls == []

    def test_both_paths_failing(self, reference, unavailable_remote):
        """Test both fare sources failing."""
        calculator = FareCalculator(reference, unavailable_remote)
        with pytest.raises(FareUnavailable):
            calculator.calculate("SM Epza", "Malabon")

    def test_discount_applied_to_remote_fare(self, reference, remote_fare_20):
        """Test discount on a fare matrix answer."""
        result = FareCalculator(reference, remote_fare_20).calculate(
            "SM Epza", "Malabon", discount_type=DiscountType.STUDENT
        )
        assert result.discount_type == DiscountType.STUDENT
        assert result.discount_percentage == Decimal("20")
        assert result.final_fare == Decimal("16.00")
        assert result.savings == Decimal("4.00")

    def test_remote_amount_is_quantized(self, reference):
        """Test fare matrix amounts are rounded to centavos."""
        remote = FakeFareMatrix(RemoteSuccess(fare=Decimal("13.005")))
        result = FareCalculator(reference, remote).calculate("SM Epza", "Malabon")
        assert result.base_fare == Decimal("13.01")


class TestEngine:
    """Test the presentation interface."""

    def test_first_destination_from_sm_epza(self, offline_engine):
        """Test first destination from SM Epza."""
        assert offline_engine.resolve_destinations("SM Epza")[0] == "Robinson Tejero"

    def test_destinations_follow_the_hinted_route(self, offline_engine, reference):
        """Test destinations along each route."""
        for route in reference.routes:
            names = list(route.names)
            for index, name in enumerate(names):
                assert offline_engine.resolve_destinations(name, route.name) == names[index + 1:]

    def test_terminal_stop(self, offline_engine):
        """Test terminal stops."""
        assert offline_engine.resolve_destinations("SM Dasmariñas", "SM Epza → SM Dasmariñas") == []
        assert offline_engine.resolve_destinations("SM Epza", "SM Dasmariñas → SM Epza") == []

    def test_destination_info(self, offline_engine):
        """Test destination summary."""
        info = offline_engine.destination_info("SM Epza")
        assert info.route_id == 1
        assert info.route_name == "SM Epza → SM Dasmariñas"
        assert info.next_stops == ["Robinson Tejero", "Malabon"]
        assert info.available_count == 16

    def test_unknown_pickup(self, offline_engine):
        """Test unknown pickup."""
        with pytest.raises(CheckpointNotFound):
            offline_engine.resolve_destinations("Nowhere")

    def test_compute_fare_scenarios(self, offline_engine):
        """Test offline fare scenarios."""
        assert offline_engine.compute_fare("Robinson Tejero", "Malabon").base_fare == Decimal("12")
        assert offline_engine.compute_fare("Robinson Tejero", "Robinson Tejero").base_fare == Decimal("13")

    def test_compute_fare_prefers_remote(self, online_engine, remote_fare_20):
        """Test the fare matrix is preferred."""
        result = online_engine.compute_fare("Robinson Tejero", "Malabon", discount_percentage=Decimal("30"))
        assert result.method == FareMethod.REMOTE_MATRIX
        assert result.final_fare == Decimal("14.00")
        assert result.savings == Decimal("6.00")
        assert remote_fare_20.calls == [(47, 48, 1)]

    def test_format_currency(self, offline_engine):
        """Test currency formatting."""
        assert offline_engine.format_currency(Decimal("1234.5")) == "₱1,234.50"
        assert offline_engine.format_currency(12) == "₱12.00"
        assert format_currency(Decimal("0.005"), "PHP ") == "PHP 0.01"
        assert format_currency(Decimal("-4")) == "-₱4.00"
