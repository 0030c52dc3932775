"""Shared fixtures for the fare engine tests."""

from decimal import Decimal

import pytest

from jeepfare.reference_data import default_reference_data
from jeepfare.services.engine import FareAndRouteEngine
from jeepfare.services.fare_matrix_client import RemoteSuccess, RemoteUnavailable


class FakeFareMatrix:
    """Records lookups and answers with a fixed outcome."""

    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    def get_fare(self, from_checkpoint_id, to_checkpoint_id, route_id=None):
        self.calls.append((from_checkpoint_id, to_checkpoint_id, route_id))
        return self.outcome


@pytest.fixture
def reference():
    return default_reference_data()


@pytest.fixture
def unavailable_remote():
    return FakeFareMatrix(RemoteUnavailable(reason="simulated outage"))


@pytest.fixture
def remote_fare_20():
    return FakeFareMatrix(RemoteSuccess(fare=Decimal("20.00")))


@pytest.fixture
def offline_engine(reference, unavailable_remote):
    return FareAndRouteEngine(reference, unavailable_remote)


@pytest.fixture
def online_engine(reference, remote_fare_20):
    return FareAndRouteEngine(reference, remote_fare_20)
