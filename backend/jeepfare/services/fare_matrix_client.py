"""HTTP client for the remote fare matrix service."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol, Union, runtime_checkable

import requests
from pydantic import ValidationError

from jeepfare.errors import MalformedFareResponse
from jeepfare.models import RemoteFareResponse, to_money

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class RemoteSuccess:
    """Authoritative fare returned by the fare matrix."""
    fare: Decimal


@dataclass(frozen=True)
class RemoteUnavailable:
    """The fare matrix could not answer; callers use the local fallback."""
    reason: str


RemoteOutcome = Union[RemoteSuccess, RemoteUnavailable]


@runtime_checkable
class FareMatrixLookup(Protocol):
    """Anything able to look up a fare by checkpoint ID pair."""

    def get_fare(self, from_checkpoint_id: int, to_checkpoint_id: int,
                 route_id: Optional[int] = None) -> RemoteOutcome:
        ...


class FareMatrixClient:
    """
    Single-attempt client for GET {base_url}/fare-matrix/fare/{from}/{to}.

    The fallback already gives a correct answer, so the request is never
    retried; every transport or protocol failure becomes RemoteUnavailable.
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS,
                 session: Optional[requests.Session] = None):
        if not base_url:
            raise ValueError("Fare matrix base URL is not configured.")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def fare_url(self, from_checkpoint_id: int, to_checkpoint_id: int) -> str:
        return f"{self.base_url}/fare-matrix/fare/{from_checkpoint_id}/{to_checkpoint_id}"

    def get_fare(self, from_checkpoint_id: int, to_checkpoint_id: int,
                 route_id: Optional[int] = None) -> RemoteOutcome:
        url = self.fare_url(from_checkpoint_id, to_checkpoint_id)
        params = {"route_id": route_id} if route_id else None

        try:
            response = self.session.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = self._parse(response)
        except requests.RequestException as e:
            logger.info("Fare matrix request to %s failed: %s", url, e)
            return RemoteUnavailable(reason=f"transport error: {e}")
        except MalformedFareResponse as e:
            logger.info("Fare matrix returned a malformed body: %s", e)
            return RemoteUnavailable(reason=f"malformed response: {e}")

        if payload.status != "success":
            logger.debug("Fare matrix answered status=%s message=%s", payload.status, payload.message)
            return RemoteUnavailable(reason=payload.message or f"status {payload.status}")
        if payload.fare_info is None:
            logger.debug("Fare matrix success without fare_info for %s", url)
            return RemoteUnavailable(reason="success response without fare_info")

        return RemoteSuccess(fare=to_money(payload.fare_info.fare_amount))

    @staticmethod
    def _parse(response: requests.Response) -> RemoteFareResponse:
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedFareResponse(f"body is not JSON: {e}") from e
        try:
            return RemoteFareResponse.model_validate(data)
        except ValidationError as e:
            raise MalformedFareResponse(str(e)) from e


class DisabledFareMatrix:
    """Lookup used when the remote service is switched off by configuration."""

    def get_fare(self, from_checkpoint_id: int, to_checkpoint_id: int,
                 route_id: Optional[int] = None) -> RemoteOutcome:
        return RemoteUnavailable(reason="fare matrix disabled")
