"""
Distance service HTTP client.

    client = DistanceClient("https://api.example.com", token="...")
    policy = DistanceMeteredPolicy(client)

GET {base_url}/shipping/distance?destination=... answers with
{"distanceKm": 12.4, "durationText": "25 mins", "destination": "..."}.
A {"success": false, "message": "..."} body or a non-2xx status is a
rejection; the message is passed upstream untouched.
"""

from __future__ import annotations

import logging
from decimal import Decimal

import aiohttp
from pydantic import BaseModel, ConfigDict, Field

from kungfu import LazyCoroResult

from mealcart.lift import catching_async
from mealcart.shipping._types import DistanceFailure, DistanceReading

logger = logging.getLogger(__name__)


class DistanceRejected(Exception):
    """Distance service answered, but refused the destination."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class DistanceResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str | None = None
    distance_km: Decimal | None = Field(default=None, alias="distanceKm", ge=0)
    duration_text: str | None = Field(default=None, alias="durationText")
    destination: str | None = None

    def to_domain(self) -> DistanceReading:
        if not self.success:
            raise DistanceRejected(self.message or "Address not found")
        if self.distance_km is None:
            raise DistanceRejected("Distance missing from response")
        return DistanceReading(
            distance_km=self.distance_km,
            duration_text=self.duration_text or "",
            destination_label=self.destination,
        )


def _failure(exc: Exception) -> DistanceFailure:
    if isinstance(exc, DistanceRejected):
        return DistanceFailure(exc.message)
    logger.error("Distance request failed: %s", exc)
    return DistanceFailure(f"Distance service unavailable: {exc}")


class DistanceClient:
    """DistanceService over the storefront's REST API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        token: str | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._token = token

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def measure(self, destination: str) -> LazyCoroResult[DistanceReading, DistanceFailure]:
        url = f"{self._base_url}/shipping/distance"
        params = {"destination": destination}

        async def fetch() -> DistanceReading:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.get(url, params=params, headers=self._headers()) as response:
                    try:
                        body = await response.json(content_type=None)
                    except ValueError:
                        body = None

                    if response.status >= 400:
                        message = None
                        if isinstance(body, dict):
                            message = body.get("message")
                        raise DistanceRejected(message or f"HTTP {response.status}")

                    return DistanceResponse.model_validate(body).to_domain()

        return catching_async(fetch, on_error=_failure)


__all__ = (
    "DistanceRejected",
    "DistanceResponse",
    "DistanceClient",
)
