# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""FluxOS public API handler.

Client for the network-wide FluxOS API (``https://api.runonflux.io`` by
default). The application location lookup tells where every instance of
an application runs and is the default source of the node list when the
caller supplies none. The specification lookup names the compose
components whose containers the stats operation queries.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from capacitor.enums import EnumErrorCode, EnumTransportType
from capacitor.errors import (
    CapacitorError,
    ModelErrorContext,
    TransportError,
    TransportTimeoutError,
)
from capacitor.models.model_app_location import ModelAppLocation
from capacitor.models.model_app_stats import ModelAppComponent
from capacitor.models.model_dashboard_config import DEFAULT_FLUX_API_URL

logger = logging.getLogger(__name__)

DEFAULT_API_TIMEOUT_SECONDS = 30.0
# Instances broadcast within this window count as simultaneous.
BROADCAST_TIE_SECONDS = 5.0

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def _timestamp(location: ModelAppLocation) -> float:
    moment = location.broadcasted_at or _EPOCH
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp()


def _compare_locations(a: ModelAppLocation, b: ModelAppLocation) -> int:
    diff = _timestamp(a) - _timestamp(b)
    if abs(diff) <= BROADCAST_TIE_SECONDS:
        return (a.ip > b.ip) - (a.ip < b.ip)
    return -1 if diff < 0 else 1


def _gigabytes(value: object) -> float:
    return float(value) if isinstance(value, (int, float)) and value > 0 else 0.0


def sort_locations(locations: Sequence[ModelAppLocation]) -> list[ModelAppLocation]:
    """Earliest broadcast first; near-simultaneous broadcasts ordered by IP."""
    return sorted(locations, key=functools.cmp_to_key(_compare_locations))


class HandlerFluxApi:
    """FluxOS public API client."""

    def __init__(
        self,
        base_url: str = DEFAULT_FLUX_API_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_API_TIMEOUT_SECONDS,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._http_client_lock = asyncio.Lock()

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        async with self._http_client_lock:
            if self._http_client is None:
                self._http_client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self._timeout),
                    headers={"Content-Type": "application/json"},
                )
            return self._http_client

    async def close(self) -> None:
        async with self._http_client_lock:
            if self._owns_http_client and self._http_client is not None:
                await self._http_client.aclose()
                self._http_client = None

    async def _get_envelope(
        self, path: str, operation: str, default_error: str
    ) -> dict[str, Any]:
        """GET ``path`` and return the body of a ``status: "success"`` envelope.

        Raises:
            TransportError: The API could not be reached.
            CapacitorError: The API answered with an error or a malformed body.
        """
        context = ModelErrorContext(
            transport_type=EnumTransportType.HTTP,
            operation=operation,
            target_name=self._base_url,
        )
        client = await self._get_http_client()
        try:
            response = await client.get(f"{self._base_url}{path}", timeout=self._timeout)
        except httpx.TimeoutException as e:
            raise TransportTimeoutError("FluxOS API timed out", context=context) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"FluxOS API unreachable: {type(e).__name__}", context=context
            ) from e

        if not response.is_success:
            raise CapacitorError(
                f"FluxOS API returned {response.status_code}",
                error_code=EnumErrorCode.OPERATION_FAILED,
                context=context,
            )
        try:
            body = response.json()
        except ValueError as e:
            raise CapacitorError(
                "FluxOS API returned invalid JSON", context=context
            ) from e

        if not isinstance(body, dict) or body.get("status") != "success":
            message = body.get("message") if isinstance(body, dict) else None
            raise CapacitorError(str(message or default_error), context=context)
        return body

    async def get_app_locations(self, app_name: str) -> list[ModelAppLocation]:
        """Return every running instance of ``app_name``, sorted by broadcast time.

        Raises:
            TransportError: The API could not be reached.
            CapacitorError: The API answered with an error or a malformed body.
        """
        body = await self._get_envelope(
            f"/apps/location/{app_name}",
            "get_app_locations",
            "Failed to load app locations",
        )
        entries = body.get("data") or []
        locations: list[ModelAppLocation] = []
        for entry in entries:
            try:
                locations.append(ModelAppLocation.model_validate(entry))
            except ValidationError:
                logger.warning(
                    "Skipping malformed location entry",
                    extra={"app_name": app_name},
                )
        logger.debug(
            "Loaded app locations",
            extra={"app_name": app_name, "count": len(locations)},
        )
        return sort_locations(locations)

    async def get_app_components(self, app_name: str) -> list[ModelAppComponent]:
        """Components of ``app_name`` with their HDD quotas, from its specification.

        A single-component specification yields one unnamed component.

        Raises:
            TransportError: The API could not be reached.
            CapacitorError: The API answered with an error or a malformed body.
        """
        body = await self._get_envelope(
            f"/apps/appspecifications/{app_name}",
            "get_app_components",
            "Failed to load app specification",
        )
        spec = body.get("data")
        if not isinstance(spec, dict):
            return []
        compose = spec.get("compose")
        if isinstance(compose, list):
            return [
                ModelAppComponent(
                    name=str(entry.get("name", "")), hdd_gb=_gigabytes(entry.get("hdd"))
                )
                for entry in compose
                if isinstance(entry, dict) and entry.get("name")
            ]
        return [ModelAppComponent(hdd_gb=_gigabytes(spec.get("hdd")))]


__all__: list[str] = ["BROADCAST_TIE_SECONDS", "HandlerFluxApi", "sort_locations"]
