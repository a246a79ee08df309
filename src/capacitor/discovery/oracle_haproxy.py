# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""HAProxy statistics master oracle.

Only applications reachable through ``{app}.app.runonflux.io`` have a stats
page. The JSON dialect is an array of servers, each an array of metric
fields::

    [[{"field": {"name": "svname"}, "value": {"value": "10.0.0.9:31000"}},
      {"field": {"name": "act"}, "value": {"value": 1}}, ...], ...]

The server whose ``act`` field equals 1 is the currently active (master)
backend.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from capacitor.enums import EnumMasterSource, EnumTransportType
from capacitor.errors import ModelErrorContext, TransportError, TransportTimeoutError
from capacitor.models.model_master_detection import ModelMasterCandidate
from capacitor.models.model_node_address import host_of

logger = logging.getLogger(__name__)


def haproxy_stats_url(app_name: str) -> str:
    return (
        f"https://{app_name}.app.runonflux.io/fluxstatistics"
        f"?scope={app_name}apprunonfluxio;json;norefresh"
    )


def _field_value(server: list[object], name: str) -> object:
    for entry in server:
        if not isinstance(entry, dict):
            continue
        field = entry.get("field")
        value = entry.get("value")
        if isinstance(field, dict) and field.get("name") == name:
            return value.get("value") if isinstance(value, dict) else None
    return None


def parse_active_servers(body: object) -> list[str]:
    """Return ``svname`` of every active server, in stats order."""
    if not isinstance(body, list):
        return []
    active: list[str] = []
    for server in body:
        if not isinstance(server, list):
            continue
        act = _field_value(server, "act")
        if act != 1 or isinstance(act, (str, bool)):
            continue
        svname = _field_value(server, "svname")
        if isinstance(svname, str) and svname:
            active.append(svname)
    return active


class OracleHaproxy:
    """Master oracle backed by the HAProxy statistics page."""

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self._http_client = http_client

    @property
    def source(self) -> EnumMasterSource:
        return EnumMasterSource.HAPROXY

    async def detect(
        self, app_name: str, timeout: float
    ) -> Optional[ModelMasterCandidate]:
        url = haproxy_stats_url(app_name)
        headers = {"Accept": "application/json"}
        try:
            if self._http_client is not None:
                response = await self._http_client.get(
                    url, headers=headers, timeout=timeout
                )
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            raise TransportTimeoutError(
                "HAProxy statistics timed out", context=self._context(app_name)
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"HAProxy statistics unreachable: {type(e).__name__}",
                context=self._context(app_name),
            ) from e

        if not response.is_success:
            logger.info(
                "HAProxy returned %s",
                response.status_code,
                extra={"app_name": app_name},
            )
            return None

        try:
            body = response.json()
        except ValueError:
            logger.info(
                "HAProxy returned a non-JSON body", extra={"app_name": app_name}
            )
            return None

        active = parse_active_servers(body)
        if not active:
            logger.info("No active master in HAProxy", extra={"app_name": app_name})
            return None
        return ModelMasterCandidate(
            host=host_of(active[0]),
            source=EnumMasterSource.HAPROXY,
            raw_address=active[0],
            all_addresses=tuple(active),
        )

    def _context(self, app_name: str) -> ModelErrorContext:
        return ModelErrorContext(
            transport_type=EnumTransportType.HTTP,
            operation="detect_master",
            target_name=f"{app_name}.app.runonflux.io",
        )


__all__: list[str] = ["OracleHaproxy", "haproxy_stats_url", "parse_active_servers"]
