# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""FDM (Flux Domain Manager) master oracles.

FDM is the authoritative source of application node locations and works for
every application. ``GET {base}/appips/{app}`` returns the node IPs sorted
master-first::

    {"status": "success", "data": {"ips": ["10.0.0.9:31000", ...]}}

Applications are sharded across four FDM index slots by the first letter of
their name. Each region (EU, USA, ASIA) serves every slot; discovery queries
the regions in that fixed order.
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

FDM_PORT = 16130

# (source, host prefix) in query order
FDM_REGIONS: tuple[tuple[EnumMasterSource, str], ...] = (
    (EnumMasterSource.FDM_EU, "fdm-fn-1"),
    (EnumMasterSource.FDM_USA, "fdm-usa-1"),
    (EnumMasterSource.FDM_ASIA, "fdm-sg-1"),
)


def fdm_index(app_name: str) -> int:
    """Return the FDM index slot (1-4) serving ``app_name``.

    Example:
        >>> [fdm_index(n) for n in ("wordpress", "nginx", "apache", "1app")]
        [4, 2, 1, 1]
    """
    first = app_name[:1].lower()
    if "h" <= first <= "n":
        return 2
    if "o" <= first <= "u":
        return 3
    if "v" <= first <= "z":
        return 4
    return 1


class OracleFdmRegion:
    """Master oracle backed by one FDM region."""

    def __init__(
        self,
        source: EnumMasterSource,
        host_prefix: str,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._source = source
        self._host_prefix = host_prefix
        self._http_client = http_client

    @property
    def source(self) -> EnumMasterSource:
        return self._source

    def base_url(self, app_name: str) -> str:
        return f"http://{self._host_prefix}-{fdm_index(app_name)}.runonflux.io:{FDM_PORT}"

    async def detect(
        self, app_name: str, timeout: float
    ) -> Optional[ModelMasterCandidate]:
        url = f"{self.base_url(app_name)}/appips/{app_name}"
        logger.debug(
            "Querying FDM region",
            extra={"app_name": app_name, "source": self._source.value, "url": url},
        )
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, timeout=timeout)
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.get(url)
        except httpx.TimeoutException as e:
            raise TransportTimeoutError(
                f"FDM {self._source.value} timed out",
                context=self._context(),
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"FDM {self._source.value} unreachable: {type(e).__name__}",
                context=self._context(),
            ) from e

        if not response.is_success:
            logger.info(
                "FDM region returned %s",
                response.status_code,
                extra={"app_name": app_name, "source": self._source.value},
            )
            return None

        try:
            body = response.json()
        except ValueError:
            logger.info(
                "FDM region returned a non-JSON body",
                extra={"app_name": app_name, "source": self._source.value},
            )
            return None

        ips = _extract_ips(body)
        if not ips:
            logger.info(
                "FDM region returned no IPs",
                extra={"app_name": app_name, "source": self._source.value},
            )
            return None

        return ModelMasterCandidate(
            host=host_of(ips[0]),
            source=self._source,
            raw_address=ips[0],
            all_addresses=tuple(ips),
        )

    def _context(self) -> ModelErrorContext:
        return ModelErrorContext(
            transport_type=EnumTransportType.HTTP,
            operation="detect_master",
            target_name=self._host_prefix,
        )


def _extract_ips(body: object) -> list[str]:
    if not isinstance(body, dict) or body.get("status") != "success":
        return []
    data = body.get("data")
    if not isinstance(data, dict):
        return []
    ips = data.get("ips")
    if not isinstance(ips, list):
        return []
    return [ip for ip in ips if isinstance(ip, str) and ip.strip()]


def fdm_oracles(
    http_client: Optional[httpx.AsyncClient] = None,
) -> list[OracleFdmRegion]:
    """FDM oracles for every region, in query order."""
    return [
        OracleFdmRegion(source, prefix, http_client=http_client)
        for source, prefix in FDM_REGIONS
    ]


__all__: list[str] = [
    "FDM_PORT",
    "FDM_REGIONS",
    "OracleFdmRegion",
    "fdm_index",
    "fdm_oracles",
]
