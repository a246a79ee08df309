# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Master Discovery Service.

Answers "which host, if any, is currently the authoritative instance of
application A?" by querying a ranked list of oracles.

Policy:
    - Oracles are tried strictly in rank order; the first one returning a
      well-formed, non-empty answer wins. Answers are never merged.
    - Each oracle call is bounded by its own hard timeout, so the whole
      detection finishes within ``len(oracles) * timeout``.
    - Discovery never raises. Network errors, timeouts, bad statuses and
      malformed bodies are logged and the next oracle is tried; absence of a
      master is a normal outcome.

Example:
    >>> discovery = ServiceMasterDiscovery.default()
    >>> result = await discovery.detect("wordpress1700000000000")
    >>> result.master_host
    '10.0.0.9'
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Optional

import httpx

from capacitor.discovery.oracle_fdm import fdm_oracles
from capacitor.discovery.oracle_haproxy import OracleHaproxy
from capacitor.errors import CapacitorError
from capacitor.models.model_master_detection import ModelMasterDetectionResult
from capacitor.protocols.protocol_master_oracle import ProtocolMasterOracle
from capacitor.utils.correlation import generate_correlation_id
from capacitor.utils.util_error_sanitization import sanitize_error_message

logger = logging.getLogger(__name__)

DEFAULT_DISCOVERY_TIMEOUT_SECONDS = 5.0


class ServiceMasterDiscovery:
    """Runs master oracles in rank order.

    Attributes:
        oracles: Oracles in the order they are consulted
        timeout: Hard timeout of each oracle call, in seconds
    """

    def __init__(
        self,
        oracles: Sequence[ProtocolMasterOracle],
        timeout: float = DEFAULT_DISCOVERY_TIMEOUT_SECONDS,
    ) -> None:
        self._oracles: tuple[ProtocolMasterOracle, ...] = tuple(oracles)
        self._timeout = timeout

    @classmethod
    def default(
        cls,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_DISCOVERY_TIMEOUT_SECONDS,
    ) -> ServiceMasterDiscovery:
        """FDM EU, USA and ASIA, then HAProxy."""
        oracles: list[ProtocolMasterOracle] = [*fdm_oracles(http_client)]
        oracles.append(OracleHaproxy(http_client))
        return cls(oracles, timeout=timeout)

    @classmethod
    def haproxy_only(
        cls,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_DISCOVERY_TIMEOUT_SECONDS,
    ) -> ServiceMasterDiscovery:
        """HAProxy alone, as used by the file and maintenance routes."""
        return cls([OracleHaproxy(http_client)], timeout=timeout)

    @property
    def oracles(self) -> tuple[ProtocolMasterOracle, ...]:
        return self._oracles

    @property
    def timeout(self) -> float:
        return self._timeout

    async def detect(self, app_name: str) -> ModelMasterDetectionResult:
        """Return the master of ``app_name``, or an empty result.

        Never raises for oracle failures.
        """
        correlation_id = generate_correlation_id()
        if not app_name:
            return ModelMasterDetectionResult()

        for oracle in self._oracles:
            source = oracle.source.value
            try:
                candidate = await asyncio.wait_for(
                    oracle.detect(app_name, self._timeout), timeout=self._timeout
                )
            except asyncio.TimeoutError:
                logger.info(
                    "Master oracle timed out (correlation_id=%s)",
                    correlation_id,
                    extra={"app_name": app_name, "source": source},
                )
                continue
            except (CapacitorError, httpx.HTTPError, ValueError) as e:
                logger.info(
                    "Master oracle failed (correlation_id=%s): %s",
                    correlation_id,
                    sanitize_error_message(e),
                    extra={"app_name": app_name, "source": source},
                )
                continue

            if candidate is not None:
                logger.info(
                    "Master detected (correlation_id=%s)",
                    correlation_id,
                    extra={
                        "app_name": app_name,
                        "source": source,
                        "master_host": candidate.host,
                    },
                )
                return ModelMasterDetectionResult.from_candidate(candidate)

        logger.info(
            "No master detected (correlation_id=%s)",
            correlation_id,
            extra={"app_name": app_name, "oracles": len(self._oracles)},
        )
        return ModelMasterDetectionResult()


__all__: list[str] = ["DEFAULT_DISCOVERY_TIMEOUT_SECONDS", "ServiceMasterDiscovery"]
