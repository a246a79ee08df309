# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Protocol for master-node oracles.

Defines ``ProtocolMasterOracle`` - the structural interface shared by the
FDM regional oracles and the HAProxy statistics oracle. Discovery runs a
ranked list of these; new oracles are added without touching the executor.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from capacitor.enums import EnumMasterSource
from capacitor.models.model_master_detection import ModelMasterCandidate


@runtime_checkable
class ProtocolMasterOracle(Protocol):
    """Structural interface for master-node oracles.

    Implementations:
        - ``OracleFdmRegion``: FDM ``/appips/{app}`` per region
        - ``OracleHaproxy``: HAProxy ``fluxstatistics`` JSON dialect
    """

    @property
    def source(self) -> EnumMasterSource:
        """Provenance tag attached to candidates from this oracle."""
        ...

    async def detect(
        self, app_name: str, timeout: float
    ) -> Optional[ModelMasterCandidate]:
        """Ask the oracle for the master of ``app_name``.

        Args:
            app_name: Application name, non-empty.
            timeout: Seconds allowed for the whole call.

        Returns:
            A candidate, or None when the oracle has no well-formed answer.

        Raises:
            TransportError: When the oracle cannot be reached. The discovery
                service swallows these.
        """
        ...


__all__: list[str] = ["ProtocolMasterOracle"]
