# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Master discovery models.

A master candidate is produced fresh on every discovery call and is never
cached beyond one orchestrated operation.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from capacitor.enums import EnumMasterSource


class ModelMasterCandidate(BaseModel):
    """Answer of a single oracle.

    Attributes:
        host: Master host, port stripped
        source: Oracle that produced the answer
        raw_address: Address exactly as the oracle reported it (may carry
            the application port rather than the management port)
        all_addresses: Every address the oracle listed, master first
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str = Field(..., min_length=1)
    source: EnumMasterSource
    raw_address: str
    all_addresses: tuple[str, ...] = Field(default_factory=tuple)


class ModelMasterDetectionResult(BaseModel):
    """Result of running every oracle in rank order.

    Absence of a master is a valid, common outcome; callers then use their
    own node list in the given order.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    master_host: Optional[str] = None
    all_hosts: tuple[str, ...] = Field(default_factory=tuple)
    source: EnumMasterSource = EnumMasterSource.NONE

    @property
    def found(self) -> bool:
        """True when some oracle designated a master."""
        return self.master_host is not None

    @classmethod
    def from_candidate(cls, candidate: ModelMasterCandidate) -> ModelMasterDetectionResult:
        return cls(
            master_host=candidate.host,
            all_hosts=candidate.all_addresses or (candidate.raw_address,),
            source=candidate.source,
        )


__all__ = ["ModelMasterCandidate", "ModelMasterDetectionResult"]
