# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""App location model (FluxOS ``/apps/location/{app}`` entries)."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from capacitor.models.model_node_address import DEFAULT_FLUX_API_PORT, ModelNodeAddress


class ModelAppLocation(BaseModel):
    """Where one instance of an application runs."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = ""
    hash: str = ""
    ip: str
    broadcasted_at: Optional[datetime] = Field(default=None, alias="broadcastedAt")
    expire_at: Optional[datetime] = Field(default=None, alias="expireAt")
    port: Optional[int] = None

    def to_node_address(self, default_port: int = DEFAULT_FLUX_API_PORT) -> ModelNodeAddress:
        """Address for API calls.

        An ``ip`` that already carries a port wins over the ``port`` field;
        the well-known port is the last resort.
        """
        if ":" in self.ip:
            return ModelNodeAddress.parse(self.ip, default_port)
        return ModelNodeAddress(host=self.ip, port=self.port or default_port)


__all__ = ["ModelAppLocation"]
