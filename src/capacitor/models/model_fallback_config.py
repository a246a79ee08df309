# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Fallback Configuration Model.

Retry, fan-out and timeout constants of the fallback engine. The defaults
are the most common values of the dashboard's API routes; every value can be
overridden through ``CAPACITOR_*`` environment variables.

Environment Variables:
    CAPACITOR_MAX_ATTEMPTS_FIRST_NODE (int, default 3, range 1-10)
    CAPACITOR_RETRY_DELAY_SECONDS (float, default 2.0, range 0-60)
    CAPACITOR_MAX_NODES (int, default 5, range 1-50)
    CAPACITOR_BULK_CONCURRENCY (int, default 5, range 1-50)
    CAPACITOR_DISCOVERY_TIMEOUT_SECONDS (float, default 5.0, range 0.1-120)
    CAPACITOR_DEFAULT_PORT (int, default 16127, range 1-65535)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from capacitor.enums import EnumFileOperation
from capacitor.models.model_node_address import DEFAULT_FLUX_API_PORT
from capacitor.utils.util_env_parsing import parse_env_float, parse_env_int


class ModelFallbackConfig(BaseModel):
    """Constants of the node selection / fallback / retry engine.

    Attributes:
        max_attempts_first_node: Attempts on the first node of the rotation
        retry_delay_seconds: Fixed delay between attempts on the first node
        max_nodes: Cap on the ordered node list length
        bulk_concurrency: Width of the bulk-delete concurrency window
        discovery_timeout_seconds: Timeout of each oracle call
        default_port: Port assumed when a node address has none
        *_timeout_seconds: Hard per-attempt timeout of each adapter
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts_first_node: int = Field(default=3, ge=1, le=10)
    retry_delay_seconds: float = Field(default=2.0, ge=0.0, le=60.0)
    max_nodes: int = Field(default=5, ge=1, le=50)
    bulk_concurrency: int = Field(default=5, ge=1, le=50)
    discovery_timeout_seconds: float = Field(default=5.0, gt=0.0, le=120.0)
    default_port: int = Field(default=DEFAULT_FLUX_API_PORT, ge=1, le=65535)

    list_timeout_seconds: float = Field(default=10.0, gt=0.0)
    download_timeout_seconds: float = Field(default=60.0, gt=0.0)
    save_timeout_seconds: float = Field(default=60.0, gt=0.0)
    upload_binary_timeout_seconds: float = Field(default=60.0, gt=0.0)
    upload_binary_fallback_timeout_seconds: float = Field(default=120.0, gt=0.0)
    delete_timeout_seconds: float = Field(default=60.0, gt=0.0)
    exec_timeout_seconds: float = Field(default=60.0, gt=0.0)
    app_exec_timeout_seconds: float = Field(default=120.0, gt=0.0)
    logs_timeout_seconds: float = Field(default=10.0, gt=0.0)
    stats_timeout_seconds: float = Field(default=5.0, gt=0.0)

    def timeout_for(self, operation: EnumFileOperation) -> float:
        """Return the per-attempt timeout of an operation."""
        return {
            EnumFileOperation.LIST: self.list_timeout_seconds,
            EnumFileOperation.DOWNLOAD: self.download_timeout_seconds,
            EnumFileOperation.SAVE: self.save_timeout_seconds,
            EnumFileOperation.UPLOAD_BINARY: self.upload_binary_timeout_seconds,
            EnumFileOperation.DELETE: self.delete_timeout_seconds,
            EnumFileOperation.EXEC: self.exec_timeout_seconds,
            EnumFileOperation.APP_EXEC: self.app_exec_timeout_seconds,
            EnumFileOperation.LOGS: self.logs_timeout_seconds,
            EnumFileOperation.STATS: self.stats_timeout_seconds,
        }[operation]

    @classmethod
    def from_env(cls) -> ModelFallbackConfig:
        """Build a config from ``CAPACITOR_*`` environment variables.

        Raises:
            ConfigurationError: If a variable holds a non-numeric value.
        """
        return cls(
            max_attempts_first_node=parse_env_int(
                "CAPACITOR_MAX_ATTEMPTS_FIRST_NODE", 3, min_value=1, max_value=10
            ),
            retry_delay_seconds=parse_env_float(
                "CAPACITOR_RETRY_DELAY_SECONDS", 2.0, min_value=0.0, max_value=60.0
            ),
            max_nodes=parse_env_int("CAPACITOR_MAX_NODES", 5, min_value=1, max_value=50),
            bulk_concurrency=parse_env_int(
                "CAPACITOR_BULK_CONCURRENCY", 5, min_value=1, max_value=50
            ),
            discovery_timeout_seconds=parse_env_float(
                "CAPACITOR_DISCOVERY_TIMEOUT_SECONDS", 5.0, min_value=0.1, max_value=120.0
            ),
            default_port=parse_env_int(
                "CAPACITOR_DEFAULT_PORT",
                DEFAULT_FLUX_API_PORT,
                min_value=1,
                max_value=65535,
            ),
        )


__all__ = ["ModelFallbackConfig"]
