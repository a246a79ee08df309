# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Dashboard server configuration model.

Environment Variables:
    CAPACITOR_HTTP_HOST: Bind address (default: 0.0.0.0)
    CAPACITOR_HTTP_PORT: Listen port (default: 3000)
    CAPACITOR_FLUX_API_URL: FluxOS public API base URL
"""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field

from capacitor.enums import EnumTransportType
from capacitor.utils.util_env_parsing import parse_env_int

DEFAULT_HTTP_HOST = "0.0.0.0"  # noqa: S104 - Required for container networking
DEFAULT_HTTP_PORT = 3000
DEFAULT_FLUX_API_URL = "https://api.runonflux.io"


class ModelDashboardConfig(BaseModel):
    """Bind address of the dashboard backend and the FluxOS API it consults."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str = DEFAULT_HTTP_HOST
    port: int = Field(default=DEFAULT_HTTP_PORT, ge=1, le=65535)
    flux_api_url: str = DEFAULT_FLUX_API_URL

    @classmethod
    def from_env(cls) -> ModelDashboardConfig:
        return cls(
            host=os.environ.get("CAPACITOR_HTTP_HOST") or DEFAULT_HTTP_HOST,
            port=parse_env_int(
                "CAPACITOR_HTTP_PORT",
                DEFAULT_HTTP_PORT,
                min_value=1,
                max_value=65535,
                transport_type=EnumTransportType.HTTP,
                service_name="dashboard_server",
            ),
            flux_api_url=(
                os.environ.get("CAPACITOR_FLUX_API_URL") or DEFAULT_FLUX_API_URL
            ).rstrip("/"),
        )


__all__ = [
    "DEFAULT_FLUX_API_URL",
    "DEFAULT_HTTP_HOST",
    "DEFAULT_HTTP_PORT",
    "ModelDashboardConfig",
]
