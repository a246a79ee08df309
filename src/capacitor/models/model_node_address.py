# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Node Address Model.

A ``(host, port)`` pair identifying one running instance of an application.

Equivalence:
    Two addresses are equivalent when their HOST parts match, regardless of
    port or of whether they were written colon-joined or as separate fields.
    ``same_host`` implements that relation; it is used for master matching
    and deduplication everywhere. ``==`` stays strict (host AND port) so that
    a caller-supplied port is never silently replaced.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from capacitor.errors import ConfigurationError

DEFAULT_FLUX_API_PORT: int = 16127
"""Well-known FluxOS management API port."""

FLUX_NODE_DNS_SUFFIX: str = "node.api.runonflux.io"


def host_of(address: str) -> str:
    """Return the host part of a ``host[:port]`` string."""
    return address.strip().split(":")[0]


def to_flux_api_port(address: str) -> str:
    """Rewrite ``host[:port]`` to ``host:16127``.

    FDM reports the application's exposed port, not the node's management
    port; the two must not be confused.

    Example:
        >>> to_flux_api_port("10.0.0.9:31000")
        '10.0.0.9:16127'
    """
    return f"{host_of(address)}:{DEFAULT_FLUX_API_PORT}"


class ModelNodeAddress(BaseModel):
    """One node of a multi-instance FluxCloud application.

    Attributes:
        host: IP address or hostname of the node
        port: FluxOS management API port of the node

    Example:
        >>> node = ModelNodeAddress.parse("10.0.0.5")
        >>> node.address
        '10.0.0.5:16127'
        >>> node.same_host("10.0.0.5:16187")
        True
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str = Field(..., min_length=1, description="Node IP or hostname")
    port: int = Field(
        default=DEFAULT_FLUX_API_PORT,
        ge=1,
        le=65535,
        description="FluxOS management API port",
    )

    @field_validator("host")
    @classmethod
    def _strip_host(cls, value: str) -> str:
        value = value.strip()
        if not value or ":" in value:
            raise ValueError(f"host must be a bare host without port: {value!r}")
        return value

    @classmethod
    def parse(
        cls, raw: str, default_port: int = DEFAULT_FLUX_API_PORT
    ) -> ModelNodeAddress:
        """Parse ``host`` or ``host:port``.

        Raises:
            ConfigurationError: If the string is empty, the port is not numeric
                or out of range, or the host is malformed.
        """
        text = raw.strip()
        if not text:
            raise ConfigurationError("Empty node address")
        host, sep, port_text = text.partition(":")
        port = default_port
        if sep and port_text:
            try:
                port = int(port_text)
            except ValueError as e:
                raise ConfigurationError(f"Invalid port in node address {raw!r}") from e
        try:
            return cls(host=host, port=port)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid node address {raw!r}") from e

    @classmethod
    def parse_many(
        cls, raw: str, default_port: int = DEFAULT_FLUX_API_PORT
    ) -> list[ModelNodeAddress]:
        """Parse a comma-separated address list, skipping blank entries."""
        return [
            cls.parse(part, default_port)
            for part in raw.split(",")
            if part.strip()
        ]

    @property
    def address(self) -> str:
        """Colon-joined ``host:port`` form."""
        return f"{self.host}:{self.port}"

    @property
    def base_url(self) -> str:
        """Direct HTTP base URL of the node's management API."""
        return f"http://{self.host}:{self.port}"

    @property
    def dns_url(self) -> str:
        """HTTPS base URL through the Flux node DNS proxy."""
        dashed = self.host.replace(".", "-")
        return f"https://{dashed}-{self.port}.{FLUX_NODE_DNS_SUFFIX}"

    def same_host(self, other: ModelNodeAddress | str) -> bool:
        """Return True when ``other`` refers to the same host, ignoring ports."""
        other_host = other.host if isinstance(other, ModelNodeAddress) else host_of(other)
        return self.host == other_host

    def __str__(self) -> str:
        return self.address


__all__ = [
    "DEFAULT_FLUX_API_PORT",
    "FLUX_NODE_DNS_SUFFIX",
    "ModelNodeAddress",
    "host_of",
    "to_flux_api_port",
]
