# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Type-safe environment variable parsing.

Rules shared by both parsers:
    - Unset or empty variable: the default is returned
    - Non-numeric value: ConfigurationError (misconfiguration must be loud)
    - Out-of-range value: a warning is logged and the default is returned
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from capacitor.enums import EnumTransportType
from capacitor.errors import ConfigurationError, ModelErrorContext

logger = logging.getLogger(__name__)


def _raw_env(name: str) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _invalid(
    name: str,
    raw: str,
    expected: str,
    transport_type: Optional[EnumTransportType],
    service_name: str,
) -> ConfigurationError:
    context = ModelErrorContext(
        transport_type=transport_type,
        operation="parse_env",
        target_name=service_name,
    )
    return ConfigurationError(
        f"Invalid value for {name}: expected {expected}, got {raw!r}",
        context=context,
        env_var=name,
    )


def parse_env_int(
    name: str,
    default: int,
    *,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
    transport_type: Optional[EnumTransportType] = None,
    service_name: str = "capacitor",
) -> int:
    """Parse an integer environment variable.

    Args:
        name: Environment variable name
        default: Value used when unset, empty or out of range
        min_value: Inclusive lower bound
        max_value: Inclusive upper bound
        transport_type: Transport for error context
        service_name: Component name for error context

    Returns:
        The parsed value or the default.

    Raises:
        ConfigurationError: If the value is not an integer.
    """
    raw = _raw_env(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise _invalid(name, raw, "integer", transport_type, service_name) from e

    if (min_value is not None and value < min_value) or (
        max_value is not None and value > max_value
    ):
        logger.warning(
            "Environment variable %s=%s out of range [%s, %s], using default %s",
            name,
            value,
            min_value,
            max_value,
            default,
            extra={"env_var": name, "service_name": service_name},
        )
        return default
    return value


def parse_env_float(
    name: str,
    default: float,
    *,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
    transport_type: Optional[EnumTransportType] = None,
    service_name: str = "capacitor",
) -> float:
    """Parse a float environment variable.

    Same rules as :func:`parse_env_int`.

    Raises:
        ConfigurationError: If the value is not a number.
    """
    raw = _raw_env(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise _invalid(name, raw, "number", transport_type, service_name) from e

    if (min_value is not None and value < min_value) or (
        max_value is not None and value > max_value
    ):
        logger.warning(
            "Environment variable %s=%s out of range [%s, %s], using default %s",
            name,
            value,
            min_value,
            max_value,
            default,
            extra={"env_var": name, "service_name": service_name},
        )
        return default
    return value


__all__: list[str] = ["parse_env_float", "parse_env_int"]
