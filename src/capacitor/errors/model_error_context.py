# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Error Context Configuration Model.

Bundles the common structured fields of Capacitor errors so that error
constructors stay short while remaining strongly typed.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from capacitor.enums import EnumTransportType


class ModelErrorContext(BaseModel):
    """Structured context attached to a CapacitorError.

    Attributes:
        transport_type: Transport the failing operation used
        operation: Operation being performed (list, delete, detect_master, ...)
        target_name: Node address, oracle URL or other target
        correlation_id: Fallback session correlation ID

    Example:
        >>> context = ModelErrorContext(
        ...     transport_type=EnumTransportType.HTTP,
        ...     operation="delete",
        ...     target_name="10.0.0.5:16127",
        ... )
        >>> raise NodeError("Node 10.0.0.5 returned 502", context=context)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    transport_type: Optional[EnumTransportType] = Field(
        default=None,
        description="Transport used by the failing operation",
    )
    operation: Optional[str] = Field(
        default=None,
        description="Operation being performed",
    )
    target_name: Optional[str] = Field(
        default=None,
        description="Target node, oracle or endpoint",
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Fallback session correlation ID",
    )


__all__ = ["ModelErrorContext"]
