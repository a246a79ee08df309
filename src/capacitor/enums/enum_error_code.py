# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Error Code Enumeration."""

from enum import Enum


class EnumErrorCode(str, Enum):
    """Classification codes attached to every CapacitorError."""

    OPERATION_FAILED = "OPERATION_FAILED"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    NODE_ERROR = "NODE_ERROR"
    NODES_EXHAUSTED = "NODES_EXHAUSTED"


__all__ = ["EnumErrorCode"]
