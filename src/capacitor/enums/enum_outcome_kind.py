# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Operation Outcome Kind Enumeration."""

from enum import Enum


class EnumOutcomeKind(str, Enum):
    """Result tag of one attempt against one node.

    Both error kinds trigger fallback identically; the distinction is kept
    for logging and reporting only.
    """

    SUCCESS = "success"
    NODE_ERROR = "node_error"
    TRANSPORT_ERROR = "transport_error"


__all__ = ["EnumOutcomeKind"]
