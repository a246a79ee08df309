# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Fallback Session State Enumeration.

States of one fallback session::

    IDLE -> ATTEMPTING -> {SUCCESS | EXHAUSTED}

SUCCESS and EXHAUSTED are terminal.
"""

from enum import Enum


class EnumFallbackState(str, Enum):
    """Lifecycle states of a fallback session."""

    IDLE = "idle"
    ATTEMPTING = "attempting"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"

    @property
    def is_terminal(self) -> bool:
        """Return True for SUCCESS and EXHAUSTED."""
        return self in (EnumFallbackState.SUCCESS, EnumFallbackState.EXHAUSTED)


__all__ = ["EnumFallbackState"]
