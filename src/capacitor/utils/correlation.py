# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Correlation ID helpers.

Every fallback session gets one correlation ID; it is attached to each log
line of the session and to the errors the session raises.
"""

from __future__ import annotations

from uuid import UUID, uuid4


def generate_correlation_id() -> UUID:
    """Return a new UUID4 correlation ID."""
    return uuid4()


__all__: list[str] = ["generate_correlation_id"]
