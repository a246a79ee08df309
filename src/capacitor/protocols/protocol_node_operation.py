# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Protocol for single-node operations run by the fallback executor."""

from __future__ import annotations

from typing import Protocol

from capacitor.models.model_node_address import ModelNodeAddress
from capacitor.models.model_operation_outcome import ModelOperationOutcome


class ProtocolNodeOperation(Protocol):
    """A function of ``node -> outcome``.

    Implementations return a ``ModelOperationOutcome`` or raise
    ``TransportError`` / ``NodeError``; the executor treats both forms alike.
    Any other exception is a programming error and propagates.
    """

    async def __call__(self, node: ModelNodeAddress) -> ModelOperationOutcome: ...


__all__: list[str] = ["ProtocolNodeOperation"]
