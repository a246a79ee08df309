# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Fallback session result models."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from capacitor.enums import EnumFallbackState, EnumOutcomeKind
from capacitor.models.model_node_address import ModelNodeAddress


class ModelAttemptRecord(BaseModel):
    """One attempt of a session.

    Attributes:
        node: Node attempted
        position: Index of the node in the rotated list (0 = first)
        attempt: 1-based attempt number at this position
        kind: Outcome tag
        message: Error message, empty on success
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    node: ModelNodeAddress
    position: int = Field(..., ge=0)
    attempt: int = Field(..., ge=1)
    kind: EnumOutcomeKind
    message: str = ""


class ModelNodeSwitchEvent(BaseModel):
    """User-visible notice that a different node served an operation.

    Attributes:
        operation: Display name of the operation
        previous_node: Node active before the session, if any
        new_node: Node that succeeded and is now active
        reason: Error that caused the previous node to be abandoned
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    operation: str
    previous_node: Optional[ModelNodeAddress] = None
    new_node: ModelNodeAddress
    reason: str

    @property
    def title(self) -> str:
        return f"Switched to node {self.new_node.host}"


class ModelFallbackResult(BaseModel):
    """Terminal state of a fallback session.

    Either ``Success(payload, node)`` or ``Exhausted(last_error)``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    state: EnumFallbackState
    operation: str
    payload: object = None
    node: Optional[ModelNodeAddress] = None
    last_error: str = ""
    attempts: tuple[ModelAttemptRecord, ...] = Field(default_factory=tuple)
    switch_event: Optional[ModelNodeSwitchEvent] = None
    correlation_id: UUID

    @property
    def succeeded(self) -> bool:
        return self.state == EnumFallbackState.SUCCESS

    @property
    def nodes_tried(self) -> int:
        """Number of distinct rotation positions attempted."""
        return len({record.position for record in self.attempts})

    def attempts_on(self, node: ModelNodeAddress) -> int:
        """Number of attempts made against ``node``."""
        return sum(1 for record in self.attempts if record.node == node)


__all__ = ["ModelAttemptRecord", "ModelFallbackResult", "ModelNodeSwitchEvent"]
