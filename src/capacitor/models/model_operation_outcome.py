# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Operation Outcome Model.

Tagged result of one attempt against one node::

    Success(payload) | NodeError(message) | TransportError(message)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from capacitor.enums import EnumOutcomeKind


class ModelOperationOutcome(BaseModel):
    """Normalized result of a single-node adapter call."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: EnumOutcomeKind
    payload: object = None
    message: str = ""

    @classmethod
    def success(cls, payload: object) -> ModelOperationOutcome:
        return cls(kind=EnumOutcomeKind.SUCCESS, payload=payload)

    @classmethod
    def node_error(cls, message: str) -> ModelOperationOutcome:
        return cls(kind=EnumOutcomeKind.NODE_ERROR, message=message or "Unknown error")

    @classmethod
    def transport_error(cls, message: str) -> ModelOperationOutcome:
        return cls(
            kind=EnumOutcomeKind.TRANSPORT_ERROR,
            message=message or "Connection failed",
        )

    @property
    def is_success(self) -> bool:
        return self.kind == EnumOutcomeKind.SUCCESS


__all__ = ["ModelOperationOutcome"]
