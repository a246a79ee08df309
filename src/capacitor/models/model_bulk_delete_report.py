# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Bulk delete report models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ModelBulkDeleteFailure(BaseModel):
    """A path whose fallback session was exhausted."""

    model_config = ConfigDict(frozen=True)

    path: str
    message: str


class ModelBulkDeleteReport(BaseModel):
    """Accumulated outcome of a windowed bulk deletion.

    Partial failure within a window never cancels the rest of the window;
    failures accumulate here.
    """

    model_config = ConfigDict(frozen=True)

    deleted: tuple[str, ...] = Field(default_factory=tuple)
    failed: tuple[ModelBulkDeleteFailure, ...] = Field(default_factory=tuple)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    @property
    def total(self) -> int:
        return len(self.deleted) + len(self.failed)


__all__ = ["ModelBulkDeleteFailure", "ModelBulkDeleteReport"]
