# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Downloaded file content model."""

from pydantic import BaseModel, ConfigDict


class ModelDownloadedFile(BaseModel):
    """Text content of a downloaded file and the content type the node declared."""

    model_config = ConfigDict(frozen=True)

    content: str
    content_type: str = "text/plain"


__all__ = ["ModelDownloadedFile"]
