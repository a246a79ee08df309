# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Directory listing models returned by the list operation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DIRECTORY_PERMISSIONS = "drwxr-xr-x"
FILE_PERMISSIONS = "-rw-r--r--"


class ModelFileInfo(BaseModel):
    """One entry of an application volume folder."""

    model_config = ConfigDict(frozen=True)

    name: str
    size: int = 0
    is_directory: bool = False
    modified_at: str = ""
    permissions: str = FILE_PERMISSIONS

    @classmethod
    def from_node_entry(cls, entry: dict[str, object]) -> ModelFileInfo:
        """Build from a ``getfolderinfo`` entry (camelCase keys, missing fields tolerated)."""
        is_directory = bool(entry.get("isDirectory") or False)
        size = entry.get("size") or 0
        return cls(
            name=str(entry.get("name", "")),
            size=int(size) if isinstance(size, (int, float)) else 0,
            is_directory=is_directory,
            modified_at=str(entry.get("modifiedAt") or ""),
            permissions=DIRECTORY_PERMISSIONS if is_directory else FILE_PERMISSIONS,
        )


class ModelDirectoryListing(BaseModel):
    """Contents of one folder."""

    model_config = ConfigDict(frozen=True)

    path: str = "/"
    files: tuple[ModelFileInfo, ...] = Field(default_factory=tuple)

    def to_api_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "files": [
                {
                    "name": f.name,
                    "size": f.size,
                    "isDirectory": f.is_directory,
                    "modifiedAt": f.modified_at,
                    "permissions": f.permissions,
                }
                for f in self.files
            ],
        }


__all__ = [
    "DIRECTORY_PERMISSIONS",
    "FILE_PERMISSIONS",
    "ModelDirectoryListing",
    "ModelFileInfo",
]
