# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""File Operation Enumeration.

Names every operation that runs through the fallback executor, together with
the label shown in notifications and the prefix used for final failure text.
"""

from enum import Enum


class EnumFileOperation(str, Enum):
    """Multi-node operations exposed to the dashboard.

    Attributes:
        LIST: Directory listing
        DOWNLOAD: File download / read
        SAVE: Text file save
        UPLOAD_BINARY: Binary file upload
        DELETE: File or folder removal
        EXEC: Remote command execution (socket terminal)
        APP_EXEC: Remote command execution (REST appexec endpoint)
        LOGS: Container log tail
        STATS: Container resource statistics
    """

    LIST = "list"
    DOWNLOAD = "download"
    SAVE = "save"
    UPLOAD_BINARY = "upload_binary"
    DELETE = "delete"
    EXEC = "exec"
    APP_EXEC = "app_exec"
    LOGS = "logs"
    STATS = "stats"

    @property
    def display_name(self) -> str:
        """Human-readable operation name for notifications."""
        return _DISPLAY_NAMES[self]

    @property
    def failure_prefix(self) -> str:
        """Prefix of the user-visible message when every node failed."""
        return _FAILURE_PREFIXES[self]


_DISPLAY_NAMES: dict[EnumFileOperation, str] = {
    EnumFileOperation.LIST: "List files",
    EnumFileOperation.DOWNLOAD: "Download file",
    EnumFileOperation.SAVE: "Save file",
    EnumFileOperation.UPLOAD_BINARY: "Upload file",
    EnumFileOperation.DELETE: "Delete",
    EnumFileOperation.EXEC: "Execute command",
    EnumFileOperation.APP_EXEC: "Execute command",
    EnumFileOperation.LOGS: "View logs",
    EnumFileOperation.STATS: "View stats",
}

_FAILURE_PREFIXES: dict[EnumFileOperation, str] = {
    EnumFileOperation.LIST: "Failed to load files",
    EnumFileOperation.DOWNLOAD: "Failed to download file",
    EnumFileOperation.SAVE: "Failed to save file",
    EnumFileOperation.UPLOAD_BINARY: "Failed to upload file",
    EnumFileOperation.DELETE: "Failed to delete",
    EnumFileOperation.EXEC: "Failed to execute command",
    EnumFileOperation.APP_EXEC: "Failed to execute command",
    EnumFileOperation.LOGS: "Failed to fetch logs",
    EnumFileOperation.STATS: "Failed to fetch stats",
}


__all__ = ["EnumFileOperation"]
