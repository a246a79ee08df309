# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Transport Type Enumeration.

Defines the transport types Capacitor talks over. Used for error context
and log fields.
"""

from enum import Enum


class EnumTransportType(str, Enum):
    """Transport types for Capacitor components.

    Attributes:
        HTTP: Plain HTTP/REST (node management API, FDM, HAProxy, FluxOS API)
        SOCKET_IO: socket.io terminal channel used for remote exec
        RUNTIME: Dashboard server internals
    """

    HTTP = "http"
    SOCKET_IO = "socket_io"
    RUNTIME = "runtime"


__all__ = ["EnumTransportType"]
