# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Transport handlers.

Exports:
    HandlerFluxNode: Per-node management API adapters (httpx)
    HandlerExecSocket: Terminal command execution over socket.io
    HandlerFluxApi: FluxOS public API client (app locations)
"""

from capacitor.handlers.handler_exec_socket import HandlerExecSocket
from capacitor.handlers.handler_flux_api import HandlerFluxApi, sort_locations
from capacitor.handlers.handler_flux_node import (
    HandlerFluxNode,
    encode_path,
    split_file_path,
)

__all__: list[str] = [
    "HandlerExecSocket",
    "HandlerFluxApi",
    "HandlerFluxNode",
    "encode_path",
    "sort_locations",
    "split_file_path",
]
