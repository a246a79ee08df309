# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Dashboard backend runtime.

Exports:
    DashboardServer: aiohttp server exposing the multi-node operations
"""

from capacitor.runtime.dashboard_server import DashboardServer

__all__: list[str] = ["DashboardServer"]
