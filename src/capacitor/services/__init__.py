# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Node selection, fallback and file-operation services.

Exports:
    order_nodes, dedupe_by_host, rotate: Pure node ordering
    ServiceFallbackExecutor: Sequential fallback sessions with first-node retry
    ActiveNodeCache: Sticky active node per (app, component)
    FallbackSession: State of one session
    ServiceFileOperations: Multi-node file and command operations facade
    SiteUrlCache: WordPress site URL cache per (app, node host)
"""

from capacitor.services.service_fallback_executor import (
    ActiveNodeCache,
    FallbackSession,
    ServiceFallbackExecutor,
    exhaustion_error,
)
from capacitor.services.service_file_operations import ServiceFileOperations
from capacitor.services.service_node_ordering import dedupe_by_host, order_nodes, rotate
from capacitor.services.service_site_url_cache import SiteUrlCache

__all__: list[str] = [
    "ActiveNodeCache",
    "FallbackSession",
    "ServiceFallbackExecutor",
    "ServiceFileOperations",
    "SiteUrlCache",
    "dedupe_by_host",
    "exhaustion_error",
    "order_nodes",
    "rotate",
]
