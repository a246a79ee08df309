# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Capacitor - FluxCloud application dashboard backend.

This package provides the node-selection and failover engine used by the
Capacitor dashboard to operate on applications deployed across several
redundant FluxCloud nodes:

- Master discovery: FDM regional oracles and the HAProxy statistics oracle
- Node ordering: master-first, deduplicated, bounded node lists
- Fallback executor: retry-on-master then fall through to the remaining nodes
- Per-operation adapters: list, download, save, upload, delete, exec

Key Components:
    - ServiceMasterDiscovery: ranked oracle strategies, never raises
    - ServiceFallbackExecutor: SINGLE implementation of the retry/fallback policy
    - ServiceFileOperations: operation-shaped facade used by the CLI and server
"""

__version__ = "0.3.0"

__all__: list[str] = ["__version__"]
