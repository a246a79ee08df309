# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Master-node discovery.

Exports:
    ServiceMasterDiscovery: Ranked oracle runner (never raises)
    OracleFdmRegion, fdm_oracles, fdm_index: FDM regional oracles
    OracleHaproxy, haproxy_stats_url: HAProxy statistics oracle
    detect_serving_node: FDMSERVERID cookie probe
"""

from capacitor.discovery.oracle_fdm import OracleFdmRegion, fdm_index, fdm_oracles
from capacitor.discovery.oracle_haproxy import (
    OracleHaproxy,
    haproxy_stats_url,
    parse_active_servers,
)
from capacitor.discovery.service_master_discovery import ServiceMasterDiscovery
from capacitor.discovery.util_serving_node import (
    detect_serving_node,
    parse_fdm_server_id,
)

__all__: list[str] = [
    "OracleFdmRegion",
    "OracleHaproxy",
    "ServiceMasterDiscovery",
    "detect_serving_node",
    "fdm_index",
    "fdm_oracles",
    "haproxy_stats_url",
    "parse_active_servers",
    "parse_fdm_server_id",
]
