# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Capacitor protocol definitions.

Exports:
    ProtocolMasterOracle: Strategy interface of master-node oracles
    ProtocolNodeOperation: Single-node operation run by the fallback executor
"""

from capacitor.protocols.protocol_master_oracle import ProtocolMasterOracle
from capacitor.protocols.protocol_node_operation import ProtocolNodeOperation

__all__: list[str] = ["ProtocolMasterOracle", "ProtocolNodeOperation"]
