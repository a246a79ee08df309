# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Capacitor Enumerations Module.

Exports:
    EnumErrorCode: Error classification codes
    EnumFallbackState: Fallback session lifecycle states
    EnumFileOperation: Multi-node operations and their user-facing labels
    EnumMasterSource: Oracle provenance of a master node
    EnumOutcomeKind: Per-attempt outcome tags
    EnumTransportType: Transport types for error context
"""

from capacitor.enums.enum_error_code import EnumErrorCode
from capacitor.enums.enum_fallback_state import EnumFallbackState
from capacitor.enums.enum_file_operation import EnumFileOperation
from capacitor.enums.enum_master_source import EnumMasterSource
from capacitor.enums.enum_outcome_kind import EnumOutcomeKind
from capacitor.enums.enum_transport_type import EnumTransportType

__all__ = [
    "EnumErrorCode",
    "EnumFallbackState",
    "EnumFileOperation",
    "EnumMasterSource",
    "EnumOutcomeKind",
    "EnumTransportType",
]
