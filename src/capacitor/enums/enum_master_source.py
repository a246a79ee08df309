# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Master Source Enumeration.

Provenance tag for a discovered master node: which oracle answered.
"""

from enum import Enum


class EnumMasterSource(str, Enum):
    """Oracles that can designate the master node of an application.

    Attributes:
        FDM_EU: FDM regional server in Europe (tried first)
        FDM_USA: FDM regional server in the USA
        FDM_ASIA: FDM regional server in Asia
        HAPROXY: HAProxy statistics page of the app domain (fallback oracle)
        NONE: No oracle produced an answer
    """

    FDM_EU = "fdm-eu"
    FDM_USA = "fdm-usa"
    FDM_ASIA = "fdm-asia"
    HAPROXY = "haproxy"
    NONE = "none"


__all__ = ["EnumMasterSource"]
