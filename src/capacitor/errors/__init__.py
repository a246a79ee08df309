# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Capacitor Errors Module.

Exports:
    ModelErrorContext: Configuration model for bundled error context
    CapacitorError: Base error class
    ConfigurationError: Missing caller input or invalid configuration
    TransportError: Node or oracle unreachable
    TransportTimeoutError: Attempt exceeded its hard timeout
    NodeError: Node answered with an application-level failure
    ExhaustionError: Every node and attempt of a session failed

Error Sanitization Guidelines:
    NEVER include in error messages or context:
        - The zelidauth credential or any of its parts (signature, login phrase)
        - Full request headers

    SAFE to include:
        - Node host and port
        - HTTP status codes
        - Messages returned by the node's ``status: "error"`` envelope
        - Correlation IDs
"""

from capacitor.errors.capacitor_errors import (
    CapacitorError,
    ConfigurationError,
    ExhaustionError,
    NodeError,
    TransportError,
    TransportTimeoutError,
)
from capacitor.errors.model_error_context import ModelErrorContext

__all__ = [
    "CapacitorError",
    "ConfigurationError",
    "ExhaustionError",
    "ModelErrorContext",
    "NodeError",
    "TransportError",
    "TransportTimeoutError",
]
