# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Tests for the Capacitor error hierarchy."""

from __future__ import annotations

from uuid import uuid4

import pytest

from capacitor.enums import EnumErrorCode, EnumTransportType
from capacitor.errors import (
    CapacitorError,
    ConfigurationError,
    ExhaustionError,
    ModelErrorContext,
    NodeError,
    TransportError,
    TransportTimeoutError,
)

pytestmark = [pytest.mark.unit]


class TestCapacitorError:
    """Tests for structured context handling."""

    def test_context_fields_flattened(self) -> None:
        correlation_id = uuid4()
        error = CapacitorError(
            "Operation failed",
            context=ModelErrorContext(
                transport_type=EnumTransportType.HTTP,
                operation="list",
                target_name="10.0.0.5:16127",
                correlation_id=correlation_id,
            ),
            attempt=2,
        )
        assert str(error) == "Operation failed"
        assert error.error_code == EnumErrorCode.OPERATION_FAILED
        assert error.correlation_id == correlation_id
        assert error.context == {
            "attempt": 2,
            "transport_type": EnumTransportType.HTTP,
            "operation": "list",
            "target_name": "10.0.0.5:16127",
        }

    def test_without_context(self) -> None:
        error = CapacitorError("boom")
        assert error.context == {}
        assert error.correlation_id is None


class TestSubclasses:
    """Tests for the error codes and fields of each subclass."""

    def test_hierarchy(self) -> None:
        assert issubclass(TransportTimeoutError, TransportError)
        for cls in (ConfigurationError, TransportError, NodeError, ExhaustionError):
            assert issubclass(cls, CapacitorError)

    def test_error_codes(self) -> None:
        assert ConfigurationError("x").error_code == EnumErrorCode.INVALID_CONFIGURATION
        assert TransportError("x").error_code == EnumErrorCode.TRANSPORT_ERROR
        assert TransportTimeoutError("x").error_code == EnumErrorCode.TIMEOUT_ERROR
        assert NodeError("x").error_code == EnumErrorCode.NODE_ERROR

    def test_node_error_fields(self) -> None:
        error = NodeError("Node 10.0.0.5 returned 502", node="10.0.0.5:16127", status_code=502)
        assert error.node == "10.0.0.5:16127"
        assert error.status_code == 502

    def test_exhaustion_error(self) -> None:
        error = ExhaustionError(
            "Failed to delete. Node 10.0.0.5 returned 502",
            operation="Delete",
            last_error="Node 10.0.0.5 returned 502",
            nodes_tried=3,
            attempts=5,
        )
        assert str(error) == "Failed to delete. Node 10.0.0.5 returned 502"
        assert error.error_code == EnumErrorCode.NODES_EXHAUSTED
        assert error.description == (
            "All 3 nodes failed. Last error: Node 10.0.0.5 returned 502"
        )
        assert error.context["nodes_tried"] == 3
        assert error.context["attempts"] == 5
