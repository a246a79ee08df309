# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Capacitor Error Classes.

Error Hierarchy:
    CapacitorError (base)
    ├── ConfigurationError      missing caller input; fails fast, never retried
    ├── TransportError          DNS/connect/abort failures reaching a node or oracle
    │   └── TransportTimeoutError
    ├── NodeError               node reachable, application-level failure
    └── ExhaustionError         every node/attempt used without success

Propagation:
    TransportError and NodeError are recovered locally by the fallback
    executor and only surface through ExhaustionError.last_error.
    ConfigurationError and ExhaustionError are the only user-visible errors.

All errors:
    - Use EnumErrorCode for classification
    - Support chaining with ``raise ... from e``
    - Accept ModelErrorContext for bundled context parameters
    - Carry the session correlation ID when one is known
"""

from typing import Optional
from uuid import UUID

from capacitor.enums import EnumErrorCode
from capacitor.errors.model_error_context import ModelErrorContext


class CapacitorError(Exception):
    """Base error class for Capacitor.

    Structured Fields (via ModelErrorContext):
        transport_type: Transport of the failing operation
        operation: Operation being performed
        target_name: Node or endpoint
        correlation_id: Session correlation ID

    Example:
        >>> context = ModelErrorContext(operation="list", target_name="10.0.0.5")
        >>> raise CapacitorError("Operation failed", context=context, attempt=2)
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[EnumErrorCode] = None,
        context: Optional[ModelErrorContext] = None,
        **extra_context: object,
    ) -> None:
        """Initialize CapacitorError with structured fields.

        Args:
            message: Human-readable error message
            error_code: Error code (defaults to OPERATION_FAILED)
            context: Bundled context (transport_type, operation, etc.)
            **extra_context: Additional context information
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or EnumErrorCode.OPERATION_FAILED

        structured_context: dict[str, object] = dict(extra_context)
        self.correlation_id: Optional[UUID] = None
        if context is not None:
            if context.transport_type is not None:
                structured_context["transport_type"] = context.transport_type
            if context.operation is not None:
                structured_context["operation"] = context.operation
            if context.target_name is not None:
                structured_context["target_name"] = context.target_name
            self.correlation_id = context.correlation_id
        self.context = structured_context

    def __str__(self) -> str:
        return self.message


class ConfigurationError(CapacitorError):
    """Raised when required caller input or configuration is missing or invalid.

    Used for an empty node list, a missing credential, or a malformed
    environment variable. Never retried; no network activity precedes it.
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumErrorCode.INVALID_CONFIGURATION,
            context=context,
            **extra_context,
        )


class TransportError(CapacitorError):
    """Raised when a node or oracle cannot be reached.

    Example:
        >>> raise TransportError(
        ...     "Failed to connect to 10.0.0.5:16127",
        ...     context=ModelErrorContext(transport_type=EnumTransportType.HTTP),
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelErrorContext] = None,
        error_code: Optional[EnumErrorCode] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code or EnumErrorCode.TRANSPORT_ERROR,
            context=context,
            **extra_context,
        )


class TransportTimeoutError(TransportError):
    """Raised when an attempt exceeds its hard timeout."""

    def __init__(
        self,
        message: str,
        context: Optional[ModelErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            error_code=EnumErrorCode.TIMEOUT_ERROR,
            **extra_context,
        )


class NodeError(CapacitorError):
    """Raised when a node answered but reported failure.

    Covers non-2xx statuses and 2xx bodies carrying a ``status: "error"``
    envelope. The message is what the user eventually sees if this is the
    last node tried, so it should be the node's own diagnostic.

    Attributes:
        node: Address of the node that answered
        status_code: HTTP status, when the failure was a status code
    """

    def __init__(
        self,
        message: str,
        node: Optional[str] = None,
        status_code: Optional[int] = None,
        context: Optional[ModelErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumErrorCode.NODE_ERROR,
            context=context,
            **extra_context,
        )
        self.node = node
        self.status_code = status_code


class ExhaustionError(CapacitorError):
    """Raised when every scheduled attempt of a fallback session failed.

    ``str(error)`` is the user-displayable text: the operation's failure
    prefix followed by the last concrete error, e.g.
    ``"Failed to delete. Node 10.0.0.5 returned 502"``.

    Attributes:
        operation: Display name of the operation ("Delete", "List files", ...)
        last_error: Error message of the last attempt
        nodes_tried: Number of distinct nodes contacted
        attempts: Total number of attempts made
    """

    def __init__(
        self,
        message: str,
        operation: str,
        last_error: str,
        nodes_tried: int,
        attempts: int,
        context: Optional[ModelErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumErrorCode.NODES_EXHAUSTED,
            context=context,
            nodes_tried=nodes_tried,
            attempts=attempts,
            **extra_context,
        )
        self.operation = operation
        self.last_error = last_error
        self.nodes_tried = nodes_tried
        self.attempts = attempts

    @property
    def description(self) -> str:
        """Long form used in failure notifications."""
        return (
            f"All {self.nodes_tried} nodes failed. Last error: {self.last_error}"
        )


__all__ = [
    "CapacitorError",
    "ConfigurationError",
    "ExhaustionError",
    "NodeError",
    "TransportError",
    "TransportTimeoutError",
]
