# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Fallback Executor Service.

Executes a single-node operation against an ordered node list.

State Machine:
    IDLE -> ATTEMPTING(node, attempt) -> SUCCESS(payload, node) | EXHAUSTED(last_error)

Rules:
    1. An empty list is immediately EXHAUSTED("No nodes available").
    2. Rotation starts at the sticky active node of (app, component) when its
       host is still in the list, otherwise at the list head.
    3. The first rotation position gets ``max_attempts_first_node`` attempts
       with ``retry_delay_seconds`` between them; every other position gets
       exactly one attempt.
    4. The first success stops the session and becomes the active node.
    5. Every error (transport or node) is recorded as the last error and the
       next scheduled attempt runs.
    6. Exhaustion reports the error of the LAST attempt.

Concurrency:
    Attempts within one session are strictly sequential; two nodes are never
    contacted concurrently for one operation, so mutating operations cannot
    take effect twice. The active-node cache is shared between sessions
    without a lock; a stale read costs at most one extra failed attempt.

Example:
    >>> executor = ServiceFallbackExecutor()
    >>> result = await executor.execute(
    ...     EnumFileOperation.DELETE, nodes, delete_on_node,
    ...     app_name="wordpress", component="wp",
    ... )
    >>> result.node.address
    '10.0.0.9:16127'
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Optional
from uuid import UUID

from capacitor.enums import EnumFallbackState, EnumFileOperation, EnumOutcomeKind
from capacitor.errors import ExhaustionError, ModelErrorContext, NodeError, TransportError
from capacitor.models.model_fallback_config import ModelFallbackConfig
from capacitor.models.model_fallback_result import (
    ModelAttemptRecord,
    ModelFallbackResult,
    ModelNodeSwitchEvent,
)
from capacitor.models.model_node_address import ModelNodeAddress
from capacitor.models.model_operation_outcome import ModelOperationOutcome
from capacitor.protocols.protocol_node_operation import ProtocolNodeOperation
from capacitor.services.service_node_ordering import rotate
from capacitor.utils.correlation import generate_correlation_id
from capacitor.utils.util_error_sanitization import sanitize_error_string

logger = logging.getLogger(__name__)

NO_NODES_AVAILABLE = "No nodes available"
PREVIOUS_NODE_FAILED = "previous node failed"

NodeSwitchCallback = Callable[[ModelNodeSwitchEvent], None]


class ActiveNodeCache:
    """Sticky active node per (application, component).

    Read at session start, written at session success.
    """

    def __init__(self) -> None:
        self._nodes: dict[tuple[str, str], ModelNodeAddress] = {}

    def get(self, app_name: str, component: str) -> Optional[ModelNodeAddress]:
        return self._nodes.get((app_name, component))

    def set(self, app_name: str, component: str, node: ModelNodeAddress) -> None:
        self._nodes[(app_name, component)] = node

    def clear(self, app_name: str, component: str) -> None:
        self._nodes.pop((app_name, component), None)

    def clear_all(self) -> None:
        self._nodes.clear()

    def __len__(self) -> int:
        return len(self._nodes)


class FallbackSession:
    """Mutable state of one user-initiated operation.

    The rotation is computed once at construction and never reordered.
    """

    def __init__(
        self,
        operation: EnumFileOperation,
        nodes: Sequence[ModelNodeAddress],
        previous_active: Optional[ModelNodeAddress],
        correlation_id: UUID,
    ) -> None:
        self.operation = operation
        self.nodes: tuple[ModelNodeAddress, ...] = tuple(nodes)
        self.previous_active = previous_active
        self.correlation_id = correlation_id
        self.state = EnumFallbackState.IDLE
        self.last_error = ""
        self.attempts: list[ModelAttemptRecord] = []

        start = 0
        if previous_active is not None:
            # Host match; the candidate keeps its own port.
            start = next(
                (i for i, n in enumerate(self.nodes) if n.same_host(previous_active)),
                0,
            )
        self.rotation: list[ModelNodeAddress] = rotate(self.nodes, start)

    @property
    def had_failure(self) -> bool:
        return any(r.kind != EnumOutcomeKind.SUCCESS for r in self.attempts)

    def record(
        self,
        node: ModelNodeAddress,
        position: int,
        attempt: int,
        outcome: ModelOperationOutcome,
    ) -> None:
        self.attempts.append(
            ModelAttemptRecord(
                node=node,
                position=position,
                attempt=attempt,
                kind=outcome.kind,
                message=outcome.message,
            )
        )
        if not outcome.is_success:
            self.last_error = outcome.message

    def switch_event(self, new_node: ModelNodeAddress) -> Optional[ModelNodeSwitchEvent]:
        """Event for a success on ``new_node``, or None when nothing switched."""
        if self.previous_active is not None and new_node.same_host(self.previous_active):
            return None
        if self.previous_active is None and not self.had_failure:
            return None
        return ModelNodeSwitchEvent(
            operation=self.operation.display_name,
            previous_node=self.previous_active,
            new_node=new_node,
            reason=self.last_error or PREVIOUS_NODE_FAILED,
        )

    def result(
        self,
        payload: object = None,
        node: Optional[ModelNodeAddress] = None,
        switch_event: Optional[ModelNodeSwitchEvent] = None,
    ) -> ModelFallbackResult:
        return ModelFallbackResult(
            state=self.state,
            operation=self.operation.display_name,
            payload=payload,
            node=node,
            last_error=self.last_error,
            attempts=tuple(self.attempts),
            switch_event=switch_event,
            correlation_id=self.correlation_id,
        )


class ServiceFallbackExecutor:
    """Runs fallback sessions.

    Attributes:
        config: Retry and timeout constants
        active_nodes: Sticky active-node cache shared across sessions
    """

    def __init__(
        self,
        config: Optional[ModelFallbackConfig] = None,
        active_nodes: Optional[ActiveNodeCache] = None,
        on_node_switch: Optional[NodeSwitchCallback] = None,
    ) -> None:
        self._config = config or ModelFallbackConfig()
        self._active_nodes = active_nodes if active_nodes is not None else ActiveNodeCache()
        self._on_node_switch = on_node_switch

    @property
    def config(self) -> ModelFallbackConfig:
        return self._config

    @property
    def active_nodes(self) -> ActiveNodeCache:
        return self._active_nodes

    async def execute(
        self,
        operation: EnumFileOperation,
        nodes: Sequence[ModelNodeAddress],
        node_operation: ProtocolNodeOperation,
        *,
        app_name: str = "",
        component: str = "",
        timeout: Optional[float] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ModelFallbackResult:
        """Run one fallback session and return its terminal state.

        Args:
            operation: Operation being performed (labels and log fields)
            nodes: Ordered node list; computed by the caller
            node_operation: Single-node operation
            app_name: Application, for the active-node cache
            component: Component, for the active-node cache
            timeout: Hard timeout of each attempt; None leaves timing to the
                operation itself
            correlation_id: Session ID; generated when omitted

        Returns:
            SUCCESS or EXHAUSTED result. Transport and node errors never
            escape; other exceptions propagate.
        """
        session = FallbackSession(
            operation=operation,
            nodes=nodes,
            previous_active=self._active_nodes.get(app_name, component),
            correlation_id=correlation_id or generate_correlation_id(),
        )

        if not session.rotation:
            session.state = EnumFallbackState.EXHAUSTED
            session.last_error = NO_NODES_AVAILABLE
            logger.warning(
                "%s: no nodes available (correlation_id=%s)",
                operation.display_name,
                session.correlation_id,
                extra={"app_name": app_name, "component": component},
            )
            return session.result()

        session.state = EnumFallbackState.ATTEMPTING
        max_first = self._config.max_attempts_first_node

        for position, node in enumerate(session.rotation):
            max_attempts = max_first if position == 0 else 1
            for attempt in range(1, max_attempts + 1):
                logger.debug(
                    "%s on %s (attempt %d/%d, correlation_id=%s)",
                    operation.display_name,
                    node.address,
                    attempt,
                    max_attempts,
                    session.correlation_id,
                    extra={
                        "app_name": app_name,
                        "node": node.address,
                        "attempt": attempt,
                        "max_attempts": max_attempts,
                    },
                )
                outcome = await self._attempt(node_operation, node, timeout)
                session.record(node, position, attempt, outcome)

                if outcome.is_success:
                    return self._succeed(session, node, outcome, app_name, component)

                logger.info(
                    "%s failed on %s (attempt %d/%d, correlation_id=%s): %s",
                    operation.display_name,
                    node.address,
                    attempt,
                    max_attempts,
                    session.correlation_id,
                    sanitize_error_string(outcome.message),
                    extra={
                        "app_name": app_name,
                        "node": node.address,
                        "attempt": attempt,
                        "max_attempts": max_attempts,
                        "outcome": outcome.kind.value,
                    },
                )
                if attempt < max_attempts:
                    await asyncio.sleep(self._config.retry_delay_seconds)

        session.state = EnumFallbackState.EXHAUSTED
        logger.warning(
            "%s exhausted %d nodes (correlation_id=%s): %s",
            operation.display_name,
            len(session.rotation),
            session.correlation_id,
            sanitize_error_string(session.last_error),
            extra={"app_name": app_name, "attempts": len(session.attempts)},
        )
        return session.result()

    async def execute_or_raise(
        self,
        operation: EnumFileOperation,
        nodes: Sequence[ModelNodeAddress],
        node_operation: ProtocolNodeOperation,
        *,
        app_name: str = "",
        component: str = "",
        timeout: Optional[float] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ModelFallbackResult:
        """Like :meth:`execute`, but exhaustion raises.

        Raises:
            ExhaustionError: ``str()`` is ``"<failure prefix>. <last error>"``.
        """
        result = await self.execute(
            operation,
            nodes,
            node_operation,
            app_name=app_name,
            component=component,
            timeout=timeout,
            correlation_id=correlation_id,
        )
        if not result.succeeded:
            raise exhaustion_error(operation, result)
        return result

    def _succeed(
        self,
        session: FallbackSession,
        node: ModelNodeAddress,
        outcome: ModelOperationOutcome,
        app_name: str,
        component: str,
    ) -> ModelFallbackResult:
        session.state = EnumFallbackState.SUCCESS
        event = session.switch_event(node)
        self._active_nodes.set(app_name, component, node)
        if event is not None:
            logger.info(
                "Switched to node %s (correlation_id=%s)",
                node.address,
                session.correlation_id,
                extra={
                    "app_name": app_name,
                    "node": node.address,
                    "previous_node": (
                        session.previous_active.address
                        if session.previous_active
                        else None
                    ),
                },
            )
            if self._on_node_switch is not None:
                self._on_node_switch(event)
        return session.result(payload=outcome.payload, node=node, switch_event=event)

    async def _attempt(
        self,
        node_operation: ProtocolNodeOperation,
        node: ModelNodeAddress,
        timeout: Optional[float],
    ) -> ModelOperationOutcome:
        try:
            if timeout is not None:
                return await asyncio.wait_for(node_operation(node), timeout=timeout)
            return await node_operation(node)
        except asyncio.TimeoutError:
            return ModelOperationOutcome.transport_error(
                f"Node {node.host} timed out after {timeout:g}s"
            )
        except TransportError as e:
            return ModelOperationOutcome.transport_error(e.message)
        except NodeError as e:
            return ModelOperationOutcome.node_error(e.message)


def exhaustion_error(
    operation: EnumFileOperation, result: ModelFallbackResult
) -> ExhaustionError:
    """Build the user-visible error of an exhausted session."""
    last_error = result.last_error or NO_NODES_AVAILABLE
    return ExhaustionError(
        f"{operation.failure_prefix}. {last_error}",
        operation=operation.display_name,
        last_error=last_error,
        nodes_tried=result.nodes_tried,
        attempts=len(result.attempts),
        context=ModelErrorContext(
            operation=operation.value,
            correlation_id=result.correlation_id,
        ),
    )


__all__: list[str] = [
    "NO_NODES_AVAILABLE",
    "ActiveNodeCache",
    "FallbackSession",
    "NodeSwitchCallback",
    "ServiceFallbackExecutor",
    "exhaustion_error",
]
