# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Socket.io Exec Handler.

Runs a shell command inside an application container through the FluxOS
terminal namespace, the same channel the FluxOS web terminal uses. This is
more reliable than the REST ``appexec`` endpoint for WP-CLI commands.

Protocol (namespace ``/terminal`` on the node DNS URL):
    1. emit ``exec(zelidauth, "{component}_{app}", "/bin/sh", "", "")``
    2. after ``command_delay`` seconds, emit ``cmd("{cmd} && exit 0\\n")``
    3. collect ``show`` events until one of:
        - ``end`` event: success
        - disconnect with output collected: success
        - ``idle_timeout`` seconds without new output: success
        - ``timeout`` seconds overall: success if any output, else timeout

The collected text is raw terminal output (prompts, echoes); callers clean
it with ``capacitor.utils.util_exec_output``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Optional, Union

import socketio

from capacitor.enums import EnumTransportType
from capacitor.errors import ModelErrorContext, TransportError, TransportTimeoutError
from capacitor.handlers.handler_flux_node import app_exec_name
from capacitor.models.model_node_address import ModelNodeAddress
from capacitor.models.model_operation_outcome import ModelOperationOutcome

logger = logging.getLogger(__name__)

TERMINAL_NAMESPACE = "/terminal"
DEFAULT_EXEC_TIMEOUT_SECONDS = 60.0
DEFAULT_IDLE_TIMEOUT_SECONDS = 3.0
DEFAULT_COMMAND_DELAY_SECONDS = 0.5
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0

SocketClientFactory = Callable[[], socketio.AsyncClient]


def _default_client_factory() -> socketio.AsyncClient:
    return socketio.AsyncClient(reconnection=False)


class HandlerExecSocket:
    """Socket.io terminal adapter.

    Attributes:
        timeout: Overall limit of one command, in seconds
        idle_timeout: Output silence that ends a command, in seconds
    """

    def __init__(
        self,
        client_factory: Optional[SocketClientFactory] = None,
        timeout: float = DEFAULT_EXEC_TIMEOUT_SECONDS,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT_SECONDS,
        command_delay: float = DEFAULT_COMMAND_DELAY_SECONDS,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
    ) -> None:
        self._client_factory = client_factory or _default_client_factory
        self._timeout = timeout
        self._idle_timeout = idle_timeout
        self._command_delay = command_delay
        self._connect_timeout = connect_timeout

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def idle_timeout(self) -> float:
        return self._idle_timeout

    async def exec_command(
        self,
        node: ModelNodeAddress,
        app_name: str,
        component: str,
        cmd: Union[str, Sequence[str]],
        auth_header: str,
    ) -> ModelOperationOutcome:
        """Run ``cmd`` in the container and return its raw terminal output."""
        command = cmd if isinstance(cmd, str) else " ".join(cmd)
        container = app_exec_name(app_name, component)
        context = ModelErrorContext(
            transport_type=EnumTransportType.SOCKET_IO,
            operation="exec",
            target_name=node.address,
        )

        events: asyncio.Queue[tuple[str, object]] = asyncio.Queue()
        client = self._client_factory()
        self._register(client, events)

        try:
            await client.connect(
                node.dns_url,
                namespaces=[TERMINAL_NAMESPACE],
                transports=["websocket", "polling"],
                wait_timeout=self._connect_timeout,
            )
        except socketio.exceptions.ConnectionError as e:
            raise TransportError(f"Connection failed: {e}", context=context) from e

        try:
            await client.emit(
                "exec",
                (auth_header, container, "/bin/sh", "", ""),
                namespace=TERMINAL_NAMESPACE,
            )
            await asyncio.sleep(self._command_delay)
            await client.emit(
                "cmd", f"{command} && exit 0\n", namespace=TERMINAL_NAMESPACE
            )
            output = await self._collect(events, context)
        finally:
            await client.disconnect()

        logger.debug(
            "Socket exec finished",
            extra={"node": node.address, "container": container, "chars": len(output)},
        )
        return ModelOperationOutcome.success(output)

    def _register(
        self, client: socketio.AsyncClient, events: asyncio.Queue[tuple[str, object]]
    ) -> None:
        def on_show(data: object) -> None:
            events.put_nowait(("show", data))

        def on_end(*_: object) -> None:
            events.put_nowait(("end", None))

        def on_error(err: object = None) -> None:
            events.put_nowait(("error", err))

        def on_disconnect(*args: object) -> None:
            events.put_nowait(("disconnect", args[0] if args else "io client disconnect"))

        client.on("show", on_show, namespace=TERMINAL_NAMESPACE)
        client.on("end", on_end, namespace=TERMINAL_NAMESPACE)
        client.on("error", on_error, namespace=TERMINAL_NAMESPACE)
        client.on("disconnect", on_disconnect, namespace=TERMINAL_NAMESPACE)

    async def _collect(
        self,
        events: asyncio.Queue[tuple[str, object]],
        context: ModelErrorContext,
    ) -> str:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._timeout
        chunks: list[str] = []

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            wait = min(remaining, self._idle_timeout) if chunks else remaining
            try:
                kind, data = await asyncio.wait_for(events.get(), timeout=wait)
            except asyncio.TimeoutError:
                break

            if kind == "show":
                if isinstance(data, str):
                    chunks.append(data)
            elif kind == "end":
                return "".join(chunks)
            elif kind == "disconnect":
                if chunks:
                    return "".join(chunks)
                raise TransportError(f"Disconnected: {data}", context=context)
            elif kind == "error":
                message = data.get("message") if isinstance(data, dict) else data
                raise TransportError(str(message or "Socket error"), context=context)

        if chunks:
            return "".join(chunks)
        raise TransportTimeoutError("Command timed out", context=context)


__all__: list[str] = [
    "DEFAULT_EXEC_TIMEOUT_SECONDS",
    "HandlerExecSocket",
    "SocketClientFactory",
    "TERMINAL_NAMESPACE",
]
