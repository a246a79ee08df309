# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Tests for the socket.io terminal exec adapter.

Test Pattern:
    A fake socket client records handlers registered with ``on`` and, when
    the ``cmd`` event is emitted, replays a scripted list of server events
    into those handlers. No socket is opened.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Optional

import pytest
import socketio

from capacitor.errors import TransportError, TransportTimeoutError
from capacitor.handlers.handler_exec_socket import TERMINAL_NAMESPACE, HandlerExecSocket
from capacitor.models.model_node_address import ModelNodeAddress
from tests.helpers.util_http import ZELIDAUTH_HEADER

pytestmark = [pytest.mark.unit]

NODE = ModelNodeAddress.parse("10.0.0.5:16127")


class FakeSocketClient:
    """Stand-in for socketio.AsyncClient driven by a script of server events."""

    def __init__(
        self,
        script: list[tuple[str, object]],
        connect_error: Optional[Exception] = None,
    ) -> None:
        self.script = script
        self.connect_error = connect_error
        self.handlers: dict[str, Callable[..., None]] = {}
        self.emitted: list[tuple[str, object]] = []
        self.connected_to: Optional[str] = None
        self.connect_kwargs: dict[str, object] = {}
        self.disconnected = False

    def on(self, event: str, handler: Callable[..., None], namespace: str = "/") -> None:
        assert namespace == TERMINAL_NAMESPACE
        self.handlers[event] = handler

    async def connect(self, url: str, **kwargs: object) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected_to = url
        self.connect_kwargs = kwargs

    async def emit(self, event: str, data: object = None, namespace: str = "/") -> None:
        self.emitted.append((event, data))
        if event != "cmd":
            return
        for name, payload in self.script:
            if name == "end":
                self.handlers[name]()
            elif name == "error" and payload is None:
                self.handlers[name]()
            else:
                self.handlers[name](payload)

    async def disconnect(self) -> None:
        self.disconnected = True


def _handler(client: FakeSocketClient, **kwargs: float) -> HandlerExecSocket:
    options = {"command_delay": 0.0, "idle_timeout": 0.05, "timeout": 1.0}
    options.update(kwargs)
    return HandlerExecSocket(client_factory=lambda: client, **options)


class TestExecCommand:
    """Completion and failure rules of one terminal session."""

    async def test_protocol_and_end_event(self) -> None:
        client = FakeSocketClient(
            [("show", "$ wp core version\r\n"), ("show", "6.5.2\r\n"), ("end", None)]
        )
        outcome = await _handler(client).exec_command(
            NODE, "wordpress", "wp", ["wp", "core", "version"], ZELIDAUTH_HEADER
        )

        assert outcome.payload == "$ wp core version\r\n6.5.2\r\n"
        assert client.connected_to == "https://10-0-0-5-16127.node.api.runonflux.io"
        assert client.connect_kwargs["namespaces"] == [TERMINAL_NAMESPACE]
        assert client.emitted == [
            ("exec", (ZELIDAUTH_HEADER, "wp_wordpress", "/bin/sh", "", "")),
            ("cmd", "wp core version && exit 0\n"),
        ]
        assert client.disconnected

    async def test_idle_timeout_with_output_is_success(self) -> None:
        client = FakeSocketClient([("show", "done\n")])
        outcome = await _handler(client).exec_command(
            NODE, "wordpress", "wp", "ls", ZELIDAUTH_HEADER
        )
        assert outcome.payload == "done\n"

    async def test_timeout_without_output(self) -> None:
        client = FakeSocketClient([])
        with pytest.raises(TransportTimeoutError, match="Command timed out"):
            await _handler(client, timeout=0.05).exec_command(
                NODE, "wordpress", "wp", "ls", ZELIDAUTH_HEADER
            )
        assert client.disconnected

    async def test_disconnect_with_output_is_success(self) -> None:
        client = FakeSocketClient([("show", "partial"), ("disconnect", "transport close")])
        outcome = await _handler(client).exec_command(
            NODE, "wordpress", "wp", "ls", ZELIDAUTH_HEADER
        )
        assert outcome.payload == "partial"

    async def test_disconnect_without_output(self) -> None:
        client = FakeSocketClient([("disconnect", "transport close")])
        with pytest.raises(TransportError, match="Disconnected: transport close"):
            await _handler(client).exec_command(
                NODE, "wordpress", "wp", "ls", ZELIDAUTH_HEADER
            )

    async def test_error_event(self) -> None:
        client = FakeSocketClient([("error", {"message": "Unauthorized"})])
        with pytest.raises(TransportError, match="Unauthorized"):
            await _handler(client).exec_command(
                NODE, "wordpress", "wp", "ls", ZELIDAUTH_HEADER
            )

    async def test_error_event_without_message(self) -> None:
        client = FakeSocketClient([("error", None)])
        with pytest.raises(TransportError, match="Socket error"):
            await _handler(client).exec_command(
                NODE, "wordpress", "wp", "ls", ZELIDAUTH_HEADER
            )

    async def test_non_string_output_ignored(self) -> None:
        client = FakeSocketClient([("show", {"binary": True}), ("show", "ok"), ("end", None)])
        outcome = await _handler(client).exec_command(
            NODE, "wordpress", "wp", "ls", ZELIDAUTH_HEADER
        )
        assert outcome.payload == "ok"

    async def test_connection_failure(self) -> None:
        client = FakeSocketClient(
            [], connect_error=socketio.exceptions.ConnectionError("handshake refused")
        )
        with pytest.raises(TransportError, match="Connection failed: handshake refused"):
            await _handler(client).exec_command(
                NODE, "wordpress", "wp", "ls", ZELIDAUTH_HEADER
            )
        assert not client.disconnected
