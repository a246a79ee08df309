# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""In-memory node adapters for service and server tests.

The fakes mirror the adapter signatures of HandlerFluxNode and
HandlerExecSocket. Hosts listed in ``down`` raise TransportError; hosts
listed in ``node_errors`` raise NodeError with the given message. Stats
are served from ``stats`` keyed by container name.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Optional, Union

from capacitor.enums import EnumMasterSource
from capacitor.errors import NodeError, TransportError
from capacitor.models.model_directory_listing import ModelDirectoryListing, ModelFileInfo
from capacitor.models.model_downloaded_file import ModelDownloadedFile
from capacitor.models.model_master_detection import ModelMasterCandidate
from capacitor.models.model_node_address import ModelNodeAddress
from capacitor.models.model_operation_outcome import ModelOperationOutcome


class FakeNodeHandler:
    """Stand-in for HandlerFluxNode backed by a dict of files."""

    def __init__(
        self,
        files: Optional[dict[str, str]] = None,
        down: Sequence[str] = (),
        node_errors: Optional[dict[str, str]] = None,
    ) -> None:
        self.files = dict(files or {})
        self.down = set(down)
        self.node_errors = dict(node_errors or {})
        self.failing_paths: set[str] = set()
        self.calls: list[tuple[str, str, str]] = []
        self.auth_headers: list[str] = []
        self.closed = False
        self.log_lines: list[str] = ["booting", "ready"]
        self.stats: dict[str, dict[str, object]] = {}

    def _check(self, node: ModelNodeAddress, operation: str, target: str, auth: str) -> None:
        self.calls.append((operation, node.host, target))
        self.auth_headers.append(auth)
        if node.host in self.down:
            raise TransportError(f"Connection to node {node.host} failed: ConnectError")
        if node.host in self.node_errors:
            raise NodeError(self.node_errors[node.host], node=node.address)

    def hosts_for(self, operation: str) -> list[str]:
        return [host for op, host, _ in self.calls if op == operation]

    async def close(self) -> None:
        self.closed = True

    async def list_folder(
        self, node: ModelNodeAddress, app_name: str, component: str, folder: str, auth_header: str
    ) -> ModelOperationOutcome:
        self._check(node, "list", folder, auth_header)
        prefix = folder.rstrip("/") + "/"
        names = sorted(
            {path[len(prefix):].split("/")[0] for path in self.files if path.startswith(prefix)}
        )
        return ModelOperationOutcome.success(
            ModelDirectoryListing(
                path=folder, files=tuple(ModelFileInfo(name=n, size=1) for n in names)
            )
        )

    async def download_file(
        self, node: ModelNodeAddress, app_name: str, component: str, path: str, auth_header: str
    ) -> ModelOperationOutcome:
        self._check(node, "download", path, auth_header)
        if path not in self.files:
            raise NodeError("File not found", node=node.address)
        return ModelOperationOutcome.success(
            ModelDownloadedFile(content=self.files[path], content_type="text/plain")
        )

    async def save_file(
        self,
        node: ModelNodeAddress,
        app_name: str,
        component: str,
        path: str,
        content: str,
        auth_header: str,
    ) -> ModelOperationOutcome:
        self._check(node, "save", path, auth_header)
        self.files[path] = content
        return ModelOperationOutcome.success(True)

    async def upload_binary(
        self,
        node: ModelNodeAddress,
        app_name: str,
        component: str,
        folder: str,
        file_name: str,
        data: bytes,
        auth_header: str,
        content_type: str = "application/octet-stream",
    ) -> ModelOperationOutcome:
        path = f"{folder.rstrip('/')}/{file_name}"
        self._check(node, "upload", path, auth_header)
        self.files[path] = data.decode("latin-1")
        return ModelOperationOutcome.success(True)

    async def delete_path(
        self, node: ModelNodeAddress, app_name: str, component: str, path: str, auth_header: str
    ) -> ModelOperationOutcome:
        self._check(node, "delete", path, auth_header)
        if path in self.failing_paths:
            raise NodeError(f"Cannot remove {path}", node=node.address)
        self.files.pop(path, None)
        return ModelOperationOutcome.success(True)

    async def app_exec(
        self,
        node: ModelNodeAddress,
        app_name: str,
        component: str,
        cmd: list[str],
        auth_header: str,
        env: Optional[list[str]] = None,
    ) -> ModelOperationOutcome:
        self._check(node, "app_exec", " ".join(cmd), auth_header)
        return ModelOperationOutcome.success({"cmd": cmd, "env": env, "host": node.host})

    async def app_logs(
        self, node: ModelNodeAddress, app_name: str, component: str, lines: int, auth_header: str
    ) -> ModelOperationOutcome:
        self._check(node, "logs", f"{component}_{app_name}/{lines}", auth_header)
        return ModelOperationOutcome.success("\n".join(self.log_lines[-lines:]))

    async def app_stats(
        self, node: ModelNodeAddress, container_name: str, auth_header: str
    ) -> ModelOperationOutcome:
        self._check(node, "stats", container_name, auth_header)
        if container_name not in self.stats:
            raise NodeError(f"No such container: {container_name}", node=node.address)
        return ModelOperationOutcome.success(self.stats[container_name])


class FakeSocketHandler:
    """Stand-in for HandlerExecSocket returning canned terminal output."""

    def __init__(self, output: str = "", down: Sequence[str] = ()) -> None:
        self.output = output
        self.down = set(down)
        self.commands: list[tuple[str, str]] = []

    async def exec_command(
        self,
        node: ModelNodeAddress,
        app_name: str,
        component: str,
        cmd: Union[str, Sequence[str]],
        auth_header: str,
    ) -> ModelOperationOutcome:
        command = cmd if isinstance(cmd, str) else " ".join(cmd)
        self.commands.append((node.host, command))
        if node.host in self.down:
            raise TransportError("Connection failed: refused")
        return ModelOperationOutcome.success(self.output)


class FakeOracle:
    """In-memory master oracle returning a fixed answer after an optional delay."""

    def __init__(
        self,
        source: EnumMasterSource,
        host: Optional[str] = None,
        delay: float = 0.0,
        error: Optional[Exception] = None,
    ) -> None:
        self._source = source
        self._host = host
        self._delay = delay
        self._error = error
        self.calls = 0

    @property
    def source(self) -> EnumMasterSource:
        return self._source

    async def detect(
        self, app_name: str, timeout: float
    ) -> Optional[ModelMasterCandidate]:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        if self._host is None:
            return None
        return ModelMasterCandidate(
            host=self._host.split(":")[0],
            source=self._source,
            raw_address=self._host,
        )
