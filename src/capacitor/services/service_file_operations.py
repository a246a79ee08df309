# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""File Operations Service.

One object per (application, component, credential) exposing every
multi-node capability as an awaitable operation. Each call is a fresh
fallback session: master discovery (when a discovery service is wired in),
node ordering, then the fallback executor over the matching adapter.

Operations return their payload or raise:
    - ConfigurationError: no nodes or no credential; raised before any
      network activity
    - ExhaustionError: every node failed; ``str()`` names the operation and
      carries the last node's error

State exposed for display:
    - ``active_node``: sticky node of (app, component)
    - ``error``: last user-visible error, cleared on success
    - ``is_loading``: True while any operation is in flight
    - ``on_node_switch``: callback receiving ``ModelNodeSwitchEvent``

Example:
    >>> ops = ServiceFileOperations(
    ...     app_name="wordpress", component="wp",
    ...     nodes=ModelNodeAddress.parse_many("10.0.0.5,10.0.0.9"),
    ...     zelidauth=raw_credential,
    ... )
    >>> listing = await ops.list_files("/wp-content")
    >>> ok = await ops.delete_file("/wp-content/old.log")
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Optional, Union

from capacitor.discovery.service_master_discovery import ServiceMasterDiscovery
from capacitor.enums import EnumFileOperation
from capacitor.errors import ConfigurationError, ExhaustionError, NodeError
from capacitor.handlers.handler_exec_socket import HandlerExecSocket
from capacitor.handlers.handler_flux_node import HandlerFluxNode
from capacitor.models.model_app_stats import (
    ModelAppComponent,
    ModelAppStats,
    ModelContainerStats,
)
from capacitor.models.model_bulk_delete_report import (
    ModelBulkDeleteFailure,
    ModelBulkDeleteReport,
)
from capacitor.models.model_directory_listing import ModelDirectoryListing
from capacitor.models.model_downloaded_file import ModelDownloadedFile
from capacitor.models.model_fallback_config import ModelFallbackConfig
from capacitor.models.model_fallback_result import (
    ModelFallbackResult,
    ModelNodeSwitchEvent,
)
from capacitor.models.model_node_address import ModelNodeAddress
from capacitor.models.model_operation_outcome import ModelOperationOutcome
from capacitor.protocols.protocol_node_operation import ProtocolNodeOperation
from capacitor.services.service_fallback_executor import (
    NodeSwitchCallback,
    ServiceFallbackExecutor,
)
from capacitor.services.service_node_ordering import order_nodes
from capacitor.services.service_site_url_cache import SiteUrlCache
from capacitor.utils.util_exec_output import clean_exec_output, extract_site_url
from capacitor.utils.util_zelidauth import zelidauth_header

logger = logging.getLogger(__name__)

SITE_URL_COMMAND = "wp option get siteurl --allow-root --skip-themes --skip-plugins"
DEFAULT_LOG_LINES = 100


class ServiceFileOperations:
    """Multi-node file and command operations for one application component."""

    def __init__(
        self,
        app_name: str,
        component: str,
        nodes: Sequence[Union[ModelNodeAddress, str]],
        zelidauth: Optional[str],
        *,
        master_host: Optional[str] = None,
        discovery: Optional[ServiceMasterDiscovery] = None,
        config: Optional[ModelFallbackConfig] = None,
        executor: Optional[ServiceFallbackExecutor] = None,
        node_handler: Optional[HandlerFluxNode] = None,
        socket_handler: Optional[HandlerExecSocket] = None,
        site_url_cache: Optional[SiteUrlCache] = None,
        on_node_switch: Optional[NodeSwitchCallback] = None,
    ) -> None:
        self._config = config or (executor.config if executor else ModelFallbackConfig())
        self._app_name = app_name
        self._component = component
        self._nodes: list[ModelNodeAddress] = [
            n if isinstance(n, ModelNodeAddress)
            else ModelNodeAddress.parse(n, self._config.default_port)
            for n in nodes
        ]
        self._zelidauth = zelidauth
        self._master_host = master_host
        self._discovery = discovery
        self._executor = executor or ServiceFallbackExecutor(self._config)
        self._node_handler = node_handler or HandlerFluxNode(self._config)
        self._socket_handler = socket_handler or HandlerExecSocket(
            timeout=self._config.exec_timeout_seconds
        )
        self._site_urls = site_url_cache if site_url_cache is not None else SiteUrlCache()
        self.on_node_switch = on_node_switch

        self._error: Optional[str] = None
        self._in_flight = 0
        self._last_node: Optional[ModelNodeAddress] = None
        self._last_operation: Optional[Callable[[], Awaitable[object]]] = None

    @property
    def app_name(self) -> str:
        return self._app_name

    @property
    def component(self) -> str:
        return self._component

    @property
    def nodes(self) -> tuple[ModelNodeAddress, ...]:
        return tuple(self._nodes)

    @property
    def active_node(self) -> Optional[ModelNodeAddress]:
        return self._executor.active_nodes.get(self._app_name, self._component)

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def last_node(self) -> Optional[ModelNodeAddress]:
        """Node that served the most recent successful operation."""
        return self._last_node

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    @property
    def site_urls(self) -> SiteUrlCache:
        return self._site_urls

    def set_active_node(self, node: Union[ModelNodeAddress, str]) -> None:
        """Make ``node`` the starting point of the next session."""
        if isinstance(node, str):
            node = ModelNodeAddress.parse(node, self._config.default_port)
        self._executor.active_nodes.set(self._app_name, self._component, node)
        self._error = None

    def reset_to_master(self) -> None:
        """Forget the sticky node so the next session starts at the master."""
        self._executor.active_nodes.clear(self._app_name, self._component)
        self._error = None

    async def retry(self) -> object:
        """Re-run the last operation as a brand-new session."""
        if self._last_operation is None:
            raise ConfigurationError("No operation to retry")
        return await self._last_operation()

    async def ordered_nodes(self) -> list[ModelNodeAddress]:
        """Caller nodes, master-first, deduplicated and capped."""
        master_host = self._master_host
        if self._discovery is not None:
            detection = await self._discovery.detect(self._app_name)
            if detection.found:
                master_host = detection.master_host
        return order_nodes(master_host, self._nodes, self._config.max_nodes)

    async def list_files(self, folder: str = "/") -> ModelDirectoryListing:
        self._last_operation = lambda: self.list_files(folder)
        result = await self._run(
            EnumFileOperation.LIST,
            lambda node, auth: self._node_handler.list_folder(
                node, self._app_name, self._component, folder, auth
            ),
            timeout=self._config.timeout_for(EnumFileOperation.LIST),
        )
        return result.payload  # type: ignore[return-value]

    async def download_file(self, path: str) -> ModelDownloadedFile:
        self._last_operation = lambda: self.download_file(path)
        result = await self._run(
            EnumFileOperation.DOWNLOAD,
            lambda node, auth: self._node_handler.download_file(
                node, self._app_name, self._component, path, auth
            ),
            timeout=self._config.timeout_for(EnumFileOperation.DOWNLOAD),
        )
        return result.payload  # type: ignore[return-value]

    async def save_file(self, path: str, content: str) -> bool:
        self._last_operation = lambda: self.save_file(path, content)
        await self._run(
            EnumFileOperation.SAVE,
            lambda node, auth: self._node_handler.save_file(
                node, self._app_name, self._component, path, content, auth
            ),
            timeout=self._config.timeout_for(EnumFileOperation.SAVE),
        )
        return True

    async def upload_binary_file(
        self,
        folder: str,
        file_name: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> bool:
        self._last_operation = lambda: self.upload_binary_file(
            folder, file_name, data, content_type
        )
        await self._run(
            EnumFileOperation.UPLOAD_BINARY,
            lambda node, auth: self._node_handler.upload_binary(
                node,
                self._app_name,
                self._component,
                folder,
                file_name,
                data,
                auth,
                content_type=content_type,
            ),
            timeout=(
                self._config.upload_binary_timeout_seconds
                + self._config.upload_binary_fallback_timeout_seconds
            ),
        )
        return True

    async def delete_file(self, path: str) -> bool:
        self._last_operation = lambda: self.delete_file(path)
        await self._run(
            EnumFileOperation.DELETE,
            lambda node, auth: self._node_handler.delete_path(
                node, self._app_name, self._component, path, auth
            ),
            timeout=self._config.timeout_for(EnumFileOperation.DELETE),
        )
        return True

    async def delete_many(self, paths: Sequence[str]) -> ModelBulkDeleteReport:
        """Delete ``paths`` in windows of ``bulk_concurrency`` independent sessions.

        A window advances only after every deletion in it settled; failures
        are collected, never cancelling the rest of the window.
        """
        deleted: list[str] = []
        failed: list[ModelBulkDeleteFailure] = []
        window = self._config.bulk_concurrency

        async def delete_one(path: str) -> Optional[str]:
            try:
                await self.delete_file(path)
            except ExhaustionError as e:
                return str(e)
            return None

        for start in range(0, len(paths), window):
            batch = paths[start : start + window]
            errors = await asyncio.gather(*(delete_one(p) for p in batch))
            for path, message in zip(batch, errors):
                if message is None:
                    deleted.append(path)
                else:
                    failed.append(ModelBulkDeleteFailure(path=path, message=message))

        self._last_operation = lambda: self.delete_many(paths)
        report = ModelBulkDeleteReport(deleted=tuple(deleted), failed=tuple(failed))
        logger.info(
            "Bulk delete finished",
            extra={
                "app_name": self._app_name,
                "deleted": len(report.deleted),
                "failed": len(report.failed),
            },
        )
        return report

    async def exec_command(self, cmd: str, *, clean: bool = True) -> str:
        """Run ``cmd`` in the component container over the terminal socket."""
        result = await self._exec_result(cmd)
        output = str(result.payload or "")
        return clean_exec_output(output) if clean else output

    async def app_exec(
        self, cmd: Sequence[str], env: Optional[Sequence[str]] = None
    ) -> object:
        """Run ``cmd`` through the REST appexec endpoint."""
        self._last_operation = lambda: self.app_exec(cmd, env)
        result = await self._run(
            EnumFileOperation.APP_EXEC,
            lambda node, auth: self._node_handler.app_exec(
                node,
                self._app_name,
                self._component,
                list(cmd),
                auth,
                env=list(env) if env else None,
            ),
            timeout=self._config.timeout_for(EnumFileOperation.APP_EXEC),
        )
        return result.payload

    async def get_logs(self, lines: int = DEFAULT_LOG_LINES) -> str:
        """Last ``lines`` lines of the component container log."""
        if lines < 1:
            raise ConfigurationError(f"lines must be positive, got {lines}")
        self._last_operation = lambda: self.get_logs(lines)
        result = await self._run(
            EnumFileOperation.LOGS,
            lambda node, auth: self._node_handler.app_logs(
                node, self._app_name, self._component, lines, auth
            ),
            timeout=self._config.timeout_for(EnumFileOperation.LOGS),
        )
        return str(result.payload or "")

    async def get_stats(
        self, components: Sequence[ModelAppComponent] = ()
    ) -> ModelAppStats:
        """Resource stats of the first container that answers.

        Every container of ``components`` is tried in order on a node before
        the node counts as failed; without components the container is named
        after the application. An unreachable node is not asked for its
        remaining containers.
        """
        self._last_operation = lambda: self.get_stats(components)
        candidates = list(components) or [ModelAppComponent()]

        async def stats_on_node(node: ModelNodeAddress, auth: str) -> ModelOperationOutcome:
            failure: Optional[NodeError] = None
            for component in candidates:
                container = component.container_name(self._app_name)
                try:
                    outcome = await self._node_handler.app_stats(node, container, auth)
                except NodeError as e:
                    logger.debug(
                        "No stats for %s on %s: %s",
                        container,
                        node.address,
                        e.message,
                        extra={"app_name": self._app_name, "node": node.address},
                    )
                    failure = e
                    continue
                stats = ModelContainerStats.from_docker(
                    outcome.payload,  # type: ignore[arg-type]
                    container,
                    component.hdd_gb,
                )
                return ModelOperationOutcome.success(
                    ModelAppStats(app_name=self._app_name, containers=(stats,))
                )
            raise failure or NodeError(
                f"Node {node.host} returned no stats", node=node.address
            )

        result = await self._run(
            EnumFileOperation.STATS,
            stats_on_node,
            timeout=self._config.timeout_for(EnumFileOperation.STATS) * len(candidates),
        )
        return result.payload  # type: ignore[return-value]

    async def get_site_url(self) -> Optional[str]:
        """WordPress ``siteurl`` option, cached per (app, node host)."""
        node = self.active_node or (self._nodes[0] if self._nodes else None)
        if node is not None:
            cached = self._site_urls.get(self._app_name, node)
            if cached:
                return cached
        result = await self._exec_result(SITE_URL_COMMAND)
        url = extract_site_url(str(result.payload or ""))
        if url and result.node is not None:
            self._site_urls.set(self._app_name, result.node, url)
        return url

    async def _exec_result(self, cmd: str) -> ModelFallbackResult:
        self._last_operation = lambda: self.exec_command(cmd)
        return await self._run(
            EnumFileOperation.EXEC,
            lambda node, auth: self._socket_handler.exec_command(
                node, self._app_name, self._component, cmd, auth
            ),
            timeout=None,
        )

    async def _run(
        self,
        operation: EnumFileOperation,
        call: Callable[[ModelNodeAddress, str], Awaitable[ModelOperationOutcome]],
        *,
        timeout: Optional[float],
    ) -> ModelFallbackResult:
        if not self._nodes:
            raise ConfigurationError(
                f"{operation.failure_prefix}. No nodes supplied for {self._app_name}"
            )
        auth = zelidauth_header(self._zelidauth)

        async def node_operation(node: ModelNodeAddress) -> ModelOperationOutcome:
            return await call(node, auth)

        op: ProtocolNodeOperation = node_operation

        self._in_flight += 1
        try:
            nodes = await self.ordered_nodes()
            result = await self._executor.execute_or_raise(
                operation,
                nodes,
                op,
                app_name=self._app_name,
                component=self._component,
                timeout=timeout,
            )
        except ExhaustionError as e:
            self._error = e.last_error
            raise
        finally:
            self._in_flight -= 1

        self._error = None
        self._last_node = result.node
        if result.switch_event is not None:
            self._notify_switch(result.switch_event)
        return result

    def _notify_switch(self, event: ModelNodeSwitchEvent) -> None:
        if self.on_node_switch is not None:
            self.on_node_switch(event)


__all__: list[str] = ["DEFAULT_LOG_LINES", "SITE_URL_COMMAND", "ServiceFileOperations"]
