# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Dashboard Backend Server.

aiohttp server exposing the multi-node operations to the dashboard UI.
Every file/exec request runs a fresh fallback session over the
comma-separated ``nodeIp`` list it carries; the sticky active node is
shared across requests per (app, component).

Routes:
    GET    /health
    GET    /api/flux/master-node        ?appName
    GET    /api/flux/detect-node        ?domain
    GET    /api/flux/files              ?nodeIp&appName&component&folder
    GET    /api/flux/files/download     ?nodeIp&appName&component&filePath
    POST   /api/flux/files/upload       {nodeIp, appName, component, filePath, content}
    POST   /api/flux/files/upload-binary ?nodeIp&appName&component&folder (multipart)
    DELETE /api/flux/files/delete       {nodeIp, appName, component, filePath}
    POST   /api/flux/exec-socket        {nodeIp, appName, component, cmd}
    POST   /api/flux/exec               {nodeIp, appName, component, cmd[], env[]}
    GET    /api/flux/logs               ?nodeIp[s]&appName&component&lines
    GET    /api/flux/stats              ?nodeIps&appName

Error responses are ``{"status": "error", "message": ...}``:
    400 missing parameters or malformed input, 401 missing ``zelidauth``
    header, 502 every node failed.

Example:
    >>> server = DashboardServer(ModelDashboardConfig.from_env())
    >>> await server.start()
    >>> # curl http://localhost:3000/health
    >>> await server.stop()
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Optional

import httpx
from aiohttp import hdrs, web

from capacitor import __version__
from capacitor.discovery.service_master_discovery import ServiceMasterDiscovery
from capacitor.discovery.util_serving_node import detect_serving_node
from capacitor.enums import EnumMasterSource, EnumTransportType
from capacitor.errors import (
    CapacitorError,
    ConfigurationError,
    ExhaustionError,
    ModelErrorContext,
)
from capacitor.handlers.handler_exec_socket import HandlerExecSocket
from capacitor.handlers.handler_flux_api import HandlerFluxApi
from capacitor.handlers.handler_flux_node import HandlerFluxNode
from capacitor.models.model_app_stats import ModelAppComponent
from capacitor.models.model_dashboard_config import ModelDashboardConfig
from capacitor.models.model_fallback_config import ModelFallbackConfig
from capacitor.models.model_node_address import ModelNodeAddress, to_flux_api_port
from capacitor.services.service_fallback_executor import (
    ActiveNodeCache,
    ServiceFallbackExecutor,
)
from capacitor.services.service_file_operations import (
    DEFAULT_LOG_LINES,
    ServiceFileOperations,
)
from capacitor.services.service_site_url_cache import SiteUrlCache
from capacitor.utils.correlation import generate_correlation_id
from capacitor.utils.util_error_sanitization import sanitize_error_message

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

AUTH_REQUIRED = "Authentication required"
MASTER_DISCOVERY_TIMEOUT_SECONDS = 8.0


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"status": "error", "message": message}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Render Capacitor errors as JSON error envelopes."""
    try:
        return await handler(request)
    except ConfigurationError as e:
        return _error(e.message, 400)
    except ExhaustionError as e:
        return _error(str(e), 502)
    except CapacitorError as e:
        logger.warning(
            "Request failed (correlation_id=%s): %s",
            e.correlation_id,
            sanitize_error_message(e),
            extra={"path": request.path},
        )
        return _error(e.message, 500)


def _require(params: dict[str, object], *names: str) -> None:
    missing = [name for name in names if not params.get(name)]
    if missing:
        raise ConfigurationError(
            f"Missing required parameters: {', '.join(missing)}"
        )


async def _json_body(request: web.Request) -> dict[str, object]:
    try:
        body = await request.json()
    except ValueError as e:
        raise ConfigurationError("Request body must be JSON") from e
    if not isinstance(body, dict):
        raise ConfigurationError("Request body must be a JSON object")
    return body


class DashboardServer:
    """HTTP backend of the dashboard.

    Attributes:
        config: Bind address and FluxOS API URL
        fallback_config: Retry and timeout constants
        active_nodes: Sticky node cache shared by all requests
    """

    def __init__(
        self,
        config: Optional[ModelDashboardConfig] = None,
        fallback_config: Optional[ModelFallbackConfig] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        node_handler: Optional[HandlerFluxNode] = None,
        socket_handler: Optional[HandlerExecSocket] = None,
        master_discovery: Optional[ServiceMasterDiscovery] = None,
        file_discovery: Optional[ServiceMasterDiscovery] = None,
        flux_api: Optional[HandlerFluxApi] = None,
    ) -> None:
        self._config = config or ModelDashboardConfig()
        self._fallback_config = fallback_config or ModelFallbackConfig()
        self._http_client = http_client
        self._node_handler = node_handler or HandlerFluxNode(
            self._fallback_config, http_client=http_client
        )
        self._socket_handler = socket_handler or HandlerExecSocket(
            timeout=self._fallback_config.exec_timeout_seconds
        )
        self._master_discovery = master_discovery or ServiceMasterDiscovery.default(
            http_client, timeout=MASTER_DISCOVERY_TIMEOUT_SECONDS
        )
        self._file_discovery = file_discovery or ServiceMasterDiscovery.haproxy_only(
            http_client, timeout=self._fallback_config.discovery_timeout_seconds
        )
        self._flux_api = flux_api or HandlerFluxApi(
            self._config.flux_api_url, http_client=http_client
        )
        self._active_nodes = ActiveNodeCache()
        self._site_urls = SiteUrlCache()
        self._executor = ServiceFallbackExecutor(
            self._fallback_config, active_nodes=self._active_nodes
        )

        self._app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def active_nodes(self) -> ActiveNodeCache:
        return self._active_nodes

    def build_app(self) -> web.Application:
        """Create the aiohttp application with every route registered."""
        app = web.Application(middlewares=[error_middleware])
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/api/flux/master-node", self._handle_master_node)
        app.router.add_get("/api/flux/detect-node", self._handle_detect_node)
        app.router.add_get("/api/flux/files", self._handle_list)
        app.router.add_get("/api/flux/files/download", self._handle_download)
        app.router.add_post("/api/flux/files/upload", self._handle_upload)
        app.router.add_post("/api/flux/files/upload-binary", self._handle_upload_binary)
        app.router.add_delete("/api/flux/files/delete", self._handle_delete)
        app.router.add_post("/api/flux/exec-socket", self._handle_exec_socket)
        app.router.add_post("/api/flux/exec", self._handle_app_exec)
        app.router.add_get("/api/flux/logs", self._handle_logs)
        app.router.add_get("/api/flux/stats", self._handle_stats)
        return app

    async def start(self) -> None:
        """Start listening on the configured host and port.

        Raises:
            CapacitorError: If the port cannot be bound.
        """
        if self._is_running:
            logger.debug("DashboardServer already running, skipping start")
            return

        correlation_id = generate_correlation_id()
        try:
            self._app = self.build_app()
            self._runner = web.AppRunner(self._app)
            await self._runner.setup()
            self._site = web.TCPSite(self._runner, self._config.host, self._config.port)
            await self._site.start()
        except OSError as e:
            message = (
                f"Failed to start dashboard server on "
                f"{self._config.host}:{self._config.port}: {e}"
            )
            logger.exception("%s (correlation_id=%s)", message, correlation_id)
            raise CapacitorError(
                message,
                context=ModelErrorContext(
                    transport_type=EnumTransportType.HTTP,
                    operation="start",
                    target_name=f"{self._config.host}:{self._config.port}",
                    correlation_id=correlation_id,
                ),
            ) from e

        self._is_running = True
        logger.info(
            "DashboardServer started (correlation_id=%s)",
            correlation_id,
            extra={"host": self._config.host, "port": self._config.port},
        )

    async def stop(self) -> None:
        """Stop the server and close owned clients. Idempotent."""
        if not self._is_running:
            return
        if self._site is not None:
            await self._site.stop()
            self._site = None
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        self._app = None
        await self._node_handler.close()
        await self._flux_api.close()
        self._is_running = False
        logger.info("DashboardServer stopped")

    def _operations(
        self,
        params: dict[str, object],
        zelidauth: str,
        *,
        default_component: str = "",
        discovery: Optional[ServiceMasterDiscovery] = None,
    ) -> ServiceFileOperations:
        nodes = ModelNodeAddress.parse_many(
            str(params.get("nodeIp") or params.get("nodeIps") or ""),
            self._fallback_config.default_port,
        )
        return ServiceFileOperations(
            app_name=str(params["appName"]),
            component=str(params.get("component") or default_component),
            nodes=nodes,
            zelidauth=zelidauth,
            discovery=discovery,
            config=self._fallback_config,
            executor=self._executor,
            node_handler=self._node_handler,
            socket_handler=self._socket_handler,
            site_url_cache=self._site_urls,
        )

    @staticmethod
    def _served(ops: ServiceFileOperations) -> Optional[str]:
        node = ops.last_node
        return node.address if node else None

    async def _handle_health(self, request: web.Request) -> web.Response:
        _ = request
        return web.json_response(
            {
                "status": "healthy",
                "version": __version__,
                "active_nodes": len(self._active_nodes),
            }
        )

    async def _handle_master_node(self, request: web.Request) -> web.Response:
        app_name = request.query.get("appName", "")
        if not app_name:
            return _error("Missing required parameter: appName", 400)

        result = await self._master_discovery.detect(app_name)
        if not result.found:
            return web.json_response(
                {
                    "status": "error",
                    "message": "Could not detect master node from FDM or HAProxy",
                }
            )
        if result.source == EnumMasterSource.HAPROXY:
            master_ip = result.all_hosts[0]
            all_ips = list(result.all_hosts)
        else:
            master_ip = to_flux_api_port(result.all_hosts[0])
            all_ips = [to_flux_api_port(ip) for ip in result.all_hosts]
        return web.json_response(
            {
                "status": "success",
                "data": {
                    "masterIp": master_ip,
                    "allIps": all_ips,
                    "appName": app_name,
                    "source": result.source.value,
                },
            }
        )

    async def _handle_detect_node(self, request: web.Request) -> web.Response:
        domain = request.query.get("domain", "")
        if not domain:
            return _error("Missing required parameter: domain", 400)
        node_ip = await detect_serving_node(domain, http_client=self._http_client)
        data: dict[str, object] = {"nodeIp": node_ip, "domain": domain}
        if node_ip is None:
            data["message"] = "No FDMSERVERID cookie found"
        return web.json_response({"status": "success", "data": data})

    async def _handle_list(self, request: web.Request) -> web.Response:
        params = dict(request.query)
        if not (params.get("nodeIp") or params.get("nodeIps")):
            return _error("Missing nodeIp, appName, or component parameter", 400)
        _require(params, "appName", "component")
        zelidauth = request.headers.get("zelidauth")
        if not zelidauth:
            return _error(AUTH_REQUIRED, 401)

        ops = self._operations(params, zelidauth, discovery=self._file_discovery)
        listing = await ops.list_files(params.get("folder", ""))
        return web.json_response(
            {
                "status": "success",
                "data": listing.to_api_dict(),
                "nodeIp": self._served(ops),
            }
        )

    async def _handle_download(self, request: web.Request) -> web.Response:
        zelidauth = request.headers.get("zelidauth")
        if not zelidauth:
            return _error(AUTH_REQUIRED, 401)
        params = dict(request.query)
        _require(params, "nodeIp", "appName", "component", "filePath")

        ops = self._operations(params, zelidauth, discovery=self._file_discovery)
        downloaded = await ops.download_file(params["filePath"])
        return web.json_response(
            {
                "status": "success",
                "data": downloaded.content,
                "contentType": downloaded.content_type,
                "nodeIp": self._served(ops),
            }
        )

    async def _handle_upload(self, request: web.Request) -> web.Response:
        zelidauth = request.headers.get("zelidauth")
        if not zelidauth:
            return _error(AUTH_REQUIRED, 401)
        body = await _json_body(request)
        _require(body, "nodeIp", "appName", "component", "filePath")
        content = body.get("content")
        if not isinstance(content, str):
            raise ConfigurationError("Missing required parameters: content")

        ops = self._operations(body, zelidauth, discovery=self._file_discovery)
        await ops.save_file(str(body["filePath"]), content)
        return web.json_response(
            {
                "status": "success",
                "message": "File saved successfully",
                "nodeIp": self._served(ops),
            }
        )

    async def _handle_upload_binary(self, request: web.Request) -> web.Response:
        zelidauth = request.headers.get("zelidauth")
        if not zelidauth:
            return _error(AUTH_REQUIRED, 401)
        params = dict(request.query)
        if not (params.get("nodeIp") and params.get("appName")):
            return _error("Missing required parameters (nodeIp, appName)", 400)

        file_name, data, content_type = await self._read_upload(request)
        ops = self._operations(
            params, zelidauth, default_component="wp", discovery=self._file_discovery
        )
        await ops.upload_binary_file(
            params.get("folder", ""), file_name, data, content_type
        )
        return web.json_response(
            {
                "status": "success",
                "message": "File uploaded successfully",
                "nodeIp": self._served(ops),
            }
        )

    @staticmethod
    async def _read_upload(request: web.Request) -> tuple[str, bytes, str]:
        if not request.content_type.startswith("multipart/"):
            raise ConfigurationError("Upload must be multipart/form-data")
        reader = await request.multipart()
        async for part in reader:
            name = getattr(part, "filename", None) or getattr(part, "name", None)
            if not name:
                continue
            data = await part.read(decode=False)  # type: ignore[union-attr]
            content_type = part.headers.get(
                hdrs.CONTENT_TYPE, "application/octet-stream"
            )
            return name, bytes(data), content_type
        raise ConfigurationError("Upload contains no file")

    async def _handle_delete(self, request: web.Request) -> web.Response:
        zelidauth = request.headers.get("zelidauth")
        if not zelidauth:
            return _error(AUTH_REQUIRED, 401)
        body = await _json_body(request)
        _require(body, "nodeIp", "appName", "component", "filePath")

        ops = self._operations(body, zelidauth, discovery=self._file_discovery)
        await ops.delete_file(str(body["filePath"]))
        return web.json_response(
            {
                "status": "success",
                "message": "Deleted successfully",
                "nodeIp": self._served(ops),
            }
        )

    async def _handle_exec_socket(self, request: web.Request) -> web.Response:
        zelidauth = request.headers.get("zelidauth")
        if not zelidauth:
            return _error(AUTH_REQUIRED, 401)
        body = await _json_body(request)
        _require(body, "nodeIp", "appName", "cmd")
        cmd = body["cmd"]
        command = " ".join(cmd) if isinstance(cmd, list) else str(cmd)

        ops = self._operations(body, zelidauth)
        output = await ops.exec_command(command, clean=False)
        return web.json_response(
            {"status": "success", "data": output, "nodeIp": self._served(ops)}
        )

    async def _handle_app_exec(self, request: web.Request) -> web.Response:
        zelidauth = request.headers.get("zelidauth")
        if not zelidauth:
            return _error(AUTH_REQUIRED, 401)
        body = await _json_body(request)
        _require(body, "nodeIp", "appName", "cmd")
        cmd = body["cmd"]
        if not isinstance(cmd, list) or not all(isinstance(c, str) for c in cmd):
            return _error("cmd must be an array of strings", 400)
        env = body.get("env")
        env_list = [str(e) for e in env] if isinstance(env, list) else None

        ops = self._operations(body, zelidauth)
        data = await ops.app_exec(cmd, env_list)
        return web.json_response(
            {"status": "success", "data": data, "nodeIp": self._served(ops)}
        )

    async def _handle_logs(self, request: web.Request) -> web.Response:
        params = dict(request.query)
        if not (params.get("nodeIp") or params.get("nodeIps")) or not params.get("appName"):
            return _error("Missing nodeIp or appName parameter", 400)
        zelidauth = request.headers.get("zelidauth")
        if not zelidauth:
            return _error(AUTH_REQUIRED, 401)
        try:
            lines = int(params.get("lines") or DEFAULT_LOG_LINES)
        except ValueError as e:
            raise ConfigurationError("lines must be an integer") from e

        ops = self._operations(params, zelidauth)
        logs = await ops.get_logs(lines)
        return web.json_response(
            {"status": "success", "data": logs, "nodeIp": self._served(ops)}
        )

    async def _handle_stats(self, request: web.Request) -> web.Response:
        params = dict(request.query)
        if not (params.get("nodeIps") or params.get("nodeIp")) or not params.get("appName"):
            return _error("Missing nodeIps or appName parameter", 400)
        zelidauth = request.headers.get("zelidauth")
        if not zelidauth:
            return _error(AUTH_REQUIRED, 401)

        components = await self._app_components(params["appName"])
        ops = self._operations(params, zelidauth, discovery=self._master_discovery)
        stats = await ops.get_stats(components)
        return web.json_response(
            {
                "status": "success",
                "data": stats.to_api_dict(),
                "nodeIp": self._served(ops),
                "containerName": stats.containers[0].name,
            }
        )

    async def _app_components(self, app_name: str) -> list[ModelAppComponent]:
        """Components from the app specification; none when it cannot be loaded."""
        try:
            return await self._flux_api.get_app_components(app_name)
        except CapacitorError as e:
            logger.warning(
                "App specification unavailable, using app container: %s",
                sanitize_error_message(e),
                extra={"app_name": app_name},
            )
            return []


__all__: list[str] = ["DashboardServer", "error_middleware"]
