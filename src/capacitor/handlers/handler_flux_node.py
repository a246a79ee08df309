# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Flux Node HTTP Handler.

Single-node adapters over the FluxOS management API of one node. Each
adapter builds the node URL, sends one request with its own bounded
timeout, and classifies the response:

    - Non-2xx status: ``NodeError("Node {host} returned {status}")``
    - 2xx JSON with ``status: "error"``: ``NodeError`` carrying the node's
      own message (``message``, then ``data.message``)
    - Otherwise: success

httpx exceptions are converted to ``TransportTimeoutError`` /
``TransportError``. Both error kinds are recovered by the fallback
executor; adapters never retry by themselves except for the binary upload
DNS fallback, which is one logical attempt on the same node.

Endpoints:
    GET  /apps/getfolderinfo/{app}/{component}[/{path}]
    GET  /apps/downloadfile/{app}/{component}/{path}
    POST /ioutils/fileupload/volume/{app}/{component}[/{folder}]
    GET  /apps/removeobject/{app}/{component}/{path}
    POST /apps/appexec
    GET  /apps/applogpolling/{container}/{lines}
    GET  /apps/appstats/{container}

Security:
    The ``zelidauth`` header value is never logged or included in errors.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional
from urllib.parse import quote

import httpx

from capacitor.enums import EnumTransportType
from capacitor.errors import (
    ModelErrorContext,
    NodeError,
    TransportError,
    TransportTimeoutError,
)
from capacitor.models.model_directory_listing import (
    ModelDirectoryListing,
    ModelFileInfo,
)
from capacitor.models.model_downloaded_file import ModelDownloadedFile
from capacitor.models.model_fallback_config import ModelFallbackConfig
from capacitor.models.model_node_address import ModelNodeAddress
from capacitor.models.model_operation_outcome import ModelOperationOutcome

logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves unescaped besides alphanumerics and "-_.~".
_URI_COMPONENT_SAFE = "!*'()"


def encode_path(path: str) -> str:
    """Strip one leading slash and percent-encode the whole path as one segment.

    Example:
        >>> encode_path("/wp-content/uploads")
        'wp-content%2Fuploads'
    """
    clean = path[1:] if path.startswith("/") else path
    return quote(clean, safe=_URI_COMPONENT_SAFE)


def split_file_path(path: str) -> tuple[str, str]:
    """Split ``path`` into ``(folder, file_name)``; the folder has no leading slash."""
    clean = path[1:] if path.startswith("/") else path
    folder, _, file_name = clean.rpartition("/")
    return folder, file_name or clean


def error_message_from_body(body: object, default: str) -> Optional[str]:
    """Return the error message of a ``status: "error"`` envelope, else None."""
    if not isinstance(body, dict) or body.get("status") != "error":
        return None
    message = body.get("message")
    if not message:
        data = body.get("data")
        if isinstance(data, dict):
            message = data.get("message")
    return str(message) if message else default


def app_exec_name(app_name: str, component: str) -> str:
    """Container name of a compose component: ``{component}_{app}``."""
    return f"{component}_{app_name}" if component else app_name


class HandlerFluxNode:
    """HTTP adapters for the per-node FluxOS management API.

    The httpx client is created lazily on first use (or injected). Only an
    internally created client is closed by :meth:`close`.

    Example:
        >>> handler = HandlerFluxNode()
        >>> outcome = await handler.list_folder(node, "wordpress", "wp", "/", auth)
        >>> [f.name for f in outcome.payload.files]
        ['wp-config.php', 'wp-content']
        >>> await handler.close()
    """

    def __init__(
        self,
        config: Optional[ModelFallbackConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config or ModelFallbackConfig()
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._http_client_lock = asyncio.Lock()

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        async with self._http_client_lock:
            if self._http_client is not None:
                return self._http_client
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(60.0),
                limits=httpx.Limits(max_connections=50, max_keepalive_connections=10),
            )
            return self._http_client

    async def close(self) -> None:
        """Close the HTTP client if this handler created it."""
        async with self._http_client_lock:
            if self._owns_http_client and self._http_client is not None:
                await self._http_client.aclose()
                self._http_client = None

    async def _send(
        self,
        method: str,
        url: str,
        node: ModelNodeAddress,
        operation: str,
        timeout: float,
        **kwargs: object,
    ) -> httpx.Response:
        client = await self._get_http_client()
        context = ModelErrorContext(
            transport_type=EnumTransportType.HTTP,
            operation=operation,
            target_name=node.address,
        )
        try:
            return await client.request(method, url, timeout=timeout, **kwargs)  # type: ignore[arg-type]
        except httpx.TimeoutException as e:
            raise TransportTimeoutError(
                f"Node {node.host} timed out after {timeout:g}s", context=context
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"Connection to node {node.host} failed: {type(e).__name__}",
                context=context,
            ) from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, node: ModelNodeAddress) -> None:
        if not response.is_success:
            raise NodeError(
                f"Node {node.host} returned {response.status_code}",
                node=node.address,
                status_code=response.status_code,
            )

    async def list_folder(
        self,
        node: ModelNodeAddress,
        app_name: str,
        component: str,
        folder: str,
        auth_header: str,
    ) -> ModelOperationOutcome:
        """List one folder of the application volume."""
        url = f"{node.base_url}/apps/getfolderinfo/{app_name}/{component}"
        if folder and folder != "/":
            url += f"/{encode_path(folder)}"
        response = await self._send(
            "GET",
            url,
            node,
            "list",
            self._config.list_timeout_seconds,
            headers={"Content-Type": "application/json", "zelidauth": auth_header},
        )
        self._raise_for_status(response, node)

        text = response.text
        if text.strip().startswith("<"):
            raise NodeError(f"Node {node.host} returned error page", node=node.address)
        try:
            body = json.loads(text)
        except ValueError as e:
            raise NodeError(
                f"Node {node.host} returned invalid JSON", node=node.address
            ) from e

        if isinstance(body, dict) and body.get("status") == "success":
            entries = body.get("data") or []
            files = tuple(
                ModelFileInfo.from_node_entry(entry)
                for entry in entries
                if isinstance(entry, dict)
            )
            return ModelOperationOutcome.success(
                ModelDirectoryListing(path=folder or "/", files=files)
            )

        message = error_message_from_body(body, "Unknown error") or "Unknown error"
        raise NodeError(message, node=node.address)

    async def download_file(
        self,
        node: ModelNodeAddress,
        app_name: str,
        component: str,
        path: str,
        auth_header: str,
    ) -> ModelOperationOutcome:
        """Download one file as text through the node DNS proxy."""
        url = f"{node.dns_url}/apps/downloadfile/{app_name}/{component}/{encode_path(path)}"
        response = await self._send(
            "GET",
            url,
            node,
            "download",
            self._config.download_timeout_seconds,
            headers={"zelidauth": auth_header},
        )
        self._raise_for_status(response, node)

        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                body = response.json()
            except ValueError:
                body = None
            else:
                message = error_message_from_body(body, "Failed to download file")
                if message is not None:
                    raise NodeError(message, node=node.address)
                if (
                    isinstance(body, dict)
                    and isinstance(body.get("status"), str)
                    and "data" in body
                ):
                    content = body["data"]
                    if not isinstance(content, str):
                        content = json.dumps(content, indent=2)
                else:
                    content = json.dumps(body, indent=2)
                return ModelOperationOutcome.success(
                    ModelDownloadedFile(content=content, content_type="application/json")
                )

        return ModelOperationOutcome.success(
            ModelDownloadedFile(
                content=response.text, content_type=content_type or "text/plain"
            )
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
        """Write a text file (multipart, the file name is the field name)."""
        folder, file_name = split_file_path(path)
        url = f"{node.base_url}/ioutils/fileupload/volume/{app_name}/{component}"
        if folder:
            url += f"/{quote(folder, safe=_URI_COMPONENT_SAFE)}"
        response = await self._send(
            "POST",
            url,
            node,
            "save",
            self._config.save_timeout_seconds,
            headers={"zelidauth": auth_header},
            files={file_name: (file_name, content.encode("utf-8"), "text/plain")},
        )
        return self._classify_mutation(response, node, "Failed to save file")

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
        """Upload a binary file.

        Direct HTTP is tried first; a transport failure retries once through
        the node DNS proxy with the longer fallback timeout.
        """
        path = f"/ioutils/fileupload/volume/{app_name}/{component}"
        clean_folder = folder[1:] if folder.startswith("/") else folder
        if clean_folder:
            path += f"/{quote(clean_folder, safe=_URI_COMPONENT_SAFE)}"
        kwargs: dict[str, object] = {
            "headers": {"zelidauth": auth_header},
            "files": {file_name: (file_name, data, content_type)},
        }
        try:
            response = await self._send(
                "POST",
                node.base_url + path,
                node,
                "upload_binary",
                self._config.upload_binary_timeout_seconds,
                **kwargs,
            )
        except TransportError as e:
            logger.info(
                "Direct upload to %s failed, retrying through DNS proxy",
                node.address,
                extra={"node": node.address, "error_code": e.error_code.value},
            )
            response = await self._send(
                "POST",
                node.dns_url + path,
                node,
                "upload_binary",
                self._config.upload_binary_fallback_timeout_seconds,
                **kwargs,
            )

        if not response.is_success:
            raise NodeError(
                f"Upload failed with status {response.status_code}: {response.text[:200]}",
                node=node.address,
                status_code=response.status_code,
            )
        outcome = self._classify_mutation(response, node, "Failed to upload file")
        text = response.text
        if "error" in text or "Error" in text:
            raise NodeError(
                f"Upload may have failed: {text[:300]}", node=node.address
            )
        return outcome

    async def delete_path(
        self,
        node: ModelNodeAddress,
        app_name: str,
        component: str,
        path: str,
        auth_header: str,
    ) -> ModelOperationOutcome:
        """Remove a file or folder."""
        url = f"{node.base_url}/apps/removeobject/{app_name}/{component}/{encode_path(path)}"
        response = await self._send(
            "GET",
            url,
            node,
            "delete",
            self._config.delete_timeout_seconds,
            headers={"zelidauth": auth_header},
        )
        return self._classify_mutation(response, node, "Failed to delete")

    async def app_exec(
        self,
        node: ModelNodeAddress,
        app_name: str,
        component: str,
        cmd: list[str],
        auth_header: str,
        env: Optional[list[str]] = None,
    ) -> ModelOperationOutcome:
        """Run a command through the REST ``appexec`` endpoint.

        Non-JSON output is the command's raw stdout and counts as success.
        """
        body: dict[str, object] = {
            "appname": app_exec_name(app_name, component),
            "cmd": cmd,
        }
        if env:
            body["env"] = env
        response = await self._send(
            "POST",
            f"{node.dns_url}/apps/appexec",
            node,
            "app_exec",
            self._config.app_exec_timeout_seconds,
            headers={"Content-Type": "application/json", "zelidauth": auth_header},
            json=body,
        )
        self._raise_for_status(response, node)

        text = response.text
        try:
            data = json.loads(text)
        except ValueError:
            if text.strip():
                return ModelOperationOutcome.success(text)
            raise NodeError("Empty response from node", node=node.address) from None

        message = error_message_from_body(data, "Failed to execute command")
        if message is not None:
            raise NodeError(message, node=node.address)
        if isinstance(data, dict) and "data" in data:
            return ModelOperationOutcome.success(data["data"])
        return ModelOperationOutcome.success(data)

    async def app_logs(
        self,
        node: ModelNodeAddress,
        app_name: str,
        component: str,
        lines: int,
        auth_header: str,
    ) -> ModelOperationOutcome:
        """Tail the container log; the payload is the log text."""
        url = (
            f"{node.base_url}/apps/applogpolling/"
            f"{app_exec_name(app_name, component)}/{lines}"
        )
        response = await self._send(
            "GET",
            url,
            node,
            "logs",
            self._config.logs_timeout_seconds,
            headers={"Content-Type": "application/json", "zelidauth": auth_header},
        )
        body = self._json_envelope(response, node)
        message = error_message_from_body(body, "Unknown error")
        if message is not None:
            raise NodeError(message, node=node.address)

        if isinstance(body, dict):
            logs = body.get("logs")
            if body.get("status") == "success" and isinstance(logs, list):
                return ModelOperationOutcome.success("\n".join(str(line) for line in logs))
            data = body.get("data")
            if isinstance(data, str):
                return ModelOperationOutcome.success(data)
        return ModelOperationOutcome.success(json.dumps(body, indent=2))

    async def app_stats(
        self,
        node: ModelNodeAddress,
        container_name: str,
        auth_header: str,
    ) -> ModelOperationOutcome:
        """Fetch the raw Docker stats document of one container."""
        response = await self._send(
            "GET",
            f"{node.base_url}/apps/appstats/{container_name}",
            node,
            "stats",
            self._config.stats_timeout_seconds,
            headers={"Content-Type": "application/json", "zelidauth": auth_header},
        )
        body = self._json_envelope(response, node)
        message = error_message_from_body(body, "Failed to fetch stats")
        if message is not None:
            raise NodeError(message, node=node.address)
        if isinstance(body, dict) and body.get("status") == "success":
            data = body.get("data")
            if isinstance(data, dict) and data:
                return ModelOperationOutcome.success(data)
        raise NodeError(
            f"Node {node.host} returned no stats for {container_name}",
            node=node.address,
        )

    def _json_envelope(self, response: httpx.Response, node: ModelNodeAddress) -> object:
        """Decode a JSON reply; a non-2xx or non-JSON reply is a node error."""
        content_type = response.headers.get("content-type", "")
        if not response.is_success or "application/json" not in content_type:
            raise NodeError(
                f"Node {node.host} returned {response.status_code}",
                node=node.address,
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise NodeError(
                f"Node {node.host} returned invalid JSON", node=node.address
            ) from e

    def _classify_mutation(
        self, response: httpx.Response, node: ModelNodeAddress, default: str
    ) -> ModelOperationOutcome:
        """Classify save/upload/delete responses; a 2xx non-JSON body is success."""
        self._raise_for_status(response, node)
        try:
            body = json.loads(response.text)
        except ValueError:
            return ModelOperationOutcome.success(True)
        message = error_message_from_body(body, default)
        if message is not None:
            raise NodeError(message, node=node.address)
        return ModelOperationOutcome.success(True)


__all__: list[str] = [
    "HandlerFluxNode",
    "app_exec_name",
    "encode_path",
    "error_message_from_body",
    "split_file_path",
]
