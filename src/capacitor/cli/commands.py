# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""
Capacitor CLI Commands.

Command line front end for master discovery, app locations, multi-node file
operations and the dashboard backend server.
"""

from __future__ import annotations

import asyncio
import json
import logging
import mimetypes
from collections.abc import AsyncIterator, Callable, Coroutine
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional, TextIO, TypeVar

import click
import httpx
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from capacitor.discovery.service_master_discovery import ServiceMasterDiscovery
from capacitor.discovery.util_serving_node import detect_serving_node
from capacitor.errors import CapacitorError
from capacitor.handlers.handler_flux_api import HandlerFluxApi
from capacitor.handlers.handler_flux_node import HandlerFluxNode
from capacitor.models.model_dashboard_config import (
    DEFAULT_FLUX_API_URL,
    ModelDashboardConfig,
)
from capacitor.models.model_fallback_config import ModelFallbackConfig
from capacitor.models.model_fallback_result import ModelNodeSwitchEvent
from capacitor.models.model_node_address import ModelNodeAddress
from capacitor.runtime.dashboard_server import DashboardServer
from capacitor.services.service_file_operations import (
    DEFAULT_LOG_LINES,
    ServiceFileOperations,
)
from capacitor.utils.util_exec_output import extract_json

console = Console()
logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
DEFAULT_COMPONENT = "wp"

F = TypeVar("F", bound=Callable[..., Any])


@click.group()
@click.option(
    "--log-level",
    envvar="CAPACITOR_LOG_LEVEL",
    default="WARNING",
    show_default=True,
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Logging level (env: CAPACITOR_LOG_LEVEL)",
)
def cli(log_level: str) -> None:
    """Capacitor: multi-node FluxCloud app management."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _run(coro: Coroutine[Any, Any, None]) -> None:
    try:
        asyncio.run(coro)
    except CapacitorError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise SystemExit(1)


def _file_options(func: F) -> F:
    """Options shared by every command that talks to application nodes."""
    decorators = [
        click.option(
            "--component",
            default=DEFAULT_COMPONENT,
            show_default=True,
            help="Compose component of the application",
        ),
        click.option(
            "--nodes",
            envvar="CAPACITOR_NODES",
            default="",
            help="Comma-separated node addresses (default: FluxOS app locations)",
        ),
        click.option(
            "--zelidauth",
            envvar="CAPACITOR_ZELIDAUTH",
            default="",
            help="Wallet credential (env: CAPACITOR_ZELIDAUTH)",
        ),
        click.option(
            "--api-url",
            envvar="CAPACITOR_FLUX_API_URL",
            default=DEFAULT_FLUX_API_URL,
            show_default=True,
            help="FluxOS public API base URL",
        ),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def _print_switch(event: ModelNodeSwitchEvent) -> None:
    console.print(
        f"[yellow]{escape(event.title)}[/yellow] "
        f"[dim]({escape(event.operation)}: {escape(event.reason)})[/dim]"
    )


async def _located_nodes(
    app_name: str,
    api_url: str,
    http_client: httpx.AsyncClient,
    config: ModelFallbackConfig,
) -> list[ModelNodeAddress]:
    api = HandlerFluxApi(api_url, http_client=http_client)
    locations = await api.get_app_locations(app_name)
    return [loc.to_node_address(config.default_port) for loc in locations]


@asynccontextmanager
async def _open_operations(
    app_name: str,
    component: str,
    nodes: str,
    zelidauth: str,
    api_url: str,
) -> AsyncIterator[ServiceFileOperations]:
    """Yield a file-operations facade sharing one HTTP client."""
    config = ModelFallbackConfig.from_env()
    async with httpx.AsyncClient(timeout=httpx.Timeout(60.0)) as client:
        if nodes:
            addresses = ModelNodeAddress.parse_many(nodes, config.default_port)
        else:
            addresses = await _located_nodes(app_name, api_url, client, config)
            logger.info(
                "Using %d located nodes", len(addresses), extra={"app_name": app_name}
            )
        yield ServiceFileOperations(
            app_name=app_name,
            component=component,
            nodes=addresses,
            zelidauth=zelidauth or None,
            discovery=ServiceMasterDiscovery.default(
                client, timeout=config.discovery_timeout_seconds
            ),
            config=config,
            node_handler=HandlerFluxNode(config, http_client=client),
            on_node_switch=_print_switch,
        )


# =============================================================================
# Discovery
# =============================================================================


@cli.command("master")
@click.argument("app_name")
@click.option("--timeout", default=5.0, show_default=True, help="Per-oracle timeout")
def master_cmd(app_name: str, timeout: float) -> None:
    """Detect the master node of APP_NAME (FDM regions, then HAProxy)."""
    _run(_run_master(app_name, timeout))


async def _run_master(app_name: str, timeout: float) -> None:
    async with httpx.AsyncClient() as client:
        discovery = ServiceMasterDiscovery.default(client, timeout=timeout)
        result = await discovery.detect(app_name)

    if not result.found:
        console.print(f"[yellow]No master detected for {escape(app_name)}[/yellow]")
        raise SystemExit(1)

    console.print(
        f"[bold green]{escape(str(result.master_host))}[/bold green] "
        f"[dim](source: {result.source.value})[/dim]"
    )
    for host in result.all_hosts:
        console.print(f"  {escape(host)}")


@cli.command("serving-node")
@click.argument("domain")
@click.option("--timeout", default=10.0, show_default=True, help="Probe timeout")
def serving_node_cmd(domain: str, timeout: float) -> None:
    """Show the node currently serving DOMAIN (FDMSERVERID cookie)."""
    _run(_run_serving_node(domain, timeout))


async def _run_serving_node(domain: str, timeout: float) -> None:
    node = await detect_serving_node(domain, timeout=timeout)
    if node is None:
        console.print(f"[yellow]Could not detect serving node for {escape(domain)}[/yellow]")
        raise SystemExit(1)
    console.print(node)


@cli.command("locations")
@click.argument("app_name")
@click.option(
    "--api-url",
    envvar="CAPACITOR_FLUX_API_URL",
    default=DEFAULT_FLUX_API_URL,
    show_default=True,
    help="FluxOS public API base URL",
)
def locations_cmd(app_name: str, api_url: str) -> None:
    """List the running instances of APP_NAME, earliest broadcast first."""
    _run(_run_locations(app_name, api_url))


async def _run_locations(app_name: str, api_url: str) -> None:
    api = HandlerFluxApi(api_url)
    try:
        locations = await api.get_app_locations(app_name)
    finally:
        await api.close()

    if not locations:
        console.print(f"[yellow]No running instances of {escape(app_name)}[/yellow]")
        raise SystemExit(0)

    table = Table(title=f"Locations of {app_name} ({len(locations)})")
    table.add_column("Node", style="cyan")
    table.add_column("Broadcasted At", style="dim")
    table.add_column("Expires At", style="dim")
    for loc in locations:
        table.add_row(
            loc.to_node_address().address,
            loc.broadcasted_at.isoformat() if loc.broadcasted_at else "-",
            loc.expire_at.isoformat() if loc.expire_at else "-",
        )
    console.print(table)


# =============================================================================
# File operations
# =============================================================================


@cli.command("ls")
@click.argument("app_name")
@click.argument("folder", default="/")
@_file_options
def ls_cmd(
    app_name: str, folder: str, component: str, nodes: str, zelidauth: str, api_url: str
) -> None:
    """List FOLDER of the application volume."""
    _run(_run_ls(app_name, folder, component, nodes, zelidauth, api_url))


async def _run_ls(
    app_name: str, folder: str, component: str, nodes: str, zelidauth: str, api_url: str
) -> None:
    async with _open_operations(app_name, component, nodes, zelidauth, api_url) as ops:
        listing = await ops.list_files(folder)
        served = ops.last_node

    table = Table(title=f"{listing.path} ({len(listing.files)})")
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Permissions", style="dim")
    table.add_column("Modified", style="dim")
    for info in sorted(listing.files, key=lambda f: (not f.is_directory, f.name)):
        name = f"{info.name}/" if info.is_directory else info.name
        table.add_row(escape(name), str(info.size), info.permissions, info.modified_at)
    console.print(table)
    if served is not None:
        console.print(f"[dim]served by {served.address}[/dim]")


@cli.command("cat")
@click.argument("app_name")
@click.argument("path")
@_file_options
def cat_cmd(
    app_name: str, path: str, component: str, nodes: str, zelidauth: str, api_url: str
) -> None:
    """Print the content of PATH."""
    _run(_run_cat(app_name, path, component, nodes, zelidauth, api_url))


async def _run_cat(
    app_name: str, path: str, component: str, nodes: str, zelidauth: str, api_url: str
) -> None:
    async with _open_operations(app_name, component, nodes, zelidauth, api_url) as ops:
        downloaded = await ops.download_file(path)
    click.echo(downloaded.content, nl=not downloaded.content.endswith("\n"))


@cli.command("put")
@click.argument("app_name")
@click.argument("path")
@click.option(
    "--from",
    "source",
    type=click.File("r"),
    default="-",
    help="Local text file to upload (default: stdin)",
)
@_file_options
def put_cmd(
    app_name: str,
    path: str,
    source: TextIO,
    component: str,
    nodes: str,
    zelidauth: str,
    api_url: str,
) -> None:
    """Save text to PATH, replacing the remote file."""
    content = source.read()
    _run(_run_put(app_name, path, content, component, nodes, zelidauth, api_url))


async def _run_put(
    app_name: str,
    path: str,
    content: str,
    component: str,
    nodes: str,
    zelidauth: str,
    api_url: str,
) -> None:
    async with _open_operations(app_name, component, nodes, zelidauth, api_url) as ops:
        await ops.save_file(path, content)
    console.print(f"[green]Saved {escape(path)}[/green]")


@cli.command("upload")
@click.argument("app_name")
@click.argument("folder")
@click.argument(
    "local_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@_file_options
def upload_cmd(
    app_name: str,
    folder: str,
    local_file: Path,
    component: str,
    nodes: str,
    zelidauth: str,
    api_url: str,
) -> None:
    """Upload LOCAL_FILE (any content) into FOLDER."""
    _run(_run_upload(app_name, folder, local_file, component, nodes, zelidauth, api_url))


async def _run_upload(
    app_name: str,
    folder: str,
    local_file: Path,
    component: str,
    nodes: str,
    zelidauth: str,
    api_url: str,
) -> None:
    content_type = mimetypes.guess_type(local_file.name)[0] or "application/octet-stream"
    data = local_file.read_bytes()
    async with _open_operations(app_name, component, nodes, zelidauth, api_url) as ops:
        await ops.upload_binary_file(folder, local_file.name, data, content_type)
    console.print(
        f"[green]Uploaded {escape(local_file.name)} ({len(data)} bytes) "
        f"to {escape(folder)}[/green]"
    )


@cli.command("rm")
@click.argument("app_name")
@click.argument("paths", nargs=-1, required=True)
@_file_options
def rm_cmd(
    app_name: str,
    paths: tuple[str, ...],
    component: str,
    nodes: str,
    zelidauth: str,
    api_url: str,
) -> None:
    """Delete one or more PATHS, a few at a time."""
    _run(_run_rm(app_name, paths, component, nodes, zelidauth, api_url))


async def _run_rm(
    app_name: str,
    paths: tuple[str, ...],
    component: str,
    nodes: str,
    zelidauth: str,
    api_url: str,
) -> None:
    async with _open_operations(app_name, component, nodes, zelidauth, api_url) as ops:
        report = await ops.delete_many(list(paths))

    for path in report.deleted:
        console.print(f"[green]Deleted {escape(path)}[/green]")
    for failure in report.failed:
        console.print(f"[red]{escape(failure.path)}: {escape(failure.message)}[/red]")
    if not report.all_succeeded:
        console.print(f"[red]{len(report.failed)} of {report.total} deletions failed[/red]")
        raise SystemExit(1)


@cli.command("exec")
@click.argument("app_name")
@click.argument("cmd", nargs=-1, required=True)
@click.option("--raw", is_flag=True, help="Print terminal output without cleaning")
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Extract and pretty-print the JSON embedded in the output",
)
@click.option(
    "--rest",
    is_flag=True,
    help="Use the REST appexec endpoint instead of the terminal socket",
)
@_file_options
def exec_cmd(
    app_name: str,
    cmd: tuple[str, ...],
    raw: bool,
    as_json: bool,
    rest: bool,
    component: str,
    nodes: str,
    zelidauth: str,
    api_url: str,
) -> None:
    """Run CMD inside the component container."""
    _run(
        _run_exec(
            app_name, cmd, raw, as_json, rest, component, nodes, zelidauth, api_url
        )
    )


async def _run_exec(
    app_name: str,
    cmd: tuple[str, ...],
    raw: bool,
    as_json: bool,
    rest: bool,
    component: str,
    nodes: str,
    zelidauth: str,
    api_url: str,
) -> None:
    async with _open_operations(app_name, component, nodes, zelidauth, api_url) as ops:
        if rest:
            result = await ops.app_exec(list(cmd))
            output = result if isinstance(result, str) else json.dumps(result, indent=2)
        else:
            output = await ops.exec_command(" ".join(cmd), clean=not raw)

    if as_json:
        parsed = extract_json(output)
        if parsed is None:
            console.print("[red]Error: no JSON found in command output[/red]")
            raise SystemExit(1)
        output = json.dumps(parsed, indent=2)
    click.echo(output)


# =============================================================================
# Monitoring
# =============================================================================


@cli.command("logs")
@click.argument("app_name")
@click.option(
    "--lines", "-n", default=DEFAULT_LOG_LINES, show_default=True, type=click.IntRange(min=1)
)
@_file_options
def logs_cmd(
    app_name: str, lines: int, component: str, nodes: str, zelidauth: str, api_url: str
) -> None:
    """Print the last LINES lines of the component container log."""
    _run(_run_logs(app_name, lines, component, nodes, zelidauth, api_url))


async def _run_logs(
    app_name: str, lines: int, component: str, nodes: str, zelidauth: str, api_url: str
) -> None:
    async with _open_operations(app_name, component, nodes, zelidauth, api_url) as ops:
        logs = await ops.get_logs(lines)
    click.echo(logs)


@cli.command("stats")
@click.argument("app_name")
@_file_options
def stats_cmd(
    app_name: str, component: str, nodes: str, zelidauth: str, api_url: str
) -> None:
    """Show CPU, memory, network and disk usage of APP_NAME's container."""
    _run(_run_stats(app_name, component, nodes, zelidauth, api_url))


async def _run_stats(
    app_name: str, component: str, nodes: str, zelidauth: str, api_url: str
) -> None:
    api = HandlerFluxApi(api_url)
    try:
        components = await api.get_app_components(app_name)
    except CapacitorError as e:
        logger.warning("App specification unavailable: %s", e.message)
        components = []
    finally:
        await api.close()

    async with _open_operations(app_name, component, nodes, zelidauth, api_url) as ops:
        stats = await ops.get_stats(components)
        served = ops.last_node

    table = Table(title=f"Stats of {app_name}")
    table.add_column("Container", style="cyan")
    table.add_column("CPU", justify="right")
    table.add_column("Memory", justify="right")
    table.add_column("Disk", justify="right")
    table.add_column("Net rx/tx", justify="right", style="dim")
    for container in stats.containers:
        table.add_row(
            escape(container.name),
            f"{container.cpu:.1f}%",
            f"{_mib(container.memory.usage)} / {_mib(container.memory.limit)} "
            f"({container.memory.percent:.1f}%)",
            f"{_mib(container.disk.usage)} ({container.disk.percent:.1f}%)",
            f"{_mib(container.rx_bytes)} / {_mib(container.tx_bytes)}",
        )
    console.print(table)
    if served is not None:
        console.print(f"[dim]served by {served.address}[/dim]")


def _mib(value: float) -> str:
    return f"{value / (1024 * 1024):.1f} MiB"


# =============================================================================
# Server
# =============================================================================


@cli.command("serve")
@click.option("--host", default=None, help="Bind host (env: CAPACITOR_HTTP_HOST)")
@click.option("--port", default=None, type=int, help="Bind port (env: CAPACITOR_HTTP_PORT)")
def serve_cmd(host: Optional[str], port: Optional[int]) -> None:
    """Run the dashboard backend server until interrupted."""
    config = ModelDashboardConfig.from_env()
    overrides: dict[str, object] = {}
    if host:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port
    if overrides:
        config = config.model_copy(update=overrides)
    try:
        _run(_run_serve(config))
    except KeyboardInterrupt:
        console.print("[dim]Stopped[/dim]")


async def _run_serve(config: ModelDashboardConfig) -> None:
    server = DashboardServer(config, ModelFallbackConfig.from_env())
    await server.start()
    console.print(
        f"[bold blue]Dashboard backend listening on "
        f"{config.host}:{config.port}[/bold blue]"
    )
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()


__all__: list[str] = ["cli"]
