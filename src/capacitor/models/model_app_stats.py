# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Container resource statistics models.

``ModelContainerStats.from_docker`` condenses the raw Docker stats document
returned by a node's ``/apps/appstats/{container}`` endpoint:

    - cpu: percent over the sample window, scaled by online CPUs
    - memory: usage / limit in bytes
    - network: rx / tx bytes summed over every interface
    - block: read / write bytes from ``blkio_stats``
    - disk: bind + volume bytes against the component's HDD quota
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

BYTES_PER_GB = 1024 * 1024 * 1024


def _number(value: object) -> float:
    return float(value) if isinstance(value, (int, float)) else 0.0


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key)
    return value if isinstance(value, dict) else {}


def cpu_percent(raw: dict[str, Any]) -> float:
    """CPU usage percent between ``precpu_stats`` and ``cpu_stats``."""
    cpu = _section(raw, "cpu_stats")
    precpu = _section(raw, "precpu_stats")
    cpu_delta = _number(_section(cpu, "cpu_usage").get("total_usage")) - _number(
        _section(precpu, "cpu_usage").get("total_usage")
    )
    system_delta = _number(cpu.get("system_cpu_usage")) - _number(
        precpu.get("system_cpu_usage")
    )
    cpu_count = _number(cpu.get("online_cpus")) or 1.0
    if system_delta > 0 and cpu_delta > 0:
        return cpu_delta / system_delta * cpu_count * 100
    return 0.0


class ModelAppComponent(BaseModel):
    """One component of an application specification."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    hdd_gb: float = Field(default=0.0, ge=0.0)

    def container_name(self, app_name: str) -> str:
        """Docker container name: ``{component}_{app}``, or the app for single-component specs."""
        return f"{self.name}_{app_name}" if self.name else app_name


class ModelResourceUsage(BaseModel):
    model_config = ConfigDict(frozen=True)

    usage: float = 0.0
    limit: float = 0.0

    @property
    def percent(self) -> float:
        return self.usage / self.limit * 100 if self.limit > 0 else 0.0

    def to_api_dict(self) -> dict[str, float]:
        return {"usage": self.usage, "limit": self.limit, "percent": self.percent}


class ModelContainerStats(BaseModel):
    """Resource usage of one container at one sample."""

    model_config = ConfigDict(frozen=True)

    name: str
    cpu: float = 0.0
    memory: ModelResourceUsage = Field(default_factory=ModelResourceUsage)
    disk: ModelResourceUsage = Field(default_factory=ModelResourceUsage)
    rx_bytes: float = 0.0
    tx_bytes: float = 0.0
    read_bytes: float = 0.0
    write_bytes: float = 0.0

    @classmethod
    def from_docker(
        cls, raw: dict[str, Any], container_name: str, hdd_limit_gb: float = 0.0
    ) -> ModelContainerStats:
        rx_bytes = tx_bytes = 0.0
        for net in _section(raw, "networks").values():
            if isinstance(net, dict):
                rx_bytes += _number(net.get("rx_bytes"))
                tx_bytes += _number(net.get("tx_bytes"))

        read_bytes = write_bytes = 0.0
        for entry in _section(raw, "blkio_stats").get("io_service_bytes_recursive") or []:
            if not isinstance(entry, dict):
                continue
            op = str(entry.get("op", "")).lower()
            if op == "read":
                read_bytes += _number(entry.get("value"))
            elif op == "write":
                write_bytes += _number(entry.get("value"))

        memory = _section(raw, "memory_stats")
        disk = _section(raw, "disk_stats")
        disk_usage = 0.0
        if disk.get("status") != "error":
            disk_usage = _number(disk.get("bind")) + _number(disk.get("volume"))

        return cls(
            name=container_name,
            cpu=cpu_percent(raw),
            memory=ModelResourceUsage(
                usage=_number(memory.get("usage")), limit=_number(memory.get("limit"))
            ),
            disk=ModelResourceUsage(usage=disk_usage, limit=hdd_limit_gb * BYTES_PER_GB),
            rx_bytes=rx_bytes,
            tx_bytes=tx_bytes,
            read_bytes=read_bytes,
            write_bytes=write_bytes,
        )

    def to_api_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "cpu": self.cpu,
            "memory": self.memory.to_api_dict(),
            "network": {"rx_bytes": self.rx_bytes, "tx_bytes": self.tx_bytes},
            "block": {"read_bytes": self.read_bytes, "write_bytes": self.write_bytes},
            "disk": self.disk.to_api_dict(),
        }


class ModelAppStats(BaseModel):
    """Stats of the first container that answered on the serving node."""

    model_config = ConfigDict(frozen=True)

    app_name: str
    containers: tuple[ModelContainerStats, ...] = Field(default_factory=tuple)

    def to_api_dict(self) -> dict[str, object]:
        return {
            "appName": self.app_name,
            "containers": [c.to_api_dict() for c in self.containers],
        }


__all__ = [
    "BYTES_PER_GB",
    "ModelAppComponent",
    "ModelAppStats",
    "ModelContainerStats",
    "ModelResourceUsage",
    "cpu_percent",
]
