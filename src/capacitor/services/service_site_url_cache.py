# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""WordPress site URL cache.

The site URL of a WordPress application rarely changes, so it is looked up
once per (application, node host) and kept until explicitly invalidated.
"""

from __future__ import annotations

from typing import Optional

from capacitor.models.model_node_address import ModelNodeAddress, host_of


def _host(node: ModelNodeAddress | str) -> str:
    return node.host if isinstance(node, ModelNodeAddress) else host_of(node)


class SiteUrlCache:
    """Site URLs keyed by ``(app_name, node host)``; entries never expire."""

    def __init__(self) -> None:
        self._urls: dict[tuple[str, str], str] = {}

    def get(self, app_name: str, node: ModelNodeAddress | str) -> Optional[str]:
        return self._urls.get((app_name, _host(node)))

    def set(self, app_name: str, node: ModelNodeAddress | str, url: str) -> None:
        self._urls[(app_name, _host(node))] = url

    def invalidate(self, app_name: str, node: ModelNodeAddress | str | None = None) -> None:
        """Drop one entry, or every entry of ``app_name`` when ``node`` is None."""
        if node is not None:
            self._urls.pop((app_name, _host(node)), None)
            return
        for key in [k for k in self._urls if k[0] == app_name]:
            del self._urls[key]

    def clear(self) -> None:
        self._urls.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._urls

    def __len__(self) -> int:
        return len(self._urls)


__all__: list[str] = ["SiteUrlCache"]
