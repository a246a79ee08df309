# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Node Ordering.

Deterministically merges a discovered master host with the caller-supplied
node list into one ordered, deduplicated, length-bounded list.

Rules:
    - Hosts are compared without ports; the first occurrence of a host wins.
    - If the master's host matches a candidate, that candidate's own entry
      (with the caller's port) moves to index 0.
    - A master absent from the candidates is never injected; the caller's
      order is used unchanged.
    - The result is truncated to ``max_nodes`` after the master is hoisted.

All functions here are pure.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional, TypeVar

from capacitor.models.model_node_address import ModelNodeAddress, host_of

DEFAULT_MAX_NODES = 5

T = TypeVar("T")


def dedupe_by_host(candidates: Sequence[ModelNodeAddress]) -> list[ModelNodeAddress]:
    """Drop later entries whose host was already seen."""
    seen: set[str] = set()
    unique: list[ModelNodeAddress] = []
    for node in candidates:
        if node.host in seen:
            continue
        seen.add(node.host)
        unique.append(node)
    return unique


def order_nodes(
    master_host: Optional[str],
    candidates: Sequence[ModelNodeAddress],
    max_nodes: int = DEFAULT_MAX_NODES,
) -> list[ModelNodeAddress]:
    """Return ``candidates`` master-first, deduplicated and truncated.

    Example:
        >>> nodes = ModelNodeAddress.parse_many("10.0.0.5:16127,10.0.0.9:16127")
        >>> [n.address for n in order_nodes("10.0.0.9", nodes)]
        ['10.0.0.9:16127', '10.0.0.5:16127']
    """
    unique = dedupe_by_host(candidates)
    if master_host:
        master = host_of(master_host)
        for index, node in enumerate(unique):
            if node.host == master:
                unique.insert(0, unique.pop(index))
                break
    return unique[:max_nodes]


def rotate(items: Sequence[T], start: int) -> list[T]:
    """Rotate ``items`` so iteration begins at ``start`` and wraps around."""
    if not items:
        return []
    start %= len(items)
    return [*items[start:], *items[:start]]


__all__: list[str] = ["DEFAULT_MAX_NODES", "dedupe_by_host", "order_nodes", "rotate"]
