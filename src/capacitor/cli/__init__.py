# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Capacitor command line interface.

Exports:
    cli: click command group (entry point ``capacitor``)
"""

from capacitor.cli.commands import cli

__all__: list[str] = ["cli"]
