# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Cleaning of interactive shell output.

Output collected from the terminal socket interleaves the command echo,
shell prompts and PHP diagnostics with the actual command output. These
helpers strip that noise so WP-CLI results can be parsed.
"""

from __future__ import annotations

import json
import re
from typing import Optional

_PHP_DIAGNOSTIC = (
    r"PHP (?:Warning|Notice|Fatal error|Deprecated|Parse error|Strict Standards):"
)
_TIMESTAMPED_PHP_LINE = re.compile(r"^\[[^\]]*\]\s*" + _PHP_DIAGNOSTIC)
_BARE_PHP_LINE = re.compile(r"^" + _PHP_DIAGNOSTIC)
_EMBEDDED_JSON = re.compile(r"\[\s*\{[\s\S]*\}\s*\]|\[\s*\]|\{\"[\s\S]*\}")
_URL = re.compile(r"https?://\S+")


def _is_noise(line: str) -> bool:
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return True
    return bool(
        _TIMESTAMPED_PHP_LINE.match(stripped) or _BARE_PHP_LINE.match(stripped)
    )


def clean_exec_output(output: str) -> str:
    """Drop prompt/echo lines, blank lines and PHP diagnostic lines."""
    lines = output.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    return "\n".join(line.rstrip() for line in lines if not _is_noise(line))


def extract_json(output: str) -> object:
    """Parse JSON out of shell output.

    The cleaned output is parsed as a whole first; failing that, the first
    embedded JSON array or object is parsed.

    Returns:
        The parsed value, or None when no JSON could be found.
    """
    cleaned = clean_exec_output(output)
    try:
        return json.loads(cleaned)
    except ValueError:
        pass
    match = _EMBEDDED_JSON.search(cleaned)
    if match is None:
        return None
    try:
        return json.loads(match.group(0))
    except ValueError:
        return None


def extract_site_url(output: str) -> Optional[str]:
    """Return the first http(s) URL in the cleaned output."""
    match = _URL.search(clean_exec_output(output))
    return match.group(0) if match else None


__all__: list[str] = ["clean_exec_output", "extract_json", "extract_site_url"]
