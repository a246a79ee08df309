# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Capacitor utility functions.

Exports:
    generate_correlation_id: correlation ID helper
    parse_env_int, parse_env_float: environment variable parsing
    sanitize_error_string, sanitize_error_message: credential-safe error text
    clean_exec_output, extract_json, extract_site_url: shell output cleaning

Credential normalisation lives in ``capacitor.utils.util_zelidauth`` and is
imported from there directly (it depends on the models package).
"""

from capacitor.utils.correlation import generate_correlation_id
from capacitor.utils.util_env_parsing import parse_env_float, parse_env_int
from capacitor.utils.util_error_sanitization import (
    sanitize_error_message,
    sanitize_error_string,
)
from capacitor.utils.util_exec_output import (
    clean_exec_output,
    extract_json,
    extract_site_url,
)

__all__: list[str] = [
    "clean_exec_output",
    "extract_json",
    "extract_site_url",
    "generate_correlation_id",
    "parse_env_float",
    "parse_env_int",
    "sanitize_error_message",
    "sanitize_error_string",
]
