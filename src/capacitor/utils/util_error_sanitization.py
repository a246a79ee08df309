# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Error message sanitization utilities.

Node responses and transport exceptions are logged verbatim in several
places. Some of them echo request headers back, and the ``zelidauth`` header
carries a wallet signature. This module redacts such messages before they
reach a log line.

Sanitization is for LOGS only. The last error of a session is shown to the
user unchanged, because it is often the only actionable diagnostic.

Example:
    >>> sanitize_error_string('bad zelidauth {"signature": "H9x..."}')
    '[REDACTED - potentially sensitive data]'
    >>> sanitize_error_string("Node 10.0.0.5 returned 502")
    'Node 10.0.0.5 returned 502'
"""

from __future__ import annotations

# Checked case-insensitively against the message.
SENSITIVE_PATTERNS: tuple[str, ...] = (
    "zelidauth",
    "signature",
    "loginphrase",
    "login_phrase",
    "password",
    "passwd",
    "secret",
    "token",
    "private_key",
    "privatekey",
    "-----begin",
)


def sanitize_error_string(error_str: str, max_length: int = 500) -> str:
    """Sanitize a raw error string for safe inclusion in logs.

    Args:
        error_str: The error string to sanitize
        max_length: Maximum length of the sanitized message

    Returns:
        The message, a redaction marker, or a truncated message.
    """
    if not error_str:
        return ""

    error_lower = error_str.lower()
    for pattern in SENSITIVE_PATTERNS:
        if pattern in error_lower:
            return "[REDACTED - potentially sensitive data]"

    if len(error_str) > max_length:
        return error_str[:max_length] + "... [truncated]"

    return error_str


def sanitize_error_message(exception: BaseException, max_length: int = 500) -> str:
    """Sanitize an exception for logging.

    Returns:
        ``"{ExceptionType}: {sanitized message}"``
    """
    exception_type = type(exception).__name__
    sanitized = sanitize_error_string(str(exception), max_length=max_length)
    if not sanitized:
        return exception_type
    return f"{exception_type}: {sanitized}"


__all__: list[str] = [
    "SENSITIVE_PATTERNS",
    "sanitize_error_message",
    "sanitize_error_string",
]
