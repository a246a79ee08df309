# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Tests for environment parsing and error sanitization utilities."""

from __future__ import annotations

import logging

import pytest

from capacitor.enums import EnumErrorCode
from capacitor.errors import ConfigurationError
from capacitor.utils import (
    generate_correlation_id,
    parse_env_float,
    parse_env_int,
    sanitize_error_message,
    sanitize_error_string,
)

pytestmark = [pytest.mark.unit]


class TestParseEnvInt:
    """Tests for parse_env_int."""

    def test_unset_returns_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CAPACITOR_TEST_INT", raising=False)
        assert parse_env_int("CAPACITOR_TEST_INT", 7) == 7

    def test_blank_returns_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CAPACITOR_TEST_INT", "  ")
        assert parse_env_int("CAPACITOR_TEST_INT", 7) == 7

    def test_valid_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CAPACITOR_TEST_INT", " 12 ")
        assert parse_env_int("CAPACITOR_TEST_INT", 7, min_value=1, max_value=20) == 12

    def test_out_of_range_warns_and_defaults(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setenv("CAPACITOR_TEST_INT", "0")
        with caplog.at_level(logging.WARNING):
            assert parse_env_int("CAPACITOR_TEST_INT", 7, min_value=1) == 7
        assert "out of range" in caplog.text

    def test_non_numeric_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CAPACITOR_TEST_INT", "seven")
        with pytest.raises(ConfigurationError) as exc_info:
            parse_env_int("CAPACITOR_TEST_INT", 7)
        assert exc_info.value.error_code == EnumErrorCode.INVALID_CONFIGURATION
        assert exc_info.value.context["env_var"] == "CAPACITOR_TEST_INT"
        assert isinstance(exc_info.value.__cause__, ValueError)


class TestParseEnvFloat:
    """Tests for parse_env_float."""

    def test_valid_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CAPACITOR_TEST_FLOAT", "0.25")
        assert parse_env_float("CAPACITOR_TEST_FLOAT", 1.0) == 0.25

    def test_above_max_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CAPACITOR_TEST_FLOAT", "99")
        assert parse_env_float("CAPACITOR_TEST_FLOAT", 1.0, max_value=60.0) == 1.0

    def test_non_numeric_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CAPACITOR_TEST_FLOAT", "fast")
        with pytest.raises(ConfigurationError, match="expected number"):
            parse_env_float("CAPACITOR_TEST_FLOAT", 1.0)


class TestSanitization:
    """Credential-bearing messages never reach logs verbatim."""

    def test_plain_message_unchanged(self) -> None:
        assert sanitize_error_string("Node 10.0.0.5 returned 502") == (
            "Node 10.0.0.5 returned 502"
        )

    @pytest.mark.parametrize(
        "message",
        [
            'bad zelidauth {"zelid":"1abc"}',
            "invalid Signature for wallet",
            "loginPhrase expired",
            "token rejected",
        ],
    )
    def test_sensitive_message_redacted(self, message: str) -> None:
        assert sanitize_error_string(message) == "[REDACTED - potentially sensitive data]"

    def test_long_message_truncated(self) -> None:
        result = sanitize_error_string("x" * 600, max_length=100)
        assert result == "x" * 100 + "... [truncated]"

    def test_empty(self) -> None:
        assert sanitize_error_string("") == ""

    def test_exception_message(self) -> None:
        assert sanitize_error_message(ValueError("bad port")) == "ValueError: bad port"
        assert sanitize_error_message(ValueError()) == "ValueError"


class TestCorrelation:
    def test_unique(self) -> None:
        assert generate_correlation_id() != generate_correlation_id()
