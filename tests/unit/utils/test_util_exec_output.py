# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Tests for terminal output cleaning."""

from __future__ import annotations

import pytest

from capacitor.utils.util_exec_output import (
    clean_exec_output,
    extract_json,
    extract_site_url,
)

pytestmark = [pytest.mark.unit]

TERMINAL_OUTPUT = (
    "# wp plugin list --format=json --allow-root && exit 0\r\n"
    "[01-May-2024 10:00:00 UTC] PHP Warning:  Undefined array key in x.php\r\n"
    "PHP Notice:  Trying to access array offset\r\n"
    "\r\n"
    '[{"name":"akismet","status":"active"}]\r\n'
    "# \r\n"
)


class TestCleanExecOutput:
    """Tests for prompt, blank and diagnostic line removal."""

    def test_noise_removed(self) -> None:
        assert clean_exec_output(TERMINAL_OUTPUT) == (
            '[{"name":"akismet","status":"active"}]'
        )

    def test_plain_output_preserved(self) -> None:
        assert clean_exec_output("line one\nline two  \n") == "line one\nline two"

    def test_all_php_diagnostic_kinds(self) -> None:
        output = "\n".join(
            [
                "PHP Fatal error: boom",
                "PHP Deprecated: old",
                "PHP Parse error: syntax",
                "[ts] PHP Strict Standards: meh",
                "kept",
            ]
        )
        assert clean_exec_output(output) == "kept"

    def test_php_mention_mid_line_kept(self) -> None:
        assert clean_exec_output("Using PHP Warning: levels") == "Using PHP Warning: levels"


class TestExtractJson:
    """Tests for JSON extraction."""

    def test_whole_output(self) -> None:
        assert extract_json(TERMINAL_OUTPUT) == [{"name": "akismet", "status": "active"}]

    def test_embedded_array(self) -> None:
        output = 'Success: listed\n[{"ID":1,"user_login":"admin"}]\nbye'
        assert extract_json(output) == [{"ID": 1, "user_login": "admin"}]

    def test_embedded_object(self) -> None:
        assert extract_json('noise {"version":"6.5"}') == {"version": "6.5"}

    def test_empty_array(self) -> None:
        assert extract_json("Plugins: []") == []

    def test_no_json(self) -> None:
        assert extract_json("Error: not installed") is None


class TestExtractSiteUrl:
    """Tests for the siteurl scrape."""

    def test_first_url(self) -> None:
        output = "# wp option get siteurl\nhttps://blog.example.com\n"
        assert extract_site_url(output) == "https://blog.example.com"

    def test_http_url(self) -> None:
        assert extract_site_url("http://10.0.0.5:31000") == "http://10.0.0.5:31000"

    def test_no_url(self) -> None:
        assert extract_site_url("# prompt only\n") is None
