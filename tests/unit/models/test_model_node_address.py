# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Tests for ModelNodeAddress parsing, formatting and host equivalence."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from capacitor.errors import ConfigurationError
from capacitor.models.model_node_address import (
    DEFAULT_FLUX_API_PORT,
    ModelNodeAddress,
    host_of,
    to_flux_api_port,
)

pytestmark = [pytest.mark.unit]


class TestParse:
    """Tests for ModelNodeAddress.parse and parse_many."""

    def test_bare_host_gets_default_port(self) -> None:
        node = ModelNodeAddress.parse("10.0.0.5")
        assert node.host == "10.0.0.5"
        assert node.port == DEFAULT_FLUX_API_PORT

    def test_explicit_port_is_kept(self) -> None:
        node = ModelNodeAddress.parse(" 10.0.0.5:16187 ")
        assert node.address == "10.0.0.5:16187"

    def test_custom_default_port(self) -> None:
        assert ModelNodeAddress.parse("10.0.0.5", default_port=16137).port == 16137

    def test_trailing_colon_uses_default_port(self) -> None:
        assert ModelNodeAddress.parse("10.0.0.5:").port == DEFAULT_FLUX_API_PORT

    def test_empty_address_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Empty node address"):
            ModelNodeAddress.parse("   ")

    def test_non_numeric_port_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid port"):
            ModelNodeAddress.parse("10.0.0.5:abc")

    @pytest.mark.parametrize("raw", ["10.0.0.5:99999", "10.0.0.5:0", "10.0.0.5:-1"])
    def test_out_of_range_port_raises(self, raw: str) -> None:
        with pytest.raises(ConfigurationError, match="Invalid node address") as exc_info:
            ModelNodeAddress.parse(raw)
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_parse_many_rejects_out_of_range_port(self) -> None:
        with pytest.raises(ConfigurationError):
            ModelNodeAddress.parse_many("10.0.0.5,10.0.0.9:70000")

    def test_parse_many_skips_blank_entries(self) -> None:
        nodes = ModelNodeAddress.parse_many("10.0.0.5, ,10.0.0.9:16137,")
        assert [n.address for n in nodes] == ["10.0.0.5:16127", "10.0.0.9:16137"]

    def test_host_with_port_rejected_by_constructor(self) -> None:
        with pytest.raises(ValidationError):
            ModelNodeAddress(host="10.0.0.5:16127")


class TestFormatting:
    """Tests for URL and string forms."""

    def test_base_url(self) -> None:
        assert ModelNodeAddress.parse("10.0.0.5").base_url == "http://10.0.0.5:16127"

    def test_dns_url_dashes_ip(self) -> None:
        node = ModelNodeAddress.parse("65.108.1.2:16137")
        assert node.dns_url == "https://65-108-1-2-16137.node.api.runonflux.io"

    def test_str_is_address(self) -> None:
        assert str(ModelNodeAddress.parse("10.0.0.5")) == "10.0.0.5:16127"


class TestHostEquivalence:
    """Equivalence ignores ports; equality does not."""

    def test_same_host_ignores_port(self) -> None:
        node = ModelNodeAddress.parse("10.0.0.5:16127")
        assert node.same_host("10.0.0.5:16187")
        assert node.same_host(ModelNodeAddress(host="10.0.0.5", port=1))
        assert not node.same_host("10.0.0.6")

    def test_equality_is_strict(self) -> None:
        assert ModelNodeAddress.parse("10.0.0.5:16127") != ModelNodeAddress.parse(
            "10.0.0.5:16187"
        )

    def test_host_of(self) -> None:
        assert host_of(" 10.0.0.5:31000 ") == "10.0.0.5"
        assert host_of("10.0.0.5") == "10.0.0.5"

    def test_to_flux_api_port_replaces_app_port(self) -> None:
        assert to_flux_api_port("10.0.0.9:31000") == "10.0.0.9:16127"
        assert to_flux_api_port("10.0.0.9") == "10.0.0.9:16127"
