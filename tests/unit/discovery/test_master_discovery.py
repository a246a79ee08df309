# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Tests for master discovery: FDM regions, HAProxy stats and the ranked service.

Test Pattern:
    Oracles are exercised through httpx.MockTransport; the service is
    exercised with in-memory fake oracles so ordering and fail-soft
    behaviour can be checked without any network.
"""

from __future__ import annotations

import time

import httpx
import pytest

from capacitor.discovery import (
    OracleFdmRegion,
    OracleHaproxy,
    ServiceMasterDiscovery,
    fdm_index,
    fdm_oracles,
    haproxy_stats_url,
    parse_active_servers,
)
from capacitor.enums import EnumMasterSource
from capacitor.errors import TransportError, TransportTimeoutError
from capacitor.protocols import ProtocolMasterOracle
from tests.helpers.util_fakes import FakeOracle
from tests.helpers.util_http import json_response, mock_client, text_response

pytestmark = [pytest.mark.unit]


def _stats_server(svname: str, act: object) -> list[dict[str, object]]:
    """One server row in the HAProxy JSON stats dialect."""
    return [
        {"field": {"pos": 1, "name": "svname"}, "value": {"type": "str", "value": svname}},
        {"field": {"pos": 19, "name": "act"}, "value": {"type": "u32", "value": act}},
    ]


# =============================================================================
# FDM
# =============================================================================


class TestFdmIndex:
    """Application sharding across FDM index slots."""

    @pytest.mark.parametrize(
        ("app_name", "expected"),
        [
            ("apache", 1),
            ("gitea", 1),
            ("h", 2),
            ("nginx", 2),
            ("owncast", 3),
            ("uptime", 3),
            ("vault", 4),
            ("wordpress", 4),
            ("Zabbix", 4),
            ("1app", 1),
            ("", 1),
        ],
    )
    def test_index(self, app_name: str, expected: int) -> None:
        assert fdm_index(app_name) == expected

    def test_region_order_and_urls(self) -> None:
        oracles = fdm_oracles()
        assert [o.source for o in oracles] == [
            EnumMasterSource.FDM_EU,
            EnumMasterSource.FDM_USA,
            EnumMasterSource.FDM_ASIA,
        ]
        assert [o.base_url("wordpress") for o in oracles] == [
            "http://fdm-fn-1-4.runonflux.io:16130",
            "http://fdm-usa-1-4.runonflux.io:16130",
            "http://fdm-sg-1-4.runonflux.io:16130",
        ]


class TestOracleFdmRegion:
    """Tests for one FDM region oracle."""

    async def test_first_ip_is_master(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return json_response(
                {"status": "success", "data": {"ips": ["10.0.0.9:31000", "10.0.0.5:31000"]}}
            )

        async with mock_client(handler) as client:
            oracle = OracleFdmRegion(EnumMasterSource.FDM_EU, "fdm-fn-1", client)
            candidate = await oracle.detect("wordpress", 5.0)

        assert seen == ["http://fdm-fn-1-4.runonflux.io:16130/appips/wordpress"]
        assert candidate is not None
        assert candidate.host == "10.0.0.9"
        assert candidate.raw_address == "10.0.0.9:31000"
        assert candidate.all_addresses == ("10.0.0.9:31000", "10.0.0.5:31000")
        assert candidate.source == EnumMasterSource.FDM_EU

    @pytest.mark.parametrize(
        "response",
        [
            json_response({"status": "success", "data": {"ips": []}}),
            json_response({"status": "error", "data": {"ips": ["10.0.0.9"]}}),
            json_response({"status": "success", "data": "nope"}),
            json_response({"status": "success", "data": {"ips": ["10.0.0.9"]}}, 503),
            text_response("<html>maintenance</html>", content_type="text/html"),
        ],
    )
    async def test_unusable_answers_return_none(self, response: httpx.Response) -> None:
        async with mock_client(lambda _: response) as client:
            oracle = OracleFdmRegion(EnumMasterSource.FDM_USA, "fdm-usa-1", client)
            assert await oracle.detect("nginx", 5.0) is None

    async def test_timeout_raises_transport_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        async with mock_client(handler) as client:
            oracle = OracleFdmRegion(EnumMasterSource.FDM_ASIA, "fdm-sg-1", client)
            with pytest.raises(TransportTimeoutError):
                await oracle.detect("nginx", 5.0)

    async def test_connect_error_raises_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with mock_client(handler) as client:
            oracle = OracleFdmRegion(EnumMasterSource.FDM_EU, "fdm-fn-1", client)
            with pytest.raises(TransportError, match="ConnectError"):
                await oracle.detect("nginx", 5.0)


# =============================================================================
# HAProxy
# =============================================================================


class TestHaproxy:
    """Tests for the HAProxy stats oracle."""

    def test_stats_url(self) -> None:
        assert haproxy_stats_url("wordpress") == (
            "https://wordpress.app.runonflux.io/fluxstatistics"
            "?scope=wordpressapprunonfluxio;json;norefresh"
        )

    def test_parse_active_servers(self) -> None:
        body = [
            _stats_server("10.0.0.5:31000", 0),
            _stats_server("10.0.0.9:31000", 1),
            _stats_server("10.0.0.12:31000", 1),
        ]
        assert parse_active_servers(body) == ["10.0.0.9:31000", "10.0.0.12:31000"]

    @pytest.mark.parametrize("act", ["1", True, None, 2])
    def test_act_must_be_integer_one(self, act: object) -> None:
        assert parse_active_servers([_stats_server("10.0.0.9:31000", act)]) == []

    @pytest.mark.parametrize("body", [{}, "text", [None, "row"], [[{"field": "x"}]]])
    def test_malformed_bodies(self, body: object) -> None:
        assert parse_active_servers(body) == []

    async def test_detect_returns_first_active(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return json_response(
                [_stats_server("10.0.0.5:31000", 0), _stats_server("10.0.0.9:31000", 1)]
            )

        async with mock_client(handler) as client:
            candidate = await OracleHaproxy(client).detect("wordpress", 5.0)

        assert candidate is not None
        assert candidate.host == "10.0.0.9"
        assert candidate.raw_address == "10.0.0.9:31000"
        assert candidate.source == EnumMasterSource.HAPROXY
        assert requests[0].headers["accept"] == "application/json"

    async def test_detect_without_active_server(self) -> None:
        async with mock_client(
            lambda _: json_response([_stats_server("10.0.0.5:31000", 0)])
        ) as client:
            assert await OracleHaproxy(client).detect("wordpress", 5.0) is None


# =============================================================================
# Ranked discovery
# =============================================================================


class TestServiceMasterDiscovery:
    """Ranked oracle evaluation, first answer wins, never raises."""

    def test_fake_oracle_satisfies_protocol(self) -> None:
        assert isinstance(FakeOracle(EnumMasterSource.HAPROXY), ProtocolMasterOracle)

    def test_default_oracle_order(self) -> None:
        discovery = ServiceMasterDiscovery.default()
        assert [o.source for o in discovery.oracles] == [
            EnumMasterSource.FDM_EU,
            EnumMasterSource.FDM_USA,
            EnumMasterSource.FDM_ASIA,
            EnumMasterSource.HAPROXY,
        ]
        assert [o.source for o in ServiceMasterDiscovery.haproxy_only().oracles] == [
            EnumMasterSource.HAPROXY
        ]

    async def test_first_answer_wins(self) -> None:
        eu = FakeOracle(EnumMasterSource.FDM_EU)
        usa = FakeOracle(EnumMasterSource.FDM_USA, host="10.0.0.9:31000")
        asia = FakeOracle(EnumMasterSource.FDM_ASIA, host="10.0.0.5")
        result = await ServiceMasterDiscovery([eu, usa, asia]).detect("wordpress")
        assert result.found
        assert result.master_host == "10.0.0.9"
        assert result.all_hosts == ("10.0.0.9:31000",)
        assert result.source == EnumMasterSource.FDM_USA
        assert asia.calls == 0

    async def test_errors_fall_through_to_next_oracle(self) -> None:
        oracles = [
            FakeOracle(EnumMasterSource.FDM_EU, error=TransportError("down")),
            FakeOracle(EnumMasterSource.FDM_USA, error=ValueError("bad json")),
            FakeOracle(EnumMasterSource.FDM_ASIA, error=httpx.ConnectError("refused")),
            FakeOracle(EnumMasterSource.HAPROXY, host="10.0.0.12:31000"),
        ]
        result = await ServiceMasterDiscovery(oracles).detect("wordpress")
        assert result.master_host == "10.0.0.12"
        assert result.source == EnumMasterSource.HAPROXY

    async def test_no_master(self) -> None:
        result = await ServiceMasterDiscovery(
            [FakeOracle(EnumMasterSource.HAPROXY)]
        ).detect("wordpress")
        assert not result.found
        assert result.master_host is None
        assert result.all_hosts == ()
        assert result.source == EnumMasterSource.NONE

    async def test_empty_app_name(self) -> None:
        oracle = FakeOracle(EnumMasterSource.HAPROXY, host="10.0.0.5")
        result = await ServiceMasterDiscovery([oracle]).detect("")
        assert not result.found
        assert oracle.calls == 0

    async def test_all_oracles_hanging_resolve_within_timeouts(self) -> None:
        oracles = [
            FakeOracle(source, host="10.0.0.5", delay=30.0)
            for source in (
                EnumMasterSource.FDM_EU,
                EnumMasterSource.FDM_USA,
                EnumMasterSource.FDM_ASIA,
                EnumMasterSource.HAPROXY,
            )
        ]
        discovery = ServiceMasterDiscovery(oracles, timeout=0.05)

        started = time.monotonic()
        result = await discovery.detect("wordpress")
        elapsed = time.monotonic() - started

        assert not result.found
        assert all(o.calls == 1 for o in oracles)
        assert elapsed < 2.0

    async def test_real_oracles_over_failing_transport(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host.startswith("fdm-"):
                raise httpx.ConnectError("refused", request=request)
            return json_response([_stats_server("10.0.0.9:31000", 1)])

        async with mock_client(handler) as client:
            result = await ServiceMasterDiscovery.default(client).detect("wordpress")

        assert result.master_host == "10.0.0.9"
        assert result.source == EnumMasterSource.HAPROXY
