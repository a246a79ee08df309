# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Pytest configuration and shared fixtures for capacitor tests."""

from __future__ import annotations

import pytest

from capacitor.models.model_fallback_config import ModelFallbackConfig
from capacitor.models.model_node_address import ModelNodeAddress
from tests.helpers.util_http import RAW_ZELIDAUTH


@pytest.fixture
def three_nodes() -> list[ModelNodeAddress]:
    """Three nodes of one application, caller order."""
    return ModelNodeAddress.parse_many("10.0.0.5:16127,10.0.0.9:16137,10.0.0.12")


@pytest.fixture
def fast_config() -> ModelFallbackConfig:
    """Default constants with no delay between first-node retries."""
    return ModelFallbackConfig(retry_delay_seconds=0.0)


@pytest.fixture
def raw_zelidauth() -> str:
    return RAW_ZELIDAUTH
