"""
Tests for fee estimation.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from orcwallet.errors import NetworkError
from orcwallet.fees import DEFAULT_FEE_RATE, FeeEstimator


def make_source(**kwargs) -> MagicMock:
    source = MagicMock()
    source.get_recommended_fees = AsyncMock(**kwargs)
    return source


class TestFeeEstimator:
    @pytest.mark.asyncio
    async def test_uses_hour_tier(self) -> None:
        source = make_source(
            return_value={"fastestFee": 40, "halfHourFee": 30, "hourFee": 21, "economyFee": 5}
        )
        assert await FeeEstimator(source).estimate() == 21
        source.get_recommended_fees.assert_awaited_once_with("mainnet")

    @pytest.mark.asyncio
    async def test_rounds_up(self) -> None:
        source = make_source(return_value={"hourFee": 3.2})
        assert await FeeEstimator(source).estimate() == 4

    @pytest.mark.asyncio
    async def test_passes_network(self) -> None:
        source = make_source(return_value={"hourFee": 1})
        assert await FeeEstimator(source).estimate("testnet") == 1
        source.get_recommended_fees.assert_awaited_once_with("testnet")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            NetworkError("unreachable"),
            httpx.ConnectError("refused"),
            ValueError("bad json"),
            RuntimeError("anything"),
        ],
    )
    async def test_default_when_service_fails(self, error: Exception) -> None:
        source = make_source(side_effect=error)
        assert await FeeEstimator(source).estimate() == DEFAULT_FEE_RATE == 10

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{}, {"hourFee": None}, {"hourFee": 0}, {"hourFee": -3}, {"hourFee": "abc"}],
    )
    async def test_default_when_tier_unusable(self, payload: dict) -> None:
        source = make_source(return_value=payload)
        assert await FeeEstimator(source).estimate() == 10

    @pytest.mark.asyncio
    async def test_custom_default(self) -> None:
        source = make_source(side_effect=NetworkError("down"))
        assert await FeeEstimator(source, default_fee_rate=25).estimate() == 25
