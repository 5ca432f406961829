"""
Fee rate estimation.
"""

from __future__ import annotations

import math

from loguru import logger

from orcwallet.mempool import FeeSource

DEFAULT_FEE_RATE = 10  # sat/vB
HOUR_FEE_TIER = "hourFee"


class FeeEstimator:
    """
    Advisory fee-rate lookup.

    Uses the "confirm within about an hour" tier of the recommendation service.
    Any failure yields the fixed default instead of an error.
    """

    def __init__(self, source: FeeSource, default_fee_rate: int = DEFAULT_FEE_RATE):
        self.source = source
        self.default_fee_rate = default_fee_rate

    async def estimate(self, network: str = "mainnet") -> int:
        try:
            tiers = await self.source.get_recommended_fees(network)
            rate = float(tiers.get(HOUR_FEE_TIER) or 0)
        except Exception as e:
            logger.warning(f"Fee estimation failed: {e}, using fallback")
            return self.default_fee_rate

        if not math.isfinite(rate) or rate <= 0:
            logger.warning(f"No usable {HOUR_FEE_TIER} tier, using fallback")
            return self.default_fee_rate

        fee_rate = math.ceil(rate)
        logger.debug(f"Estimated fee rate: {fee_rate} sat/vB")
        return fee_rate
