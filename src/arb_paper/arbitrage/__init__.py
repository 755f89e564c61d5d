"""Cross-venue arbitrage detection."""

from arb_paper.arbitrage.detector import (
    ArbitrageDetector,
    PriceSource,
    find_opportunities,
    opportunity_confidence,
)
from arb_paper.arbitrage.sources import StaticPriceSource

__all__ = [
    "ArbitrageDetector",
    "PriceSource",
    "StaticPriceSource",
    "find_opportunities",
    "opportunity_confidence",
]
