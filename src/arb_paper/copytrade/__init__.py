"""Copy trading — mirror followed wallets in the paper ledger."""

from arb_paper.copytrade.trader import ActivitySource, CopyTrader, TraderSummary

__all__ = ["ActivitySource", "CopyTrader", "TraderSummary"]
