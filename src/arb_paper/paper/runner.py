"""Paper ledger CLI — inspect and drive the engine from a terminal."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

import structlog
import yaml
from pydantic import ValidationError

from arb_paper.arbitrage import ArbitrageDetector, StaticPriceSource
from arb_paper.config.loader import load_config
from arb_paper.config.schema import ArbitrageConfig
from arb_paper.errors import InvalidOrderError, LedgerError, PersistenceError
from arb_paper.logging.setup import configure_from
from arb_paper.paper.engine import PaperTradingEngine, PortfolioSummary

log = structlog.get_logger("paper_cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="arb-paper", description="Paper trading ledger")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Portfolio summary")

    buy = sub.add_parser("buy", help="Paper-buy USD SIZE of MARKET at PRICE")
    buy.add_argument("market")
    buy.add_argument("size", type=float, help="USD notional")
    buy.add_argument("price", type=float, help="Price per share, 0-1")
    buy.add_argument("--coin", default="")
    buy.add_argument("--timeframe", default="")
    buy.add_argument("--platform", default="polymarket")
    buy.add_argument("--strategy", default="manual")
    buy.add_argument("--confidence", type=float, default=0.0)
    buy.add_argument("--notes", default=None)

    sell = sub.add_parser("sell", help="Close the MARKET position at PRICE")
    sell.add_argument("market")
    sell.add_argument("price", type=float)

    sub.add_parser("positions", help="List open positions")

    trades = sub.add_parser("trades", help="List recent trades, newest first")
    trades.add_argument("-n", type=int, default=10)

    mark = sub.add_parser("mark", help="Mark positions to current prices")
    mark.add_argument("prices", nargs="+", metavar="MARKET=PRICE")

    sub.add_parser("reset", help="Reset the portfolio (trade history is kept)")

    scan = sub.add_parser("scan", help="One arbitrage pass over a YAML quotes file")
    scan.add_argument("quotes", help="YAML file of matched markets with both venues' quotes")
    scan.add_argument("--execute", action="store_true", help="Paper-buy each opportunity")
    return parser


def parse_marks(pairs: Sequence[str]) -> dict[str, float]:
    """Turn ``["M=0.55", ...]`` into ``{"M": 0.55, ...}``."""
    prices: dict[str, float] = {}
    for pair in pairs:
        market, sep, raw = pair.rpartition("=")
        if not sep or not market:
            raise InvalidOrderError(f"expected MARKET=PRICE, got {pair!r}")
        try:
            prices[market] = float(raw)
        except ValueError:
            raise InvalidOrderError(f"bad price in {pair!r}") from None
    return prices


def format_summary(s: PortfolioSummary) -> str:
    best = f"${s.best_trade_pnl:+.2f}" if s.best_trade_pnl is not None else "-"
    worst = f"${s.worst_trade_pnl:+.2f}" if s.worst_trade_pnl is not None else "-"
    return "\n".join([
        f"Total value:     ${s.total_value:,.2f}",
        f"Cash:            ${s.cash_balance:,.2f}",
        f"Open positions:  {s.positions_count}",
        f"Realized P&L:    ${s.realized_pnl:+,.2f}",
        f"Unrealized P&L:  ${s.unrealized_pnl:+,.2f}",
        f"Total P&L:       ${s.total_pnl:+,.2f} ({s.pnl_percent:+.2f}%)",
        f"Win rate:        {s.win_rate * 100:.1f}% ({s.wins}/{s.total_trades})",
        f"Best / worst:    {best} / {worst}",
    ])


def run_command(
    engine: PaperTradingEngine,
    args: argparse.Namespace,
    arbitrage: ArbitrageConfig | None = None,
) -> int:
    """Execute one parsed command against *engine*; return the exit status."""
    if args.command == "status":
        print(format_summary(engine.summary()))

    elif args.command == "buy":
        trade_id = engine.buy(
            args.market,
            args.coin,
            args.timeframe,
            args.platform,
            args.size,
            args.price,
            strategy=args.strategy,
            confidence=args.confidence,
            notes=args.notes,
        )
        print(f"Bought ${args.size:.2f} of {args.market} @ {args.price:.3f} (trade {trade_id})")

    elif args.command == "sell":
        result = engine.sell(args.market, args.price)
        print(f"Sold {args.market} @ {args.price:.3f}: P&L ${result.pnl:+.2f}")
        if not result.reconciled:
            print(f"warning: no open trade record for {args.market}", file=sys.stderr)

    elif args.command == "positions":
        positions = engine.open_positions()
        if not positions:
            print("No open positions")
        for p in positions:
            print(
                f"{p.market:<32} {p.platform:<10} {p.size:>10.2f} sh"
                f"  avg {p.avg_price:.3f}  now {p.current_price:.3f}"
                f"  uPnL ${p.unrealized_pnl:+.2f}"
            )

    elif args.command == "trades":
        trades = engine.recent_trades(args.n)
        if not trades:
            print("No trades")
        for t in trades:
            pnl = f"${t.pnl:+.2f}" if t.pnl is not None else "-"
            print(
                f"{t.timestamp:%Y-%m-%d %H:%M:%S}  {t.status.value:<9} {t.side!s:<4}"
                f" {t.market:<32} ${t.size:>8.2f} @ {t.entry_price:.3f}  {pnl}  [{t.strategy}]"
            )

    elif args.command == "mark":
        updated = engine.update_prices(parse_marks(args.prices))
        print(f"Marked {updated} position(s)")

    elif args.command == "reset":
        engine.reset()
        print(f"Portfolio reset to ${engine.portfolio.initial_balance:,.2f}")

    elif args.command == "scan":
        source, markets = StaticPriceSource.from_yaml(args.quotes)
        detector = ArbitrageDetector.from_config(source, markets, arbitrage or ArbitrageConfig())
        before = len(engine.trade_log)
        found = detector.run_once(engine if args.execute else None)
        for opp in found:
            print(
                f"{opp.market.name}: buy {opp.buy_venue} @ {opp.buy_price:.3f},"
                f" sell {opp.sell_venue} @ {opp.sell_price:.3f}, spread {opp.spread * 100:.2f}%"
            )
        print(f"Found {len(found)} opportunity(ies) across {len(markets)} market(s)")
        if args.execute:
            print(f"Booked {len(engine.trade_log) - before} trade(s)")

    else:
        raise ValueError(f"unknown command: {args.command}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point — load config, set up logging, run one command."""
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config)
    except (ValidationError, yaml.YAMLError) as exc:
        print(f"invalid config: {exc}", file=sys.stderr)
        return 1
    configure_from(config.logging)

    try:
        engine = PaperTradingEngine.from_config(config.paper, config.database)
        return run_command(engine, args, config.arbitrage)
    except PersistenceError as exc:
        log.error("command_failed", command=args.command, error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except LedgerError as exc:
        log.warning("command_declined", command=args.command, reason=str(exc))
        print(f"declined: {exc}", file=sys.stderr)
        return 1
    except (OSError, ValidationError, yaml.YAMLError) as exc:
        print(f"error: cannot read input: {exc}", file=sys.stderr)
        return 1
