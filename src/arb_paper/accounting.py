"""Share, average-price and P&L arithmetic — pure functions, no I/O.

Prices are binary-outcome probabilities: entries in (0, 1], exits in
[0, 1] (a market resolving NO pays 0). Validating at the point of entry
and exit keeps every stored P&L finite.
"""

from __future__ import annotations

import math

from arb_paper.errors import InvalidOrderError


def _require_finite(name: str, value: float) -> None:
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidOrderError(f"{name} must be a finite number, got {value!r}")


def validate_size(size_usd: float) -> None:
    _require_finite("size_usd", size_usd)
    if size_usd <= 0:
        raise InvalidOrderError(f"size_usd must be positive, got {size_usd}")


def validate_entry_price(price: float) -> None:
    _require_finite("price", price)
    if not 0 < price <= 1:
        raise InvalidOrderError(f"price must be in (0, 1], got {price}")


def validate_exit_price(price: float) -> None:
    _require_finite("exit_price", price)
    if not 0 <= price <= 1:
        raise InvalidOrderError(f"exit_price must be in [0, 1], got {price}")


def validate_confidence(confidence: float) -> None:
    _require_finite("confidence", confidence)
    if not 0 <= confidence <= 1:
        raise InvalidOrderError(f"confidence must be in [0, 1], got {confidence}")


def calculate_shares(size_usd: float, price: float) -> float:
    """Shares bought for *size_usd* at *price* per share."""
    return size_usd / price


def blend_average_price(
    old_size: float,
    old_avg: float,
    size_usd: float,
    shares: float,
) -> float:
    """Average entry price after adding *shares* costing *size_usd*.

    new_avg = (old_size * old_avg + size_usd) / (old_size + shares)
    """
    return (old_size * old_avg + size_usd) / (old_size + shares)


def calculate_position_pnl(size: float, avg_price: float, exit_price: float) -> float:
    """Realised P&L for liquidating *size* shares held at *avg_price*."""
    return size * (exit_price - avg_price)


def calculate_trade_pnl(
    side: str,
    size_usd: float,
    entry_price: float,
    exit_price: float,
) -> float:
    """P&L of a trade record, on the shares its USD size bought.

    Buy:  shares * (exit - entry)
    Sell: shares * (entry - exit)   (short / NO side)
    """
    if entry_price <= 0:
        raise InvalidOrderError(f"entry_price must be positive, got {entry_price}")
    shares = calculate_shares(size_usd, entry_price)
    if side == "Buy":
        return shares * (exit_price - entry_price)
    elif side == "Sell":
        return shares * (entry_price - exit_price)
    raise ValueError(f"unknown side: {side!r}")
