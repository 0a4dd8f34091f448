"""
Indicator helpers over plain price lists.

Used by the market data provider to turn a closing-price history into the
snapshot values the technical and risk agents consume.

Usage:
    from signaldesk.core.technical_utils import sma, rsi, max_drawdown

    closes = [71200.0, 71800.0, 70900.0, ...]
    ma20 = sma(closes, 20)
"""

from __future__ import annotations

import math
from typing import Sequence


TRADING_DAYS_PER_YEAR = 252


def sma(values: Sequence[float], period: int) -> float | None:
    """Simple moving average of the last ``period`` values, or None if too short."""
    if period <= 0 or len(values) < period:
        return None
    return sum(values[-period:]) / period


def ema(values: Sequence[float], period: int) -> float | None:
    """
    Exponential moving average seeded with the SMA of the first window.

    Uses the standard smoothing multiplier: 2 / (period + 1)
    """
    if period <= 0 or len(values) < period:
        return None

    multiplier = 2 / (period + 1)
    ema_value = sum(values[:period]) / period

    for price in values[period:]:
        ema_value = (price - ema_value) * multiplier + ema_value

    return ema_value


def rsi(closes: Sequence[float], period: int = 14) -> float | None:
    """
    Relative Strength Index with Wilder's smoothing.

    Returns:
        RSI value (0-100) or None if insufficient data
    """
    if len(closes) < period + 1:
        return None

    changes = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    gains = [max(0.0, c) for c in changes]
    losses = [abs(min(0.0, c)) for c in changes]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period

    for i in range(period, len(gains)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


def macd(
    closes: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
) -> float | None:
    """MACD line (fast EMA minus slow EMA), or None if insufficient data."""
    ema_fast = ema(closes, fast_period)
    ema_slow = ema(closes, slow_period)
    if ema_fast is None or ema_slow is None:
        return None
    return ema_fast - ema_slow


def daily_returns(closes: Sequence[float]) -> list[float]:
    return [
        (closes[i] - closes[i - 1]) / closes[i - 1]
        for i in range(1, len(closes))
        if closes[i - 1] != 0
    ]


def volatility(closes: Sequence[float], period: int = 60) -> float | None:
    """Annualized volatility of the last ``period`` daily returns."""
    returns = daily_returns(closes)
    if len(returns) < period:
        return None

    subset = returns[-period:]
    mean = sum(subset) / len(subset)
    variance = sum((r - mean) ** 2 for r in subset) / len(subset)
    return math.sqrt(variance) * math.sqrt(TRADING_DAYS_PER_YEAR)


def max_drawdown(closes: Sequence[float]) -> float | None:
    """Largest peak-to-trough decline as a positive fraction (0.25 = -25%)."""
    if len(closes) < 2:
        return None

    peak = closes[0]
    worst = 0.0
    for price in closes:
        if price > peak:
            peak = price
        if peak > 0:
            worst = max(worst, (peak - price) / peak)
    return worst


def beta(
    closes: Sequence[float],
    benchmark_closes: Sequence[float],
    min_points: int = 30,
) -> float | None:
    """Beta of ``closes`` against ``benchmark_closes`` over their common tail."""
    asset = daily_returns(closes)
    bench = daily_returns(benchmark_closes)
    n = min(len(asset), len(bench))
    if n < min_points:
        return None

    asset, bench = asset[-n:], bench[-n:]
    mean_a = sum(asset) / n
    mean_b = sum(bench) / n
    covariance = sum((a - mean_a) * (b - mean_b) for a, b in zip(asset, bench)) / n
    variance = sum((b - mean_b) ** 2 for b in bench) / n
    if variance == 0:
        return None
    return covariance / variance


__all__ = [
    "beta",
    "daily_returns",
    "ema",
    "macd",
    "max_drawdown",
    "rsi",
    "sma",
    "volatility",
]
