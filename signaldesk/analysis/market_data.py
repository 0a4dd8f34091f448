"""
Market data provider backed by yfinance.

Korean listings are addressed as ``<code>.KS`` (KOSPI) or ``<code>.KQ``
(KOSDAQ). yfinance is blocking, so every call runs on a shared thread pool.
Missing data comes back as None fields; provider calls never raise.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

import yfinance as yf

from signaldesk.analysis.schemas import (
    FinancialData,
    MacroData,
    RiskData,
    RiskLevel,
    TechnicalData,
)
from signaldesk.core.logging import get_logger
from signaldesk.core.technical_utils import beta, macd, max_drawdown, rsi, sma, volatility
from signaldesk.news.schemas import Market


logger = get_logger("analysis.market_data")

# Single shared executor for all yfinance calls
_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="yfinance")

KOSPI_INDEX = "^KS11"
KOSDAQ_INDEX = "^KQ11"
USD_KRW = "KRW=X"

MARKET_SUFFIX = {Market.KOSPI: ".KS", Market.KOSDAQ: ".KQ"}

# Annualised volatility / drawdown thresholds, in percent
HIGH_RISK_VOLATILITY = 40.0
LOW_RISK_VOLATILITY = 20.0
HIGH_RISK_DRAWDOWN = 30.0
LOW_RISK_DRAWDOWN = 15.0


def to_yahoo_symbol(code: str, market: Market | str = Market.KOSPI) -> str:
    """'005930', KOSPI -> '005930.KS'."""
    if "." in code or code.startswith("^"):
        return code
    return f"{code}{MARKET_SUFFIX[Market(market)]}"


def _num(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    # NaN check
    if result != result:
        return None
    return result


def _pct(value: Any) -> Optional[float]:
    number = _num(value)
    return round(number * 100, 2) if number is not None else None


def classify_risk_level(
    volatility_pct: Optional[float],
    max_drawdown_pct: Optional[float],
) -> RiskLevel:
    """Bucket a risk snapshot; unknown inputs default to medium."""
    if volatility_pct is None and max_drawdown_pct is None:
        return RiskLevel.MEDIUM
    if (volatility_pct is not None and volatility_pct >= HIGH_RISK_VOLATILITY) or (
        max_drawdown_pct is not None and max_drawdown_pct >= HIGH_RISK_DRAWDOWN
    ):
        return RiskLevel.HIGH
    if (volatility_pct is None or volatility_pct < LOW_RISK_VOLATILITY) and (
        max_drawdown_pct is None or max_drawdown_pct < LOW_RISK_DRAWDOWN
    ):
        return RiskLevel.LOW
    return RiskLevel.MEDIUM


class MarketDataProvider:
    """Async facade over yfinance returning typed snapshots."""

    def __init__(self, history_period: str = "1y"):
        self.history_period = history_period

    # -------------------------------------------------------------------------
    # Blocking fetchers
    # -------------------------------------------------------------------------

    def _fetch_info_sync(self, symbol: str) -> dict[str, Any]:
        try:
            return yf.Ticker(symbol).info or {}
        except Exception as e:
            logger.warning(f"yfinance info failed for {symbol}: {e}")
            return {}

    def _fetch_history_sync(self, symbol: str) -> tuple[list[float], list[int]]:
        """Return (closes, volumes) oldest first."""
        try:
            df = yf.Ticker(symbol).history(period=self.history_period, auto_adjust=True)
        except Exception as e:
            logger.warning(f"yfinance history failed for {symbol}: {e}")
            return [], []

        if df is None or df.empty or "Close" not in df.columns:
            return [], []

        closes = [float(v) for v in df["Close"].dropna().tolist()]
        volumes = (
            [int(v) for v in df["Volume"].fillna(0).tolist()] if "Volume" in df.columns else []
        )
        return closes, volumes

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(_executor, func, *args)

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    async def get_financial_data(self, code: str, market: Market | str = Market.KOSPI) -> FinancialData:
        info = await self._run(self._fetch_info_sync, to_yahoo_symbol(code, market))

        revenue = _num(info.get("totalRevenue"))
        operating_margin = _num(info.get("operatingMargins"))
        operating_profit = (
            revenue * operating_margin
            if revenue is not None and operating_margin is not None
            else None
        )
        current_ratio = _num(info.get("currentRatio"))

        return FinancialData(
            per=_num(info.get("trailingPE")),
            pbr=_num(info.get("priceToBook")),
            roe=_pct(info.get("returnOnEquity")),
            # yfinance already reports debt/equity in percent
            debt_ratio=_num(info.get("debtToEquity")),
            current_ratio=round(current_ratio * 100, 2) if current_ratio is not None else None,
            revenue=revenue,
            operating_profit=operating_profit,
            net_profit=_num(info.get("netIncomeToCommon")),
        )

    async def get_technical_data(self, code: str, market: Market | str = Market.KOSPI) -> TechnicalData:
        closes, volumes = await self._run(self._fetch_history_sync, to_yahoo_symbol(code, market))
        if not closes:
            return TechnicalData()

        return TechnicalData(
            price=closes[-1],
            ma5=sma(closes, 5),
            ma20=sma(closes, 20),
            ma60=sma(closes, 60),
            rsi=rsi(closes, 14),
            macd=macd(closes),
            volume=volumes[-1] if volumes else None,
        )

    async def get_macro_data(self) -> MacroData:
        kospi, kosdaq, usd_krw = await asyncio.gather(
            self._run(self._fetch_history_sync, KOSPI_INDEX),
            self._run(self._fetch_history_sync, KOSDAQ_INDEX),
            self._run(self._fetch_history_sync, USD_KRW),
        )
        return MacroData(
            kospi=kospi[0][-1] if kospi[0] else None,
            kosdaq=kosdaq[0][-1] if kosdaq[0] else None,
            usd_krw=usd_krw[0][-1] if usd_krw[0] else None,
        )

    async def get_risk_data(self, code: str, market: Market | str = Market.KOSPI) -> RiskData:
        (closes, _), (benchmark, _) = await asyncio.gather(
            self._run(self._fetch_history_sync, to_yahoo_symbol(code, market)),
            self._run(self._fetch_history_sync, KOSPI_INDEX),
        )
        if not closes:
            return RiskData()

        vol = volatility(closes)
        drawdown = max_drawdown(closes)
        vol_pct = round(vol * 100, 2) if vol is not None else None
        drawdown_pct = round(drawdown * 100, 2) if drawdown is not None else None
        stock_beta = beta(closes, benchmark) if benchmark else None

        return RiskData(
            volatility=vol_pct,
            beta=round(stock_beta, 3) if stock_beta is not None else None,
            max_drawdown=drawdown_pct,
            risk_level=classify_risk_level(vol_pct, drawdown_pct),
        )


_provider: Optional[MarketDataProvider] = None


def get_market_data_provider() -> MarketDataProvider:
    global _provider
    if _provider is None:
        _provider = MarketDataProvider()
    return _provider
