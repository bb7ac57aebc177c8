"""Indicator transforms and their cache."""

from backtester.indicators.cache import IndicatorCache
from backtester.indicators.library import IndicatorLibrary, ema, rsi, sma

__all__ = ["IndicatorCache", "IndicatorLibrary", "ema", "rsi", "sma"]
