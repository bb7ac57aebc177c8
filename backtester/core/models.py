"""
Configuration models for backtest requests.

Pydantic handles type coercion at the boundary; range and relational rules
are checked by ``check()`` so the engine can report them as InvalidConfig
before any simulation work begins.
"""

from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from backtester.core.errors import InvalidConfig


class ConfigModel(BaseModel):
    """Frozen config model accepting snake_case or camelCase keys."""
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


def _require(condition: bool, message: str, parameter: str, constraint: str) -> None:
    if not condition:
        raise InvalidConfig(message, parameter=parameter, constraint=constraint)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Strategy Configs
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class SmaCrossoverConfig(ConfigModel):
    """Short/long simple moving average crossover."""
    type: Literal["sma"] = "sma"
    short_period: int = 20
    long_period: int = 50

    @property
    def lookback(self) -> int:
        return self.long_period

    @property
    def default_name(self) -> str:
        return f"SMA Crossover ({self.short_period}/{self.long_period})"

    def check(self) -> None:
        _require(
            self.short_period >= 1,
            f"short_period must be at least 1, got {self.short_period}",
            "short_period", "short_period >= 1",
        )
        _require(
            self.long_period >= 1,
            f"long_period must be at least 1, got {self.long_period}",
            "long_period", "long_period >= 1",
        )
        _require(
            self.short_period < self.long_period,
            f"short_period ({self.short_period}) must be less than "
            f"long_period ({self.long_period})",
            "short_period", "short_period < long_period",
        )


class RsiThresholdConfig(ConfigModel):
    """RSI oversold/overbought threshold crossings."""
    type: Literal["rsi"] = "rsi"
    period: int = 14
    oversold: Decimal = Decimal("30")
    overbought: Decimal = Decimal("70")

    @property
    def lookback(self) -> int:
        # One RSI value needs `period` close-to-close deltas.
        return self.period + 1

    @property
    def default_name(self) -> str:
        return f"RSI Threshold ({self.period}: {self.oversold}/{self.overbought})"

    def check(self) -> None:
        _require(
            self.period >= 1,
            f"period must be at least 1, got {self.period}",
            "period", "period >= 1",
        )
        for name in ("oversold", "overbought"):
            value = getattr(self, name)
            _require(
                Decimal("0") <= value <= Decimal("100"),
                f"{name} must be within 0-100, got {value}",
                name, f"0 <= {name} <= 100",
            )
        _require(
            self.oversold < self.overbought,
            f"oversold ({self.oversold}) must be less than overbought ({self.overbought})",
            "oversold", "oversold < overbought",
        )


class MacdCrossoverConfig(ConfigModel):
    """MACD line crossing its signal line."""
    type: Literal["macd"] = "macd"
    fast_period: int = Field(default=12, alias="fast")
    slow_period: int = Field(default=26, alias="slow")
    signal_period: int = Field(default=9, alias="signal")

    @property
    def lookback(self) -> int:
        return self.slow_period + self.signal_period - 1

    @property
    def default_name(self) -> str:
        return f"MACD Crossover ({self.fast_period}/{self.slow_period}/{self.signal_period})"

    def check(self) -> None:
        for name in ("fast_period", "slow_period", "signal_period"):
            value = getattr(self, name)
            _require(value >= 1, f"{name} must be at least 1, got {value}", name, f"{name} >= 1")
        _require(
            self.fast_period < self.slow_period,
            f"fast_period ({self.fast_period}) must be less than "
            f"slow_period ({self.slow_period})",
            "fast_period", "fast_period < slow_period",
        )


StrategyConfig = Annotated[
    Union[SmaCrossoverConfig, RsiThresholdConfig, MacdCrossoverConfig],
    Field(discriminator="type"),
]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Capital
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class CapitalConfig(ConfigModel):
    """Starting cash and position sizing rule."""
    initial_capital: Decimal = Decimal("10000")
    position_sizing: Literal["full"] = "full"

    def check(self) -> None:
        _require(
            self.initial_capital > 0,
            f"initial_capital must be positive, got {self.initial_capital}",
            "initial_capital", "initial_capital > 0",
        )


class BacktestRequest(ConfigModel):
    """One backtest invocation as received from the request layer."""
    symbol: str
    strategy: StrategyConfig
    capital: CapitalConfig = Field(default_factory=CapitalConfig)
    strategy_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.strategy_name or self.strategy.default_name
