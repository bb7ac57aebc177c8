"""Strategy registry: type tags, config parsing and generator construction."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from backtester.core.errors import InvalidConfig, UnsupportedStrategy
from backtester.core.models import BacktestRequest, StrategyConfig
from backtester.indicators.library import IndicatorLibrary
from backtester.strategy.base import SignalGenerator
from backtester.strategy.macd_crossover import MacdCrossoverGenerator
from backtester.strategy.rsi_threshold import RsiThresholdGenerator
from backtester.strategy.sma_crossover import SmaCrossoverGenerator

STRATEGY_GENERATORS: dict[str, type[SignalGenerator]] = {
    SmaCrossoverGenerator.strategy_type: SmaCrossoverGenerator,
    RsiThresholdGenerator.strategy_type: RsiThresholdGenerator,
    MacdCrossoverGenerator.strategy_type: MacdCrossoverGenerator,
}

# Tags used by stored strategy rows and older clients.
STRATEGY_ALIASES: dict[str, str] = {
    "moving_average": "sma",
    "sma_crossover": "sma",
    "rsi_threshold": "rsi",
    "macd_crossover": "macd",
}

_strategy_adapter: TypeAdapter[StrategyConfig] = TypeAdapter(StrategyConfig)


def normalize_strategy_type(tag: Any) -> str:
    """Resolve a strategy tag to its canonical name."""
    if not isinstance(tag, str) or not tag.strip():
        raise UnsupportedStrategy(
            f"Strategy type must be a non-empty string, got {tag!r}",
            parameter="type",
            constraint=f"one of {sorted(STRATEGY_GENERATORS)}",
        )
    name = tag.strip().lower()
    name = STRATEGY_ALIASES.get(name, name)
    if name not in STRATEGY_GENERATORS:
        raise UnsupportedStrategy(
            f"Unsupported strategy type: {tag}",
            parameter="type",
            constraint=f"one of {sorted(STRATEGY_GENERATORS)}",
        )
    return name


def _invalid_from_validation(exc: ValidationError, tag: Optional[str] = None) -> InvalidConfig:
    error = exc.errors()[0]
    location = list(error["loc"])
    if tag is not None and location and location[0] == tag:
        # Discriminated unions prefix the location with the matched tag.
        location = location[1:]
    parameter = ".".join(str(part) for part in location) or None
    return InvalidConfig(
        f"Invalid value for {parameter}: {error['msg']}",
        parameter=parameter,
        constraint=error["type"],
    )


def parse_strategy_config(raw: Mapping[str, Any]) -> StrategyConfig:
    """
    Validate a raw strategy mapping (``{"type": ..., **params}``).

    Raises:
        UnsupportedStrategy: unknown type tag
        InvalidConfig: wrong types, out-of-range or inconsistent parameters
    """
    data = dict(raw)
    data["type"] = normalize_strategy_type(data.get("type"))
    if isinstance(data.get("parameters"), Mapping):
        # Stored strategy rows keep their parameters in a nested object.
        data.update(data.pop("parameters"))
    for key in ("name", "description"):
        data.pop(key, None)
    try:
        config = _strategy_adapter.validate_python(data)
    except ValidationError as exc:
        raise _invalid_from_validation(exc, data["type"]) from exc
    config.check()
    return config


def parse_request(raw: Mapping[str, Any]) -> BacktestRequest:
    """Validate a raw request mapping with nested ``strategy`` and ``capital``."""
    data = dict(raw)
    strategy = data.get("strategy")
    if not isinstance(strategy, Mapping):
        raise InvalidConfig(
            "Request must include a strategy object",
            parameter="strategy",
            constraint="mapping with a type tag",
        )
    data["strategy"] = parse_strategy_config(strategy)
    try:
        request = BacktestRequest.model_validate(data)
    except ValidationError as exc:
        raise _invalid_from_validation(exc) from exc
    request.capital.check()
    return request


def build_generator(
    config: StrategyConfig,
    indicators: Optional[IndicatorLibrary] = None,
) -> SignalGenerator:
    """Instantiate the generator registered for ``config.type``."""
    generator_cls = STRATEGY_GENERATORS.get(getattr(config, "type", None))
    if generator_cls is None:
        raise UnsupportedStrategy(
            f"No signal generator registered for {type(config).__name__}",
            parameter="type",
            constraint=f"one of {sorted(STRATEGY_GENERATORS)}",
        )
    return generator_cls(config, indicators)
