"""Typed errors for backtest validation and execution."""

from __future__ import annotations

from typing import Any, Optional


class BacktestEngineError(Exception):
    """Base class for backtest engine errors."""

    kind: str = "engine_error"

    def __init__(
        self,
        message: str,
        *,
        parameter: Optional[str] = None,
        constraint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.parameter = parameter
        self.constraint = constraint

    def to_record(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "parameter": self.parameter,
            "constraint": self.constraint,
        }


class InvalidConfig(BacktestEngineError):
    """Raised when a parameter is out of range or violates a relation."""

    kind = "invalid_config"


class InsufficientData(BacktestEngineError):
    """Raised when the price series is shorter than the required lookback."""

    kind = "insufficient_data"


class UnsupportedStrategy(BacktestEngineError):
    """Raised when a strategy type tag is not recognized."""

    kind = "unsupported_strategy"


class InternalError(BacktestEngineError):
    """Raised on an invariant violation inside the simulator. Never recovered."""

    kind = "internal_error"


# Expected failures are returned as records by the engine; InternalError is not.
EXPECTED_ERRORS = (InvalidConfig, InsufficientData, UnsupportedStrategy)
