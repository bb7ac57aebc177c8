"""Bar-by-bar execution simulation."""

from backtester.execution.simulator import ExecutionSimulator, PositionState, SimulationResult

__all__ = ["ExecutionSimulator", "PositionState", "SimulationResult"]
