"""Input adapters for already-fetched price data."""

from backtester.data.frame_source import FrameDataSource

__all__ = ["FrameDataSource"]
