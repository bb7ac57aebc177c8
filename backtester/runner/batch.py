"""Parallel execution of independent backtest requests."""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from backtester.config import EngineSettings
from backtester.core.models import BacktestRequest
from backtester.core.types import PriceSeries
from backtester.indicators.cache import IndicatorCache
from backtester.runner.engine import BacktestEngine, BacktestOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchItem:
    """One request paired with the series it runs on."""
    request: BacktestRequest
    series: PriceSeries


def run_batch(
    items: Sequence[BatchItem],
    *,
    settings: Optional[EngineSettings] = None,
    max_workers: Optional[int] = None,
    cache: Optional[IndicatorCache] = None,
) -> list[BacktestOutcome]:
    """
    Run independent backtests in a thread pool.

    Runs share nothing mutable except the append-only indicator cache.
    Outcomes are returned in input order. An InternalError from any run
    propagates to the caller.
    """
    settings = settings or EngineSettings()
    if cache is None and settings.indicator_cache_enabled:
        cache = IndicatorCache()
    engine = BacktestEngine(settings, cache)
    workers = max_workers or settings.max_workers

    logger.info(f"Running batch of {len(items)} backtests (max_workers={workers or 'auto'})")
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(engine.run_request, item.series, item.request) for item in items]
        outcomes = [future.result() for future in futures]

    failures = sum(1 for outcome in outcomes if not outcome.success)
    logger.info(f"Batch complete: {len(outcomes) - failures} succeeded, {failures} rejected")
    return outcomes
