"""
Backtesting framework with walk-forward validation.

Key principles:
- NO look-ahead: step t only sees observations before t
- Expanding window, re-estimated on a fixed cadence
- Transaction costs always applied
- Degenerate statistics default to zero, never NaN
"""

from research.backtesting.walk_forward import (
    PredictionRecord,
    Split,
    WalkForwardEngine,
    split_train_test,
)
from research.backtesting.performance import PerformanceEvaluator, PerformanceReport
from research.backtesting.pipeline import BacktestOutcome, DirectionalBacktest

__all__ = [
    "PredictionRecord",
    "Split",
    "WalkForwardEngine",
    "split_train_test",
    "PerformanceEvaluator",
    "PerformanceReport",
    "BacktestOutcome",
    "DirectionalBacktest",
]
