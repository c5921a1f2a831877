"""
Performance evaluation for the directional strategy.

Turns the walk-forward prediction stream into a cost-adjusted return
series and the usual trading statistics. Every degenerate case (no valid
returns, zero variance, no losses) resolves to 0 so a report is always
produced, even if uninformative.

Known limitation: max drawdown is normalised by the running maximum of an
ADDITIVE cumulative return curve, not a wealth index. It is kept for
comparability with earlier results but misbehaves when the running
maximum is near zero or negative.
"""

from dataclasses import dataclass, fields
from typing import Sequence
import structlog

import numpy as np
import pandas as pd

from research.backtesting.walk_forward import PredictionRecord

logger = structlog.get_logger(__name__)

DIRECTIONS = (-1, 0, 1)


@dataclass(frozen=True, eq=False)
class PerformanceReport:
    """Immutable snapshot of strategy performance over the test period."""
    # Direction prediction
    num_steps: int
    accuracy: float
    confusion_matrix: tuple[tuple[int, ...], ...]  # rows actual, cols predicted
    rolling_accuracy: tuple[float, ...]

    # Returns
    strategy_returns: tuple[float, ...]
    num_valid_returns: int
    total_return: float
    cumulative_returns: tuple[float, ...]
    buy_and_hold_returns: tuple[float, ...]

    # Risk/return ratios
    sharpe_ratio: float
    sortino_ratio: float
    win_rate: float        # percent, 0-100
    profit_factor: float   # 0 when there are no losses
    max_drawdown: float    # fraction of running peak

    @property
    def confusion_frame(self) -> pd.DataFrame:
        """Confusion matrix as a labelled DataFrame."""
        return pd.DataFrame(
            self.confusion_matrix,
            index=pd.Index(DIRECTIONS, name="actual"),
            columns=pd.Index(DIRECTIONS, name="predicted"),
        )

    def to_dict(self) -> dict:
        """Summary statistics for logging and JSON output."""
        return {
            "num_steps": self.num_steps,
            "accuracy": self.accuracy,
            "sharpe_ratio": self.sharpe_ratio,
            "sortino_ratio": self.sortino_ratio,
            "win_rate": self.win_rate,
            "profit_factor": self.profit_factor,
            "max_drawdown": self.max_drawdown,
            "total_return": self.total_return,
            "num_valid_returns": self.num_valid_returns,
            "confusion_matrix": [list(row) for row in self.confusion_matrix],
        }

    def __eq__(self, other):
        # Invalid steps keep NaN in strategy_returns; those compare equal here
        if not isinstance(other, PerformanceReport):
            return NotImplemented
        return all(
            _same_value(getattr(self, f.name), getattr(other, f.name))
            for f in fields(self)
        )


def _same_value(a, b) -> bool:
    if isinstance(a, tuple) or isinstance(b, tuple):
        left = np.asarray(a, dtype=np.float64)
        right = np.asarray(b, dtype=np.float64)
        return np.array_equal(left, right, equal_nan=True)
    return a == b


class PerformanceEvaluator:
    """
    Computes a PerformanceReport from prediction records.

    Pure: the same records always produce the same report.
    """

    def __init__(
        self,
        trading_days_per_year: int = 252,
        rolling_window: int = 21,
    ):
        """
        Initialize evaluator.

        Args:
            trading_days_per_year: Annualisation constant (one obs per day)
            rolling_window: Window for the rolling directional accuracy
        """
        self.trading_days_per_year = trading_days_per_year
        self.rolling_window = rolling_window

    def evaluate(
        self,
        records: Sequence[PredictionRecord],
        unit_cost: float = 0.0005,
    ) -> PerformanceReport:
        """
        Evaluate a completed prediction stream.

        Args:
            records: Walk-forward records, ordered by step_index
            unit_cost: Cost charged per non-flat position (5 bps default)

        Returns:
            PerformanceReport
        """
        predicted = np.array([r.predicted_direction for r in records], dtype=np.int64)
        actual = np.array([r.actual_direction for r in records], dtype=np.int64)
        realized = np.array([r.realized_return for r in records], dtype=np.float64)

        hits = (predicted == actual).astype(np.float64)
        accuracy = float(hits.mean()) if len(records) > 0 else 0.0

        strategy_returns = realized * predicted - unit_cost * np.abs(predicted)
        valid = strategy_returns[np.isfinite(strategy_returns)]

        if len(valid) > 0:
            cumulative = np.cumsum(valid)
            sharpe = self._calculate_sharpe(valid)
            sortino = self._calculate_sortino(valid)
            win_rate = 100.0 * float(np.sum(valid > 0)) / len(valid)
            profit_factor = self._calculate_profit_factor(valid)
            max_dd = self._calculate_max_drawdown(cumulative)
        else:
            cumulative = np.array([], dtype=np.float64)
            sharpe = sortino = win_rate = profit_factor = max_dd = 0.0

        report = PerformanceReport(
            num_steps=len(records),
            accuracy=accuracy,
            confusion_matrix=self._confusion_matrix(actual, predicted),
            rolling_accuracy=self._rolling_accuracy(hits),
            strategy_returns=tuple(float(x) for x in strategy_returns),
            num_valid_returns=len(valid),
            total_return=float(valid.sum()) if len(valid) > 0 else 0.0,
            cumulative_returns=tuple(float(x) for x in cumulative),
            buy_and_hold_returns=tuple(float(x) for x in np.cumsum(realized)),
            sharpe_ratio=sharpe,
            sortino_ratio=sortino,
            win_rate=win_rate,
            profit_factor=profit_factor,
            max_drawdown=max_dd,
        )

        logger.info(
            "performance_evaluated",
            steps=report.num_steps,
            accuracy=report.accuracy,
            sharpe=report.sharpe_ratio,
            max_drawdown=report.max_drawdown,
        )
        return report

    @staticmethod
    def _confusion_matrix(actual: np.ndarray, predicted: np.ndarray) -> tuple[tuple[int, ...], ...]:
        """Counts over {-1, 0, 1}; zero direction is its own category."""
        return tuple(
            tuple(int(np.sum((actual == a) & (predicted == p))) for p in DIRECTIONS)
            for a in DIRECTIONS
        )

    def _rolling_accuracy(self, hits: np.ndarray) -> tuple[float, ...]:
        """Centred moving hit rate, window shrinking at the edges."""
        if len(hits) == 0:
            return ()
        rolling = pd.Series(hits).rolling(
            window=self.rolling_window,
            center=True,
            min_periods=1,
        ).mean()
        return tuple(float(x) for x in rolling)

    def _calculate_sharpe(self, returns: np.ndarray) -> float:
        """Annualised Sharpe ratio; 0 when the deviation is zero or undefined."""
        std = _sample_std(returns)
        if std == 0.0:
            return 0.0
        return float(np.mean(returns) / std * np.sqrt(self.trading_days_per_year))

    def _calculate_sortino(self, returns: np.ndarray) -> float:
        """Sortino ratio (deviation of strictly negative returns only)."""
        downside_std = _sample_std(returns[returns < 0])
        if downside_std == 0.0:
            return 0.0
        return float(np.mean(returns) / downside_std * np.sqrt(self.trading_days_per_year))

    @staticmethod
    def _calculate_profit_factor(returns: np.ndarray) -> float:
        """Gross profit over gross loss; 0 when there are no losses."""
        total_losses = abs(float(returns[returns < 0].sum()))
        if total_losses == 0.0:
            return 0.0
        return float(returns[returns > 0].sum()) / total_losses

    @staticmethod
    def _calculate_max_drawdown(cumulative: np.ndarray) -> float:
        """Peak-relative drawdown of the additive cumulative curve."""
        if len(cumulative) == 0:
            return 0.0

        running_max = np.maximum.accumulate(cumulative)
        drawdowns = np.zeros_like(cumulative)
        nonzero = running_max != 0
        drawdowns[nonzero] = (running_max[nonzero] - cumulative[nonzero]) / running_max[nonzero]

        max_dd = float(np.max(drawdowns))
        if np.isnan(max_dd):
            return 0.0
        return max_dd


def _sample_std(values: np.ndarray) -> float:
    """Sample standard deviation (ddof=1); 0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    std = float(np.std(values, ddof=1))
    return std if np.isfinite(std) else 0.0
