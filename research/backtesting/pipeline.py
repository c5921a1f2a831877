"""
End-to-end directional backtest.

prices -> returns -> train/test split -> walk-forward -> performance report

Each call to run() builds its own engine and evaluator, so separate runs
(e.g. parameter sweeps) never share data or model state.
"""

from dataclasses import dataclass
from typing import Optional
import structlog

import numpy as np

from directional.config import BacktestConfig
from directional.data.preprocessing import SeriesPreprocessor, adf_pvalue
from directional.models import ARIMAModelAdapter, ForecastModel
from research.backtesting.performance import PerformanceEvaluator, PerformanceReport
from research.backtesting.walk_forward import (
    PredictionRecord,
    Split,
    WalkForwardEngine,
    split_train_test,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BacktestOutcome:
    """Everything a completed run produced."""
    split: Split
    records: tuple[PredictionRecord, ...]
    report: PerformanceReport


class DirectionalBacktest:
    """
    Walk-forward ARIMA direction backtest driven by a BacktestConfig.
    """

    def __init__(
        self,
        config: Optional[BacktestConfig] = None,
        model: Optional[ForecastModel] = None,
        preprocessor: Optional[SeriesPreprocessor] = None,
    ):
        """
        Initialize backtest.

        Args:
            config: Backtest configuration (defaults if omitted)
            model: Forecast backend (statsmodels ARIMA if omitted)
            preprocessor: Return-series preparation (built from config if omitted)
        """
        self.config = config or BacktestConfig()
        self.model = model or ARIMAModelAdapter(optimizer=self.config.optimizer)
        self.preprocessor = preprocessor or self._build_preprocessor()

        logger.info(
            "directional_backtest_initialized",
            order=self.config.arima_order,
            refit_period=self.config.refit_period,
            transaction_cost=self.config.transaction_cost,
        )

    def split(self, returns: np.ndarray) -> Split:
        """Chronological train/test split using config.train_fraction."""
        return split_train_test(returns, self.config.train_fraction)

    def run(self, prices) -> BacktestOutcome:
        """
        Run the full backtest on a price sequence.

        Raises:
            InsufficientDataError: Too few usable prices or returns
            EstimationError / ForecastError: Model failure (run aborted)
        """
        returns = self.preprocessor.prepare(prices)
        split = self.split(returns)

        engine = WalkForwardEngine(
            model=self.model,
            order=self.config.arima_order,
            refit_period=self.config.refit_period,
        )
        records = engine.run(split.train, split.test)

        evaluator = PerformanceEvaluator(
            trading_days_per_year=self.config.trading_days_per_year,
            rolling_window=self.config.rolling_accuracy_window,
        )
        report = evaluator.evaluate(records, unit_cost=self.config.transaction_cost)

        logger.info("directional_backtest_complete", **report.to_dict())
        return BacktestOutcome(split=split, records=records, report=report)

    def _build_preprocessor(self) -> SeriesPreprocessor:
        config = self.config

        def stationarity_test(series: np.ndarray) -> float:
            return adf_pvalue(
                series,
                regression=config.adf_regression,
                max_lag=config.adf_max_lag,
                autolag=config.adf_autolag,
            )

        return SeriesPreprocessor(
            significance_level=config.significance_level,
            min_observations=config.min_observations,
            return_type=config.return_type,
            stationarity_test=stationarity_test,
        )
