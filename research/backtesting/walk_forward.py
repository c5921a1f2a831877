"""
Walk-forward forecasting engine.

CRITICAL: The forecast for test step t may only see train data and the
test observations strictly before t. Anything else is look-ahead bias.

Protocol:
- Fit once on the training window
- For each test step: forecast one step ahead, record the direction,
  then reveal the true return
- Every `refit_period` steps, re-estimate on the full expanding history
  (including the observation just revealed)
- Any estimation or forecast failure aborts the run (no fallback values)
"""

from dataclasses import dataclass
from typing import Optional
import math
import structlog

import numpy as np

from directional.errors import InsufficientDataError, ModelError
from directional.models.base import ForecastModel, Order

logger = structlog.get_logger(__name__)


def direction(value: float) -> int:
    """Sign of a value: +1 up, -1 down, 0 flat."""
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


@dataclass(frozen=True)
class Split:
    """Immutable train/test partition of a return series."""
    train: np.ndarray
    test: np.ndarray

    def __post_init__(self):
        train = np.array(self.train, dtype=np.float64)
        test = np.array(self.test, dtype=np.float64)
        train.setflags(write=False)
        test.setflags(write=False)
        object.__setattr__(self, "train", train)
        object.__setattr__(self, "test", test)

    @property
    def train_size(self) -> int:
        return len(self.train)

    @property
    def test_size(self) -> int:
        return len(self.test)


def split_train_test(returns: np.ndarray, train_fraction: float = 0.7) -> Split:
    """
    Split returns chronologically: first floor(fraction * N) to train.

    Raises:
        InsufficientDataError: If either side would be empty
    """
    values = np.asarray(returns, dtype=np.float64)
    train_size = int(math.floor(train_fraction * len(values)))

    if train_size < 1 or train_size >= len(values):
        raise InsufficientDataError(
            f"Cannot split {len(values)} returns into non-empty train/test sets",
            required_count=2,
            available_count=len(values),
        )

    split = Split(train=values[:train_size], test=values[train_size:])

    logger.info(
        "train_test_split",
        train_days=split.train_size,
        test_days=split.test_size,
    )
    return split


@dataclass(frozen=True)
class PredictionRecord:
    """One out-of-sample prediction and its realized outcome."""
    step_index: int            # 1-based test step
    predicted_direction: int   # -1, 0, 1
    actual_direction: int      # -1, 0, 1
    realized_return: float

    @property
    def hit(self) -> bool:
        return self.predicted_direction == self.actual_direction

    def to_dict(self) -> dict:
        return {
            "step_index": self.step_index,
            "predicted_direction": self.predicted_direction,
            "actual_direction": self.actual_direction,
            "realized_return": self.realized_return,
        }


class WalkForwardEngine:
    """
    Expanding-window one-step-ahead walk-forward loop.

    Key principles:
    - Strictly sequential: step t depends on every observation before it
    - A prediction is emitted for every step (no abstention)
    - Re-fits happen exactly at steps refit_period, 2*refit_period, ...
    - Fail fast: a model error aborts the whole run
    """

    def __init__(
        self,
        model: ForecastModel,
        order: Order = (2, 0, 1),
        refit_period: int = 21,
    ):
        """
        Initialize walk-forward engine.

        Args:
            model: Fit/forecast capability
            order: ARIMA order passed to every fit
            refit_period: Steps between re-estimations (21 ~ one trading month)
        """
        if refit_period < 1:
            raise ValueError(f"refit_period must be >= 1, got {refit_period}")

        self.model = model
        self.order = tuple(int(x) for x in order)
        self.refit_period = refit_period

    def run(
        self,
        train: np.ndarray,
        test: np.ndarray,
        refit_period: Optional[int] = None,
    ) -> tuple[PredictionRecord, ...]:
        """
        Run the walk-forward loop over the test period.

        Args:
            train: Training returns (initial fit window)
            test: Test returns, revealed one at a time
            refit_period: Override the engine's re-fit cadence for this run

        Returns:
            One PredictionRecord per test step, ordered by step_index

        Raises:
            InsufficientDataError: If train is empty
            EstimationError / ForecastError: On any model failure. The error
                carries `step_index` and the `partial_records` computed so far.
        """
        refit_every = self.refit_period if refit_period is None else refit_period
        if refit_every < 1:
            raise ValueError(f"refit_period must be >= 1, got {refit_every}")

        # Private copies: each run owns its buffers
        train = np.array(train, dtype=np.float64).ravel()
        test = np.array(test, dtype=np.float64).ravel()

        if train.size == 0:
            raise InsufficientDataError(
                "Walk-forward requires a non-empty training window",
                required_count=1,
                available_count=0,
            )

        history = np.concatenate([train, test])
        history.setflags(write=False)
        n_train = len(train)

        logger.info(
            "walk_forward_starting",
            train_days=n_train,
            test_days=len(test),
            order=self.order,
            refit_period=refit_every,
        )

        records: list[PredictionRecord] = []
        step = 0

        try:
            current_model = self.model.fit(history[:n_train], self.order)

            for step in range(1, len(test) + 1):
                # Observations strictly before test[step - 1]
                current_history = history[: n_train + step - 1]

                forecast = self.model.forecast_one(current_model, current_history)
                realized = float(test[step - 1])

                records.append(
                    PredictionRecord(
                        step_index=step,
                        predicted_direction=direction(forecast),
                        actual_direction=direction(realized),
                        realized_return=realized,
                    )
                )

                if step % refit_every == 0:
                    refit_history = history[: n_train + step]
                    current_model = self.model.fit(refit_history, self.order)
                    logger.debug(
                        "model_refit",
                        step=step,
                        history_length=len(refit_history),
                    )

        except ModelError as e:
            e.step_index = step
            e.partial_records = tuple(records)
            logger.error(
                "walk_forward_aborted",
                step=step,
                completed_steps=len(records),
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

        logger.info(
            "walk_forward_complete",
            steps=len(records),
            refits=len(test) // refit_every,
        )
        return tuple(records)
