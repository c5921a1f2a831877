"""
ARIMA model adapter (statsmodels).

Wraps statsmodels ARIMA behind the ForecastModel protocol:
- fit() estimates coefficients from scratch on the given history
- forecast_one() re-conditions the fitted model on a (possibly longer)
  history WITHOUT re-estimating coefficients, then forecasts one step

Estimation runs on history divided by its standard deviation (raw daily
returns, variance ~1e-4, stall the L-BFGS line search). The same factor
is applied when re-conditioning and removed from the forecast.

Optimizer controls are passed in explicitly; nothing depends on global
statsmodels state.
"""

from dataclasses import dataclass
from typing import Any, Optional
import warnings
import structlog

import numpy as np
from numpy.linalg import LinAlgError
from statsmodels.tools.sm_exceptions import ConvergenceWarning
from statsmodels.tsa.arima.model import ARIMA

from directional.config import OptimizerSettings
from directional.errors import EstimationError, ForecastError
from directional.models.base import Model, Order, min_history_for

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FittedARIMA:
    """Estimated statsmodels results plus the scale they were fitted at."""

    result: Any
    scale: float = 1.0

    @property
    def params(self) -> np.ndarray:
        """Coefficients in the scaled units the model was estimated in."""
        return np.asarray(self.result.params)


def history_scale(endog: np.ndarray) -> float:
    """Multiplier that brings history to unit standard deviation."""
    std = float(np.std(endog))
    if not np.isfinite(std) or std <= 0.0:
        return 1.0
    return 1.0 / std


class ARIMAModelAdapter:
    """
    ARIMA(p, d, q) fit/forecast capability.

    Differencing is normally handled upstream, so the order used by the
    backtest has d = 0 and includes a constant term.
    """

    def __init__(
        self,
        trend: Optional[str] = "c",
        optimizer: Optional[OptimizerSettings] = None,
    ):
        """
        Initialize adapter.

        Args:
            trend: statsmodels trend specification ("c" = constant, "n" = none)
            optimizer: Optimizer method, iteration cap and convergence policy
        """
        self.trend = trend
        self.optimizer = optimizer or OptimizerSettings()

    def fit(self, history: np.ndarray, order: Order) -> Model:
        """
        Fit ARIMA(order) on history.

        Returns:
            FittedARIMA holding the statsmodels results and the history scale

        Raises:
            EstimationError: Too little history, non-convergence, or a
                numerical failure inside statsmodels
        """
        endog = np.array(history, dtype=np.float64)
        order = tuple(int(x) for x in order)
        required = min_history_for(order)

        if len(endog) < required:
            raise EstimationError(
                f"ARIMA{order} needs at least {required} observations, got {len(endog)}",
                order=order,
                history_length=len(endog),
            )

        scale = history_scale(endog)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                model = ARIMA(endog * scale, order=order, trend=self._trend_for(order))
                method_kwargs = None
                if self.optimizer.method == "statespace":
                    method_kwargs = {"maxiter": self.optimizer.maxiter}
                result = model.fit(
                    method=self.optimizer.method,
                    method_kwargs=method_kwargs,
                )
            except (LinAlgError, ValueError) as e:
                raise EstimationError(
                    f"ARIMA{order} estimation failed: {e}",
                    order=order,
                    history_length=len(endog),
                ) from e

        converged = self._converged(result, caught)
        if not converged:
            if self.optimizer.require_convergence:
                raise EstimationError(
                    f"ARIMA{order} optimizer did not converge",
                    order=order,
                    history_length=len(endog),
                    context={"maxiter": self.optimizer.maxiter, "scale": scale},
                )
            logger.warning(
                "arima_not_converged",
                order=order,
                history_length=len(endog),
            )

        logger.debug(
            "arima_fitted",
            order=order,
            history_length=len(endog),
            scale=scale,
            aic=float(result.aic),
        )
        return FittedARIMA(result=result, scale=scale)

    def forecast_one(self, model: Model, history: np.ndarray) -> float:
        """
        One-step-ahead point forecast after `history`, in return units.

        Raises:
            ForecastError: Empty history, backend failure or non-finite result
        """
        endog = np.array(history, dtype=np.float64)

        if endog.size == 0:
            raise ForecastError("Cannot forecast from empty history", history_length=0)

        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            try:
                conditioned = model.result.apply(endog * model.scale, refit=False)
                forecast = np.asarray(conditioned.forecast(steps=1))
            except (LinAlgError, ValueError, IndexError) as e:
                raise ForecastError(
                    f"Forecast failed: {e}",
                    history_length=len(endog),
                ) from e

        value = float(forecast[-1]) / model.scale
        if not np.isfinite(value):
            raise ForecastError(
                f"Forecast is not finite: {value}",
                history_length=len(endog),
            )
        return value

    def _trend_for(self, order: Order) -> Optional[str]:
        # statsmodels rejects a constant once the model itself differences
        return self.trend if order[1] == 0 else "n"

    @staticmethod
    def _converged(result, caught: list) -> bool:
        retvals = getattr(result, "mle_retvals", None) or {}
        if retvals.get("converged") is False:
            return False
        return not any(issubclass(w.category, ConvergenceWarning) for w in caught)
