"""
Pytest configuration and fixtures.

Shared fixtures for all tests.
"""

import pytest
from pathlib import Path
import tempfile
import shutil

import numpy as np


class RecordingModel:
    """
    Stub forecast backend.

    Forecasts a constant (or a value from a callable) and records every
    history it is handed, so tests can check look-ahead and re-fit cadence.
    """

    def __init__(self, forecast=0.001, fail_fit_at_call=None, fail_forecast_at_call=None):
        self.forecast = forecast
        self.fail_fit_at_call = fail_fit_at_call
        self.fail_forecast_at_call = fail_forecast_at_call
        self.fit_histories = []
        self.forecast_histories = []

    def fit(self, history, order):
        from directional.errors import EstimationError

        self.fit_histories.append(np.array(history))
        if self.fail_fit_at_call is not None and len(self.fit_histories) == self.fail_fit_at_call:
            raise EstimationError("stub fit failure", order=order, history_length=len(history))
        return {"fit_number": len(self.fit_histories), "order": tuple(order)}

    def forecast_one(self, model, history):
        from directional.errors import ForecastError

        self.forecast_histories.append(np.array(history))
        if (
            self.fail_forecast_at_call is not None
            and len(self.forecast_histories) == self.fail_forecast_at_call
        ):
            raise ForecastError("stub forecast failure", history_length=len(history))
        if callable(self.forecast):
            return float(self.forecast(np.array(history)))
        return float(self.forecast)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def recording_model():
    """Factory for stub forecast backends."""
    return RecordingModel


@pytest.fixture
def sample_prices():
    """Random-walk daily closes (about two years)."""
    np.random.seed(42)
    log_returns = np.random.randn(500) * 0.01
    return 100 * np.exp(np.cumsum(log_returns))


@pytest.fixture
def synthetic_returns():
    """Stationary returns with a mix of signs, train/test friendly."""
    rng = np.random.default_rng(7)
    return rng.normal(0.0005, 0.01, size=120)


def simulate_arma(n, ar=(0.5, -0.25), ma=0.3, sigma=0.01, mean=0.0002, seed=11):
    """Simulate an ARMA(2, 1) return process."""
    rng = np.random.default_rng(seed)
    burn = 200
    eps = rng.normal(0.0, sigma, size=n + burn)
    x = np.zeros(n + burn)
    for t in range(2, n + burn):
        x[t] = ar[0] * x[t - 1] + ar[1] * x[t - 2] + eps[t] + ma * eps[t - 1]
    return x[burn:] + mean


@pytest.fixture
def arma_returns():
    """Well-identified ARMA(2, 1) returns for real statsmodels fits."""
    return simulate_arma(400)


@pytest.fixture
def arma_simulator():
    """Factory for simulated ARMA(2, 1) return paths."""
    return simulate_arma
