"""
Tests for performance evaluation.

Focus on the degenerate-case policies (everything defaults to 0) and the
drawdown convention.
"""

import math

import pytest
import numpy as np

from research.backtesting.performance import PerformanceEvaluator, PerformanceReport
from research.backtesting.walk_forward import PredictionRecord, direction


def make_records(predicted, realized):
    """Build records from predicted directions and realized returns."""
    return tuple(
        PredictionRecord(
            step_index=i,
            predicted_direction=p,
            actual_direction=direction(r) if np.isfinite(r) else 0,
            realized_return=r,
        )
        for i, (p, r) in enumerate(zip(predicted, realized), start=1)
    )


@pytest.fixture
def evaluator():
    return PerformanceEvaluator()


class TestAccuracyAndConfusion:
    """Test direction-prediction metrics."""

    def test_accuracy_bounds(self, evaluator):
        rng = np.random.default_rng(0)
        realized = rng.normal(size=100)
        predicted = rng.choice([-1, 0, 1], size=100)

        report = evaluator.evaluate(make_records(predicted, realized))

        assert 0.0 <= report.accuracy <= 1.0

    def test_accuracy_value(self, evaluator):
        records = make_records([1, 1, -1, -1], [0.01, -0.01, -0.02, 0.03])
        assert evaluator.evaluate(records).accuracy == pytest.approx(0.5)

    def test_confusion_matrix_rows_and_total(self, evaluator):
        """Row sums equal actual counts; total equals number of steps."""
        realized = [0.01, -0.01, 0.0, 0.02, -0.03, 0.0, 0.01]
        predicted = [1, 1, -1, 0, -1, 0, -1]
        report = evaluator.evaluate(make_records(predicted, realized))

        cm = np.array(report.confusion_matrix)
        assert cm.shape == (3, 3)
        assert cm.sum() == len(realized)
        # Rows ordered -1, 0, 1
        assert cm[0].sum() == 2
        assert cm[1].sum() == 2
        assert cm[2].sum() == 3

    def test_confusion_matrix_layout(self, evaluator):
        """Rows are actual, columns are predicted."""
        records = make_records([1], [-0.01])  # actual -1, predicted +1
        cm = evaluator.evaluate(records).confusion_matrix

        assert cm[0][2] == 1
        assert sum(map(sum, cm)) == 1

    def test_zero_direction_kept(self, evaluator):
        """Flat predictions and outcomes form their own category."""
        report = evaluator.evaluate(make_records([0, 0], [0.0, 0.0]))
        assert report.confusion_matrix[1][1] == 2
        assert report.accuracy == 1.0

    def test_confusion_frame_labels(self, evaluator):
        frame = evaluator.evaluate(make_records([1, -1], [0.01, 0.01])).confusion_frame
        assert list(frame.index) == [-1, 0, 1]
        assert list(frame.columns) == [-1, 0, 1]
        assert frame.loc[1, -1] == 1


class TestStrategyReturns:
    """Test cost-adjusted return stream."""

    def test_cost_per_non_flat_position(self, evaluator):
        records = make_records([1, -1, 0], [0.01, 0.01, 0.01])
        report = evaluator.evaluate(records, unit_cost=0.0005)

        assert report.strategy_returns == pytest.approx((0.0095, -0.0105, 0.0))

    def test_cumulative_is_additive(self, evaluator):
        records = make_records([1, 1, 1], [0.01, 0.02, -0.01])
        report = evaluator.evaluate(records, unit_cost=0.0)

        assert report.cumulative_returns == pytest.approx((0.01, 0.03, 0.02))
        assert report.total_return == pytest.approx(0.02)

    def test_invalid_returns_excluded(self, evaluator):
        """NaN and infinite strategy returns are filtered from ratios."""
        records = make_records([1, 1, 1, 1], [0.01, float("nan"), float("inf"), -0.02])
        report = evaluator.evaluate(records, unit_cost=0.0)

        assert report.num_valid_returns == 2
        assert report.cumulative_returns == pytest.approx((0.01, -0.01))
        assert math.isfinite(report.sharpe_ratio)

    def test_all_invalid_defaults_to_zero(self, evaluator):
        records = make_records([1, -1], [float("nan"), float("nan")])
        report = evaluator.evaluate(records)

        assert report.num_valid_returns == 0
        assert report.cumulative_returns == ()
        assert report.sharpe_ratio == 0.0
        assert report.sortino_ratio == 0.0
        assert report.win_rate == 0.0
        assert report.profit_factor == 0.0
        assert report.max_drawdown == 0.0

    def test_buy_and_hold_curve(self, evaluator):
        records = make_records([-1, -1], [0.01, 0.02])
        report = evaluator.evaluate(records)
        assert report.buy_and_hold_returns == pytest.approx((0.01, 0.03))


class TestRatios:
    """Test Sharpe, Sortino, win rate and profit factor."""

    def test_sharpe_matches_formula(self, evaluator):
        realized = [0.01, -0.005, 0.02, -0.01, 0.015]
        report = evaluator.evaluate(make_records([1] * 5, realized), unit_cost=0.0)

        r = np.array(realized)
        expected = r.mean() / r.std(ddof=1) * np.sqrt(252)
        assert report.sharpe_ratio == pytest.approx(expected)

    def test_sortino_matches_formula(self, evaluator):
        realized = [0.01, -0.005, 0.02, -0.01, 0.015]
        report = evaluator.evaluate(make_records([1] * 5, realized), unit_cost=0.0)

        r = np.array(realized)
        expected = r.mean() / r[r < 0].std(ddof=1) * np.sqrt(252)
        assert report.sortino_ratio == pytest.approx(expected)

    def test_all_zero_returns_default_to_zero(self, evaluator):
        """Zero variance and no losses resolve to 0 without raising."""
        records = make_records([0, 0, 0, 0], [0.01, -0.01, 0.02, 0.0])
        report = evaluator.evaluate(records)

        assert all(r == 0.0 for r in report.strategy_returns)
        assert report.sharpe_ratio == 0.0
        assert report.sortino_ratio == 0.0
        assert report.win_rate == 0.0
        assert report.profit_factor == 0.0

    def test_no_losses(self, evaluator):
        """Sortino and profit factor are 0 without negative returns."""
        records = make_records([1, 1, 1], [0.01, 0.02, 0.03])
        report = evaluator.evaluate(records, unit_cost=0.0)

        assert report.sortino_ratio == 0.0
        assert report.profit_factor == 0.0
        assert report.win_rate == 100.0
        assert report.sharpe_ratio > 0

    def test_single_negative_return_sortino(self, evaluator):
        """One negative return has no sample deviation: Sortino is 0."""
        records = make_records([1, 1, 1], [0.01, 0.02, -0.01])
        assert evaluator.evaluate(records, unit_cost=0.0).sortino_ratio == 0.0

    def test_win_rate_percent(self, evaluator):
        records = make_records([1, 1, 1, 1], [0.01, -0.01, 0.02, -0.03])
        assert evaluator.evaluate(records, unit_cost=0.0).win_rate == pytest.approx(50.0)

    def test_profit_factor(self, evaluator):
        records = make_records([1, 1, 1], [0.03, -0.01, -0.02])
        assert evaluator.evaluate(records, unit_cost=0.0).profit_factor == pytest.approx(1.0)

    def test_annualisation_constant(self):
        records = make_records([1] * 4, [0.01, -0.005, 0.02, -0.01])
        daily = PerformanceEvaluator(trading_days_per_year=1).evaluate(records, unit_cost=0.0)
        yearly = PerformanceEvaluator(trading_days_per_year=252).evaluate(records, unit_cost=0.0)

        assert yearly.sharpe_ratio == pytest.approx(daily.sharpe_ratio * np.sqrt(252))


class TestMaxDrawdown:
    """Test the peak-relative drawdown convention."""

    def test_example_curve(self):
        assert PerformanceEvaluator._calculate_max_drawdown(np.array([1.0, 2.0, 1.0, 3.0])) == 0.5

    def test_non_decreasing_curve(self):
        curve = np.array([0.01, 0.02, 0.02, 0.05])
        assert PerformanceEvaluator._calculate_max_drawdown(curve) == 0.0

    def test_zero_peak_contributes_zero(self):
        curve = np.array([0.0, -0.01, -0.02])
        assert PerformanceEvaluator._calculate_max_drawdown(curve) == 0.0

    def test_empty_curve(self):
        assert PerformanceEvaluator._calculate_max_drawdown(np.array([])) == 0.0

    def test_drawdown_from_records(self, evaluator):
        """Cumulative [0.01, 0.02, 0.01, 0.03] -> drawdown 0.5."""
        records = make_records([1, 1, 1, 1], [0.01, 0.01, -0.01, 0.02])
        assert evaluator.evaluate(records, unit_cost=0.0).max_drawdown == pytest.approx(0.5)


class TestRollingAccuracy:
    """Test the centred moving hit rate."""

    def test_length_and_bounds(self, evaluator):
        rng = np.random.default_rng(1)
        records = make_records(rng.choice([-1, 1], size=50), rng.normal(size=50))
        rolling = evaluator.evaluate(records).rolling_accuracy

        assert len(rolling) == 50
        assert all(0.0 <= x <= 1.0 for x in rolling)

    def test_shrinking_edges(self):
        """Edges average over the available neighbours only."""
        records = make_records([1, 1, 1, 1], [0.01, -0.01, 0.01, 0.01])
        rolling = PerformanceEvaluator(rolling_window=3).evaluate(records).rolling_accuracy

        assert rolling == pytest.approx((0.5, 2 / 3, 2 / 3, 1.0))


class TestEvaluatorPurity:
    """evaluate() is a pure function of its input."""

    def test_idempotent(self, evaluator):
        rng = np.random.default_rng(5)
        records = make_records(rng.choice([-1, 0, 1], size=60), rng.normal(0, 0.01, size=60))

        first = evaluator.evaluate(records)
        second = evaluator.evaluate(records)

        assert first == second

    def test_idempotent_with_invalid_returns(self, evaluator):
        """NaN strategy returns do not break report equality."""
        records = make_records([1, -1, 1, 0], [0.01, float("nan"), -0.02, float("nan")])

        first = evaluator.evaluate(records)
        second = evaluator.evaluate(records)

        assert math.isnan(first.strategy_returns[1])
        assert first == second

    def test_different_inputs_compare_unequal(self, evaluator):
        base = evaluator.evaluate(make_records([1, 1], [0.01, float("nan")]))
        other = evaluator.evaluate(make_records([1, 1], [0.02, float("nan")]))

        assert base != other

    def test_empty_records(self, evaluator):
        report = evaluator.evaluate(())

        assert isinstance(report, PerformanceReport)
        assert report.num_steps == 0
        assert report.accuracy == 0.0
        assert report.max_drawdown == 0.0

    def test_to_dict(self, evaluator):
        summary = evaluator.evaluate(make_records([1, -1], [0.01, 0.02])).to_dict()

        for key in ("accuracy", "sharpe_ratio", "sortino_ratio", "win_rate",
                    "profit_factor", "max_drawdown", "confusion_matrix"):
            assert key in summary
