"""
Directional - walk-forward evaluation of an ARIMA direction strategy.

Fits a low-order ARIMA model to the returns of a single instrument,
walks forward one day at a time predicting the sign of the next return,
re-estimates monthly on the expanding history, and scores the resulting
long/short stream after transaction costs.

It assumes:
- Backtests lie unless every forecast is strictly out-of-sample
- Costs are charged on every position
- Degenerate statistics are reported as zero, never as NaN
"""

__version__ = "0.1.0"
__author__ = "Directional Research Team"
