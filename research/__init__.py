"""
Research and backtesting modules.

This layer is for:
- Walk-forward evaluation of the ARIMA direction strategy
- Performance statistics of the resulting return stream

CRITICAL: Every forecast must be strictly out-of-sample. The walk-forward
engine is the only supported way to produce predictions for evaluation.
"""
