"""Utility functions and helpers."""

from directional.utils.log_config import configure_logging

__all__ = ["configure_logging"]
