"""Utility helpers."""

from sqlscope.utils.logging import SlowQueryLogger, setup_logging

__all__ = ["SlowQueryLogger", "setup_logging"]
