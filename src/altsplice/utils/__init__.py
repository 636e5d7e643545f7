"""Utility helpers for AltSplice."""

from altsplice.utils.intervals import Interval, referential_position, to_relative, to_relative_arrays
from altsplice.utils.logging import ProgressLogger, Timer, get_logger, setup_logging

__all__: list[str] = [
    "Interval",
    "ProgressLogger",
    "Timer",
    "get_logger",
    "referential_position",
    "setup_logging",
    "to_relative",
    "to_relative_arrays",
]
