"""
POSECOACH+ Shared Utilities

Logging setup and small helpers.
"""

import inspect
import logging
import math
import sys
import time
from functools import wraps
from typing import Optional, TextIO


# ============================================
# Logging Configuration
# ============================================

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: Optional[str] = None,
    level: int = logging.INFO,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Set up a configured logger with console output.

    Called once by the entry point; with no name it configures the root logger
    so every module logger (getLogger(__name__)) inherits its handler.

    Usage:
        setup_logger(level=logging.DEBUG, stream=sys.stderr)
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(console_handler)

    return logger


def resolve_log_level(level_name: str) -> int:
    """Map a level name like "debug" to its logging constant (INFO if unknown)."""
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else logging.INFO


logger = logging.getLogger(__name__)


# ============================================
# Decorators
# ============================================

def log_execution_time(func):
    """Decorator to log function execution time."""
    @wraps(func)
    async def async_wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = await func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(f"{func.__name__} executed in {elapsed:.2f}ms")
        return result

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(f"{func.__name__} executed in {elapsed:.2f}ms")
        return result

    if inspect.iscoroutinefunction(func):
        return async_wrapper
    return sync_wrapper


# ============================================
# Utility Functions
# ============================================

def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, not banker's 2)."""
    return int(math.floor(value + 0.5))


def to_percent(numerator: float, denominator: float) -> int:
    """Ratio as a rounded percentage clamped to [0, 100]; 0 for a non-positive denominator."""
    if denominator <= 0:
        return 0
    return int(clamp(round_half_up(numerator / denominator * 100), 0, 100))
