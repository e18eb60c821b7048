"""
POSECOACH+ Shared Module

Common utilities used across the engine.
"""

from .utils import (
    setup_logger,
    resolve_log_level,
    log_execution_time,
    clamp,
    round_half_up,
    to_percent,
)

__all__ = [
    'setup_logger',
    'resolve_log_level',
    'log_execution_time',
    'clamp',
    'round_half_up',
    'to_percent',
]
