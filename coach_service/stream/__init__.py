"""
POSECOACH+ Stream Module
"""

from .tick_loop import (
    TickLoop,
    LoopState,
    LoopStats,
    Detector,
    DetectorFailure,
    Renderer,
)
from .replay import ReplayDetector, ReplayEntry, ReplayError, load_recording

__all__ = [
    'TickLoop',
    'LoopState',
    'LoopStats',
    'Detector',
    'DetectorFailure',
    'Renderer',
    'ReplayDetector',
    'ReplayEntry',
    'ReplayError',
    'load_recording',
]
