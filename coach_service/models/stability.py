"""
POSECOACH+ Coach Service - Stability Tracker

Turns a per-tick "good pose" signal into the real time it has been held.
Elapsed time comes from timestamps, never from counting ticks, so the result
does not depend on how fast the detector delivers frames.
"""

from dataclasses import dataclass
from typing import Optional

from shared.utils import to_percent


@dataclass(frozen=True)
class StabilityState:
    """Hold-time tracking state."""
    anchor_timestamp: Optional[float] = None
    elapsed_seconds: float = 0.0

    @property
    def is_holding(self) -> bool:
        return self.anchor_timestamp is not None


INITIAL_STABILITY = StabilityState()


def update_stability(is_good: bool, now: float, prior: StabilityState) -> StabilityState:
    """
    Advance the stability state by one tick.

    Args:
        is_good: whether the pose predicate holds this tick
        now: current timestamp in seconds
        prior: state from the previous tick

    Returns:
        New StabilityState
    """
    if not is_good:
        return INITIAL_STABILITY

    if prior.anchor_timestamp is None:
        return StabilityState(anchor_timestamp=now, elapsed_seconds=0.0)

    # A clock that steps backwards must not shrink the held time
    elapsed = max(prior.elapsed_seconds, now - prior.anchor_timestamp)
    return StabilityState(anchor_timestamp=prior.anchor_timestamp, elapsed_seconds=elapsed)


def stability_completion(elapsed_seconds: float, target_seconds: float) -> int:
    """Held time as a percentage of the target, clamped to [0, 100]."""
    return to_percent(elapsed_seconds, target_seconds)
