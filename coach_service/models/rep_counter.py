"""
POSECOACH+ Coach Service - Rep Counter

Two-state hysteresis machine over a joint angle. A rep is one descent below
the down threshold followed by a rise above the up threshold.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from shared.utils import to_percent


class RepPhase(Enum):
    """What the counter is waiting for next."""
    WAITING_FOR_DOWN = "waiting_for_down"
    WAITING_FOR_UP = "waiting_for_up"


@dataclass(frozen=True)
class RepThresholds:
    """Angle thresholds; the gap between them keeps jitter from double counting."""
    down: float
    up: float

    def __post_init__(self):
        if self.down >= self.up:
            raise ValueError(
                f"Rep down threshold ({self.down}) must be below up threshold ({self.up})"
            )


@dataclass(frozen=True)
class RepState:
    """Current phase and completed rep count."""
    phase: RepPhase = RepPhase.WAITING_FOR_DOWN
    count: int = 0

    def interrupted(self) -> "RepState":
        """Abandon a half-finished rep, keeping the count."""
        return RepState(phase=RepPhase.WAITING_FOR_DOWN, count=self.count)


INITIAL_REPS = RepState()


def update_reps(angle: float, thresholds: RepThresholds, prior: RepState) -> Tuple[RepState, bool]:
    """
    Update counter with a new angle.

    Returns:
        Tuple of (new state, rep_just_completed)
    """
    if prior.phase == RepPhase.WAITING_FOR_DOWN:
        if angle < thresholds.down:
            return RepState(phase=RepPhase.WAITING_FOR_UP, count=prior.count), False
        return prior, False

    if angle > thresholds.up:
        return RepState(phase=RepPhase.WAITING_FOR_DOWN, count=prior.count + 1), True
    return prior, False


def rep_completion(count: int, target: int) -> int:
    """Completed reps as a percentage of the target, clamped to [0, 100]."""
    return to_percent(count, target)
