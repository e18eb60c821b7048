"""
POSECOACH+ Coach Service - Score Accumulator

Two accumulation policies:
- STABILITY: points accrue per second of held good pose (frame-rate independent)
- PER_REP:   a fixed award for every completed repetition

The score never decreases within a mode session.
"""

import math
from dataclasses import dataclass
from enum import Enum

from .stability import StabilityState


class ScorePolicy(Enum):
    """How a mode earns points."""
    STABILITY = "stability"
    PER_REP = "per_rep"
    NONE = "none"


@dataclass(frozen=True)
class ScoreState:
    """Accumulated score for the active session."""
    value: float = 0.0

    @property
    def display(self) -> int:
        return int(math.floor(self.value))


INITIAL_SCORE = ScoreState()


def accrue_for_stability(
    prior: ScoreState,
    before: StabilityState,
    after: StabilityState,
    points_per_second: float
) -> ScoreState:
    """
    Award points for the hold time gained between two stability states.

    Only time inside one uninterrupted hold counts; a fresh anchor gains nothing.
    """
    if not (before.is_holding and after.is_holding):
        return prior
    if before.anchor_timestamp != after.anchor_timestamp:
        return prior

    gained = max(0.0, after.elapsed_seconds - before.elapsed_seconds)
    if gained == 0.0:
        return prior
    return ScoreState(value=prior.value + gained * points_per_second)


def accrue_for_rep(prior: ScoreState, rep_completed: bool, points_per_rep: float) -> ScoreState:
    """Award a fixed number of points when a rep was just completed."""
    if not rep_completed:
        return prior
    return ScoreState(value=prior.value + points_per_rep)
