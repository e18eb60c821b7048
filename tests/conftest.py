"""
POSECOACH+ Test Fixtures

Builders for synthetic body and hand landmark records in pixel coordinates.
"""

import math
from typing import Dict, List, Optional

import pytest

from coach_service.models import CoachEngine, ModeController, ModeId, build_mode_table
from core.config import Settings


# ═══════════════════════════════════════════════════════════════════════════════
# BODY RECORDS
# ═══════════════════════════════════════════════════════════════════════════════

KNEE = (200.0, 300.0)
SEGMENT = 100.0


def leg_points(knee_angle: float, knee=KNEE) -> Dict[str, tuple]:
    """Hip straight above the knee, ankle rotated so the knee angle is knee_angle."""
    kx, ky = knee
    theta = math.radians(knee_angle)
    return {
        "hip": (kx, ky - SEGMENT),
        "knee": (kx, ky),
        "ankle": (kx + SEGMENT * math.sin(theta), ky - SEGMENT * math.cos(theta)),
    }


def body_records(
    knee_angle: float,
    score: float = 0.9,
    overrides: Optional[Dict[str, float]] = None,
    omit: tuple = (),
    left_leg: Optional[Dict[str, tuple]] = None,
) -> List[dict]:
    """
    MoveNet-style records for a subject with the given left knee angle.

    Args:
        knee_angle: left knee angle in degrees
        score: default confidence for every joint
        overrides: per-joint confidence overrides
        omit: joint names to leave out entirely
        left_leg: explicit hip/knee/ankle positions (for balance poses)
    """
    overrides = overrides or {}
    left = left_leg or leg_points(knee_angle)
    right = leg_points(178.0, knee=(260.0, 300.0))

    points = {
        "nose": (230.0, 60.0),
        "left_shoulder": (200.0, 120.0),
        "right_shoulder": (260.0, 120.0),
        "left_hip": left["hip"],
        "left_knee": left["knee"],
        "left_ankle": left["ankle"],
        "right_hip": right["hip"],
        "right_knee": right["knee"],
        "right_ankle": right["ankle"],
    }
    return [
        {"name": name, "x": x, "y": y, "score": overrides.get(name, score)}
        for name, (x, y) in points.items()
        if name not in omit
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# HAND RECORDS
# ═══════════════════════════════════════════════════════════════════════════════

WRIST = (300.0, 400.0)

# Finger direction in degrees from straight up, with (mcp, pip, dip, tip) indices
FINGER_LAYOUT = {
    "index": (-20.0, (5, 6, 7, 8)),
    "middle": (-5.0, (9, 10, 11, 12)),
    "ring": (10.0, (13, 14, 15, 16)),
    "pinky": (25.0, (17, 18, 19, 20)),
}


def _along(direction_deg: float, length: float) -> tuple:
    theta = math.radians(direction_deg)
    return (WRIST[0] + length * math.sin(theta), WRIST[1] - length * math.cos(theta))


def hand_records(
    index: bool,
    middle: bool,
    ring: bool,
    pinky: bool,
    score: float = 0.95,
    overrides: Optional[Dict[int, float]] = None,
) -> List[dict]:
    """21 hand records in landmark order with the requested fingers extended."""
    overrides = overrides or {}
    points: List[tuple] = [WRIST] * 21

    # Thumb tucked to the side
    for offset, idx in enumerate((1, 2, 3, 4)):
        points[idx] = (WRIST[0] - 20.0 - 8.0 * offset, WRIST[1] - 15.0 - 5.0 * offset)

    extended = {"index": index, "middle": middle, "ring": ring, "pinky": pinky}
    for finger, (direction, (mcp, pip, dip, tip)) in FINGER_LAYOUT.items():
        points[mcp] = _along(direction, 40.0)
        points[pip] = _along(direction, 60.0)
        if extended[finger]:
            points[dip] = _along(direction, 80.0)
            points[tip] = _along(direction, 100.0)
        else:
            # Curled back toward the palm
            points[dip] = _along(direction, 55.0)
            points[tip] = _along(direction, 45.0)

    return [
        {"x": x, "y": y, "score": overrides.get(i, score)}
        for i, (x, y) in enumerate(points)
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        STABILITY_TARGET_SECONDS=8.0,
        REP_TARGET=10,
        SCORE_POINTS_PER_SECOND=5.0,
        SCORE_POINTS_PER_REP=10.0,
        TICK_INTERVAL_MS=0,
        HAND_TICK_INTERVAL_MS=0,
    )


@pytest.fixture
def controller(test_settings) -> ModeController:
    return ModeController(build_mode_table(test_settings))


@pytest.fixture
def make_engine(controller):
    def _make(mode: ModeId = ModeId.SQUAT) -> CoachEngine:
        return CoachEngine(controller, mode=mode)
    return _make


@pytest.fixture
def body():
    return body_records


@pytest.fixture
def hand():
    return hand_records
