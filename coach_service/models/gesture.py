"""
POSECOACH+ Coach Service - Hand Gesture Classifier

Rock / paper / scissors from finger-extension geometry on a 21-point hand.

A finger counts as extended when its tip is clearly farther from the wrist
than its PIP joint. The thumb is not used.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from shared.utils import round_half_up

from .geometry import distance
from .keypoints import Frame, HandLandmark, find_all_visible

# tip must be this many times farther from the wrist than the pip
EXTENSION_RATIO = 1.25


class Finger(Enum):
    """Non-thumb fingers with their (tip, pip) landmark indices."""
    INDEX = (HandLandmark.INDEX_TIP, HandLandmark.INDEX_PIP)
    MIDDLE = (HandLandmark.MIDDLE_TIP, HandLandmark.MIDDLE_PIP)
    RING = (HandLandmark.RING_TIP, HandLandmark.RING_PIP)
    PINKY = (HandLandmark.PINKY_TIP, HandLandmark.PINKY_PIP)

    @property
    def tip(self) -> int:
        return int(self.value[0])

    @property
    def pip(self) -> int:
        return int(self.value[1])


REQUIRED_LANDMARKS = [int(HandLandmark.WRIST)] + [
    idx for finger in Finger for idx in (finger.tip, finger.pip)
]


class GestureLabel(str, Enum):
    ROCK = "rock"
    PAPER = "paper"
    SCISSORS = "scissors"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FingerState:
    extended: bool
    tip_distance: float
    pip_distance: float


@dataclass(frozen=True)
class GestureResult:
    """Gesture label with a fixed per-branch confidence (not a statistical estimate)."""
    label: GestureLabel
    confidence: float

    @property
    def confidence_percent(self) -> int:
        return round_half_up(self.confidence * 100)


def finger_states(frame: Frame, threshold: float) -> Optional[Dict[Finger, FingerState]]:
    """
    Extension test for each non-thumb finger.

    Returns:
        Mapping of finger to its state, or None if the wrist or any tip/pip is not visible
    """
    points = find_all_visible(frame, REQUIRED_LANDMARKS, threshold)
    if points is None:
        return None

    wrist = points[int(HandLandmark.WRIST)]
    states = {}
    for finger in Finger:
        tip_distance = distance(points[finger.tip], wrist)
        pip_distance = distance(points[finger.pip], wrist)
        states[finger] = FingerState(
            extended=tip_distance > pip_distance * EXTENSION_RATIO,
            tip_distance=tip_distance,
            pip_distance=pip_distance,
        )
    return states


def classify_extensions(index: bool, middle: bool, ring: bool, pinky: bool) -> GestureResult:
    """Decision table over the four extension flags, evaluated in order."""
    extended_count = sum([index, middle, ring, pinky])

    if extended_count == 0:
        return GestureResult(GestureLabel.ROCK, 0.9)

    if index and middle and not ring and not pinky:
        return GestureResult(GestureLabel.SCISSORS, 0.9)

    if extended_count >= 3:
        return GestureResult(GestureLabel.PAPER, 0.85)

    return GestureResult(GestureLabel.UNKNOWN, 0.3)


def classify_gesture(frame: Frame, threshold: float) -> Optional[GestureResult]:
    """Classify a hand frame; None when the needed landmarks are not visible."""
    states = finger_states(frame, threshold)
    if states is None:
        return None
    return classify_extensions(
        states[Finger.INDEX].extended,
        states[Finger.MIDDLE].extended,
        states[Finger.RING].extended,
        states[Finger.PINKY].extended,
    )
