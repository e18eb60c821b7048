"""
POSECOACH+ Coach Service - Keypoint Adapter & Visibility Filter

Collapses the landmark records emitted by different estimators into one
canonical Keypoint shape, and looks keypoints up with a confidence cutoff.

Estimators disagree on field names:
- name / part          -> identifier (body joints)
- score / confidence / visibility -> confidence

Hand frames are identified by landmark index (0-20) instead of name.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

Identifier = Union[str, int]

# Confidence assigned when an estimator reports no per-point score at all
DEFAULT_CONFIDENCE = 1.0


# ═══════════════════════════════════════════════════════════════════════════════
# LANDMARK NAMES
# ═══════════════════════════════════════════════════════════════════════════════

# MoveNet / COCO order, used to name body records that arrive without a name
BODY_KEYPOINT_ORDER = [
    "nose",
    "left_eye", "right_eye",
    "left_ear", "right_ear",
    "left_shoulder", "right_shoulder",
    "left_elbow", "right_elbow",
    "left_wrist", "right_wrist",
    "left_hip", "right_hip",
    "left_knee", "right_knee",
    "left_ankle", "right_ankle",
]


class HandLandmark(IntEnum):
    """21-point hand landmark indices."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


HAND_LANDMARK_COUNT = len(HandLandmark)


# ═══════════════════════════════════════════════════════════════════════════════
# OVERLAY TOPOLOGY
# ═══════════════════════════════════════════════════════════════════════════════

# Body joints worth drawing as dots on the skeleton overlay
OVERLAY_JOINTS = (
    "left_shoulder", "right_shoulder",
    "left_hip", "right_hip",
    "left_knee", "right_knee",
    "left_ankle", "right_ankle",
    "nose",
)

# Bones drawn between body joints
BODY_SKELETON_EDGES = (
    ("left_shoulder", "right_shoulder"),
    ("left_shoulder", "left_elbow"),
    ("left_elbow", "left_wrist"),
    ("right_shoulder", "right_elbow"),
    ("right_elbow", "right_wrist"),
    ("left_shoulder", "left_hip"),
    ("right_shoulder", "right_hip"),
    ("left_hip", "right_hip"),
    ("left_hip", "left_knee"),
    ("left_knee", "left_ankle"),
    ("right_hip", "right_knee"),
    ("right_knee", "right_ankle"),
    ("left_shoulder", "nose"),
    ("right_shoulder", "nose"),
)

# Wrist-to-tip polylines for each finger, thumb first
HAND_FINGER_CHAINS = (
    (0, 1, 2, 3, 4),
    (0, 5, 6, 7, 8),
    (0, 9, 10, 11, 12),
    (0, 13, 14, 15, 16),
    (0, 17, 18, 19, 20),
)


# ═══════════════════════════════════════════════════════════════════════════════
# CANONICAL SHAPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Keypoint:
    """A named or indexed 2D landmark with detection confidence."""
    identifier: Identifier
    x: float
    y: float
    confidence: float

    def to_numpy(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)


@dataclass(frozen=True)
class Frame:
    """Keypoints captured at one detection instant."""
    keypoints: Tuple[Keypoint, ...] = ()
    timestamp: Optional[float] = None

    def get(self, identifier: Identifier) -> Optional[Keypoint]:
        """First keypoint with this identifier, regardless of confidence."""
        for kp in self.keypoints:
            if kp.identifier == identifier:
                return kp
        return None

    def __len__(self) -> int:
        return len(self.keypoints)


class KeypointRecord(BaseModel):
    """Raw estimator record; accepts either naming convention. NaN and inf are rejected."""
    model_config = ConfigDict(extra="ignore", frozen=True, allow_inf_nan=False)

    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("name", "part"))
    x: float
    y: float
    confidence: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("score", "confidence", "visibility"),
    )

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: Optional[float]) -> Optional[float]:
        if value is None:
            return None
        return max(0.0, min(1.0, value))


# ═══════════════════════════════════════════════════════════════════════════════
# ADAPTER
# ═══════════════════════════════════════════════════════════════════════════════

def _parse_record(record: Any) -> Optional[KeypointRecord]:
    """Validate one record (mapping or attribute object); None if malformed."""
    try:
        if isinstance(record, Mapping):
            return KeypointRecord.model_validate(dict(record))
        return KeypointRecord.model_validate(record, from_attributes=True)
    except ValidationError as e:
        logger.debug(f"Dropping malformed keypoint record: {e.error_count()} error(s)")
        return None


def to_keypoint(record: Any, fallback_identifier: Identifier) -> Optional[Keypoint]:
    """
    Normalize a single record into a Keypoint.

    Args:
        record: Mapping or object with x/y plus optional name and confidence
        fallback_identifier: Identifier used when the record carries no name

    Returns:
        Keypoint, or None when the record lacks usable coordinates
    """
    parsed = _parse_record(record)
    if parsed is None:
        return None

    confidence = parsed.confidence if parsed.confidence is not None else DEFAULT_CONFIDENCE
    return Keypoint(
        identifier=parsed.name if parsed.name else fallback_identifier,
        x=parsed.x,
        y=parsed.y,
        confidence=confidence,
    )


def adapt_body_frame(records: Optional[Iterable[Any]], timestamp: Optional[float] = None) -> Frame:
    """
    Build a body Frame from named joint records.

    Records without a name are named by their position in MoveNet order.
    """
    keypoints: List[Keypoint] = []
    for idx, record in enumerate(records or []):
        fallback = BODY_KEYPOINT_ORDER[idx] if idx < len(BODY_KEYPOINT_ORDER) else idx
        kp = to_keypoint(record, fallback)
        if kp is not None:
            keypoints.append(kp)
    return Frame(keypoints=tuple(keypoints), timestamp=timestamp)


def adapt_hand_frame(records: Optional[Iterable[Any]], timestamp: Optional[float] = None) -> Frame:
    """
    Build a hand Frame; landmarks are identified by index in the 21-point order.

    Any names the estimator attaches are discarded so lookups are always by index.
    """
    keypoints: List[Keypoint] = []
    for idx, record in enumerate(records or []):
        if idx >= HAND_LANDMARK_COUNT:
            break
        kp = to_keypoint(record, idx)
        if kp is not None:
            keypoints.append(Keypoint(identifier=idx, x=kp.x, y=kp.y, confidence=kp.confidence))
    return Frame(keypoints=tuple(keypoints), timestamp=timestamp)


# ═══════════════════════════════════════════════════════════════════════════════
# VISIBILITY FILTER
# ═══════════════════════════════════════════════════════════════════════════════

def find_visible(frame: Frame, identifier: Identifier, threshold: float) -> Optional[Keypoint]:
    """Return the keypoint only if present with confidence >= threshold."""
    kp = frame.get(identifier)
    if kp is None or kp.confidence < threshold:
        return None
    return kp


def find_all_visible(
    frame: Frame,
    identifiers: Iterable[Identifier],
    threshold: float
) -> Optional[Dict[Identifier, Keypoint]]:
    """All requested keypoints keyed by identifier, or None if any is absent."""
    found: Dict[Identifier, Keypoint] = {}
    for identifier in identifiers:
        kp = find_visible(frame, identifier, threshold)
        if kp is None:
            return None
        found[identifier] = kp
    return found


def visible_keypoints(frame: Frame, threshold: float) -> Tuple[Keypoint, ...]:
    """Every keypoint in the frame at or above the threshold, in frame order."""
    return tuple(kp for kp in frame.keypoints if kp.confidence >= threshold)
