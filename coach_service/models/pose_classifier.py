"""
POSECOACH+ Coach Service - Pose Classifier

Rule-based pose quality judgement. Each mode owns an ordered rule table; the
first rule whose angle band (and optional positional check) matches decides
the quality label and whether the pose counts as "good".
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .geometry import angle_between
from .keypoints import Frame, find_all_visible


# ═══════════════════════════════════════════════════════════════════════════════
# THRESHOLDS
# ═══════════════════════════════════════════════════════════════════════════════

# Squat knee bands
SQUAT_UPRIGHT_ANGLE = 160
SQUAT_DEEP_ANGLE = 130

# Single-leg balance: lifted knee must bend below this
BALANCE_BEND_ANGLE = 150

# Balance band variant: lifted knee held inside [low, high]
BALANCE_BAND_LOW = 130
BALANCE_BAND_HIGH = 155

UNMATCHED_LABEL = "Adjust your pose"


# ═══════════════════════════════════════════════════════════════════════════════
# RULE TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class JointTriple:
    """Three joints whose middle one is the angle vertex."""
    first: str
    vertex: str
    last: str

    @property
    def names(self) -> Tuple[str, str, str]:
        return (self.first, self.vertex, self.last)


@dataclass(frozen=True)
class RaisedCheck:
    """A point counts as raised when it sits above the reference (smaller image y)."""
    point: str
    reference: str

    @property
    def names(self) -> Tuple[str, str]:
        return (self.point, self.reference)


@dataclass(frozen=True)
class AngleBand:
    """Angle constraints; unset bounds are ignored."""
    greater_than: Optional[float] = None
    at_least: Optional[float] = None
    at_most: Optional[float] = None
    less_than: Optional[float] = None

    def contains(self, angle: float) -> bool:
        if self.greater_than is not None and not angle > self.greater_than:
            return False
        if self.at_least is not None and not angle >= self.at_least:
            return False
        if self.at_most is not None and not angle <= self.at_most:
            return False
        if self.less_than is not None and not angle < self.less_than:
            return False
        return True


ANY_ANGLE = AngleBand()


@dataclass(frozen=True)
class PoseRule:
    """One row of a mode's rule table."""
    label: str
    is_good: bool
    band: AngleBand = ANY_ANGLE
    raised: Optional[bool] = None  # None: positional check not consulted

    def matches(self, angle: float, raised: Optional[bool] = None) -> bool:
        if self.raised is not None and raised is not self.raised:
            return False
        return self.band.contains(angle)


@dataclass(frozen=True)
class PoseJudgement:
    """Classifier output."""
    label: str
    is_good: bool


# ═══════════════════════════════════════════════════════════════════════════════
# RULE TABLES
# ═══════════════════════════════════════════════════════════════════════════════

LEFT_KNEE = JointTriple("left_hip", "left_knee", "left_ankle")

LEFT_FOOT_ABOVE_RIGHT_KNEE = RaisedCheck(point="left_ankle", reference="right_knee")

SQUAT_RULES: Tuple[PoseRule, ...] = (
    PoseRule("Standing too straight", False, AngleBand(greater_than=SQUAT_UPRIGHT_ANGLE)),
    PoseRule("Nice half squat", True, AngleBand(greater_than=SQUAT_DEEP_ANGLE, at_most=SQUAT_UPRIGHT_ANGLE)),
    PoseRule("Deep squat, strong!", True, AngleBand(at_most=SQUAT_DEEP_ANGLE)),
)

BALANCE_RULES: Tuple[PoseRule, ...] = (
    PoseRule("Lift your foot above the other knee", False, raised=False),
    PoseRule("Great balance, hold it!", True, AngleBand(less_than=BALANCE_BEND_ANGLE), raised=True),
    PoseRule("Bend the lifted knee more", False, raised=True),
)

BALANCE_BAND_RULES: Tuple[PoseRule, ...] = (
    PoseRule("Bend the lifted knee more", False, AngleBand(greater_than=BALANCE_BAND_HIGH)),
    PoseRule("Steady, hold it there", True, AngleBand(at_least=BALANCE_BAND_LOW, at_most=BALANCE_BAND_HIGH)),
    PoseRule("Too bent, ease up a little", False, AngleBand(less_than=BALANCE_BAND_LOW)),
)


# ═══════════════════════════════════════════════════════════════════════════════
# CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

def classify_pose(rules: Sequence[PoseRule], angle: float, raised: Optional[bool] = None) -> PoseJudgement:
    """
    Evaluate a rule table against a measured angle.

    Args:
        rules: ordered, mutually exclusive rules
        angle: joint angle in degrees
        raised: result of the mode's positional check, if it has one

    Returns:
        PoseJudgement of the first matching rule (not good if none match)
    """
    for rule in rules:
        if rule.matches(angle, raised):
            return PoseJudgement(label=rule.label, is_good=rule.is_good)
    return PoseJudgement(label=UNMATCHED_LABEL, is_good=False)


def measure_joint_angle(frame: Frame, joint: JointTriple, threshold: float) -> Optional[float]:
    """Angle at the joint vertex, or None if any of the three joints is not visible."""
    points = find_all_visible(frame, joint.names, threshold)
    if points is None:
        return None
    return angle_between(points[joint.first], points[joint.vertex], points[joint.last])


def check_raised(frame: Frame, check: RaisedCheck, threshold: float) -> Optional[bool]:
    """Whether the point is above its reference, or None if either is not visible."""
    points = find_all_visible(frame, check.names, threshold)
    if points is None:
        return None
    return points[check.point].y < points[check.reference].y
