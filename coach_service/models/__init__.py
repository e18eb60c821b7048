"""
POSECOACH+ Coach Service Models

Rule-based pose and hand-gesture evaluation engine.
"""

from .keypoints import (
    Keypoint,
    Frame,
    KeypointRecord,
    HandLandmark,
    BODY_KEYPOINT_ORDER,
    to_keypoint,
    adapt_body_frame,
    adapt_hand_frame,
    find_visible,
    find_all_visible,
    visible_keypoints,
    OVERLAY_JOINTS,
    BODY_SKELETON_EDGES,
    HAND_FINGER_CHAINS,
)

from .geometry import angle_between, distance

from .pose_classifier import (
    JointTriple,
    RaisedCheck,
    AngleBand,
    PoseRule,
    PoseJudgement,
    classify_pose,
    measure_joint_angle,
    check_raised,
)

from .stability import StabilityState, update_stability, stability_completion
from .rep_counter import RepPhase, RepThresholds, RepState, update_reps, rep_completion
from .scoring import ScorePolicy, ScoreState, accrue_for_stability, accrue_for_rep

from .modes import (
    ModeId,
    ModeKind,
    ModeConfig,
    EngineState,
    ModeController,
    build_mode_table,
    prompt_text,
)

from .gesture import (
    Finger,
    FingerState,
    GestureLabel,
    GestureResult,
    finger_states,
    classify_extensions,
    classify_gesture,
)

from .pipeline import (
    EvaluationResult,
    GestureSnapshot,
    KeypointSnapshot,
    CoachEngine,
    evaluate_frame,
)

__all__ = [
    # Keypoints
    "Keypoint",
    "Frame",
    "KeypointRecord",
    "HandLandmark",
    "BODY_KEYPOINT_ORDER",
    "to_keypoint",
    "adapt_body_frame",
    "adapt_hand_frame",
    "find_visible",
    "find_all_visible",
    "visible_keypoints",
    "OVERLAY_JOINTS",
    "BODY_SKELETON_EDGES",
    "HAND_FINGER_CHAINS",
    # Geometry
    "angle_between",
    "distance",
    # Pose Classifier
    "JointTriple",
    "RaisedCheck",
    "AngleBand",
    "PoseRule",
    "PoseJudgement",
    "classify_pose",
    "measure_joint_angle",
    "check_raised",
    # Trackers
    "StabilityState",
    "update_stability",
    "stability_completion",
    "RepPhase",
    "RepThresholds",
    "RepState",
    "update_reps",
    "rep_completion",
    "ScorePolicy",
    "ScoreState",
    "accrue_for_stability",
    "accrue_for_rep",
    # Modes
    "ModeId",
    "ModeKind",
    "ModeConfig",
    "EngineState",
    "ModeController",
    "build_mode_table",
    "prompt_text",
    # Gesture
    "Finger",
    "FingerState",
    "GestureLabel",
    "GestureResult",
    "finger_states",
    "classify_extensions",
    "classify_gesture",
    # Pipeline
    "EvaluationResult",
    "GestureSnapshot",
    "KeypointSnapshot",
    "CoachEngine",
    "evaluate_frame",
]
