"""
POSECOACH+ Coach Service - Frame Evaluation Pipeline

Runs once per detection frame:

    records → adapter → visibility filter → geometry → classifier
            → stability / rep counter → score → EvaluationResult

Session state is an explicit EngineState value passed in and returned, so
independent sessions never share anything and every step is reproducible.
"""

import logging
import time
from typing import Any, Iterable, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from core.config import settings
from shared.utils import log_execution_time, round_half_up

from .gesture import classify_gesture
from .keypoints import Frame, Keypoint, adapt_body_frame, adapt_hand_frame, visible_keypoints
from .modes import EngineState, ModeController, ModeId, ModeKind, prompt_text
from .pose_classifier import check_raised, classify_pose, measure_joint_angle
from .rep_counter import rep_completion, update_reps
from .scoring import ScorePolicy, accrue_for_rep, accrue_for_stability
from .stability import INITIAL_STABILITY, stability_completion, update_stability

logger = logging.getLogger(__name__)

HAND_DETECTED_LABEL = "Hand detected, keep it in the center"


# ═══════════════════════════════════════════════════════════════════════════════
# RESULT MODELS
# ═══════════════════════════════════════════════════════════════════════════════

class KeypointSnapshot(BaseModel):
    """One overlay point; body joints by name, hand landmarks by index."""
    model_config = ConfigDict(frozen=True)

    identifier: Union[str, int]
    x: float
    y: float
    confidence: float = Field(ge=0.0, le=1.0)

    @classmethod
    def from_keypoint(cls, kp: Keypoint) -> "KeypointSnapshot":
        return cls(identifier=kp.identifier, x=kp.x, y=kp.y, confidence=kp.confidence)


class GestureSnapshot(BaseModel):
    """Gesture part of a result."""
    model_config = ConfigDict(frozen=True)

    label: str
    confidence_percent: int = Field(ge=0, le=100)


class EvaluationResult(BaseModel):
    """Immutable per-tick snapshot handed to the renderer."""
    model_config = ConfigDict(frozen=True)

    mode: str
    detected: bool
    angle: Optional[int] = None
    quality_label: str
    prompt: str
    stable_seconds: float = Field(default=0.0, ge=0.0)
    completion_percent: int = Field(default=0, ge=0, le=100)
    score: int = Field(default=0, ge=0)
    rep_count: Optional[int] = Field(default=None, ge=0)
    gesture: Optional[GestureSnapshot] = None
    keypoints: Tuple[KeypointSnapshot, ...] = ()
    timestamp: float = 0.0

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return self.model_dump(mode="json")


# ═══════════════════════════════════════════════════════════════════════════════
# EVALUATION
# ═══════════════════════════════════════════════════════════════════════════════

def _resolve_now(frame: Frame, now: Optional[float]) -> float:
    if now is not None:
        return now
    if frame.timestamp is not None:
        return frame.timestamp
    return time.monotonic()


def _overlay(frame: Frame, threshold: float) -> Tuple[KeypointSnapshot, ...]:
    """Keypoints the renderer may draw: only those that passed the mode's threshold."""
    return tuple(KeypointSnapshot.from_keypoint(kp) for kp in visible_keypoints(frame, threshold))


def _progress(state: EngineState) -> int:
    config = state.config
    if config.counts_reps:
        return rep_completion(state.reps.count, config.rep_target)
    if config.stability_target_seconds:
        return stability_completion(state.stability.elapsed_seconds, config.stability_target_seconds)
    return 0


def _undetected(state: EngineState, frame: Frame, now: float) -> Tuple[EngineState, EvaluationResult]:
    """Missing landmark: drop the hold, abandon any half rep, keep count and score."""
    config = state.config
    new_state = EngineState(
        config=config,
        stability=INITIAL_STABILITY,
        reps=state.reps.interrupted(),
        score=state.score,
    )
    result = EvaluationResult(
        mode=config.mode_id.value,
        detected=False,
        quality_label=prompt_text(config.missing_key),
        prompt=prompt_text(config.prompt_key),
        stable_seconds=0.0,
        completion_percent=_progress(new_state),
        score=new_state.score.display,
        rep_count=new_state.reps.count if config.counts_reps else None,
        keypoints=_overlay(frame, config.confidence_threshold),
        timestamp=now,
    )
    return new_state, result


def _evaluate_pose(state: EngineState, frame: Frame, now: float) -> Tuple[EngineState, EvaluationResult]:
    config = state.config
    threshold = config.confidence_threshold

    raw_angle = measure_joint_angle(frame, config.joint, threshold)
    raised = None
    if config.raised_check is not None:
        raised = check_raised(frame, config.raised_check, threshold)
        if raised is None:
            return _undetected(state, frame, now)
    if raw_angle is None:
        return _undetected(state, frame, now)

    angle = round_half_up(raw_angle)
    judgement = classify_pose(config.rules, angle, raised)

    stability = update_stability(judgement.is_good, now, state.stability)

    reps = state.reps
    rep_completed = False
    if config.counts_reps:
        reps, rep_completed = update_reps(angle, config.rep_thresholds, state.reps)
        if rep_completed:
            logger.info(f"🏋️ Rep {reps.count} completed ({config.mode_id.value})")

    score = state.score
    if config.score_policy == ScorePolicy.STABILITY:
        score = accrue_for_stability(score, state.stability, stability, config.score_rate)
    elif config.score_policy == ScorePolicy.PER_REP:
        score = accrue_for_rep(score, rep_completed, config.score_rate)

    new_state = EngineState(config=config, stability=stability, reps=reps, score=score)
    result = EvaluationResult(
        mode=config.mode_id.value,
        detected=True,
        angle=angle,
        quality_label=judgement.label,
        prompt=prompt_text(config.prompt_key),
        stable_seconds=stability.elapsed_seconds,
        completion_percent=_progress(new_state),
        score=score.display,
        rep_count=reps.count if config.counts_reps else None,
        keypoints=_overlay(frame, threshold),
        timestamp=now,
    )
    return new_state, result


def _evaluate_gesture(state: EngineState, frame: Frame, now: float) -> Tuple[EngineState, EvaluationResult]:
    config = state.config
    gesture = classify_gesture(frame, config.confidence_threshold)
    if gesture is None:
        return _undetected(state, frame, now)

    result = EvaluationResult(
        mode=config.mode_id.value,
        detected=True,
        quality_label=HAND_DETECTED_LABEL,
        prompt=prompt_text(config.prompt_key),
        score=state.score.display,
        gesture=GestureSnapshot(
            label=gesture.label.value,
            confidence_percent=gesture.confidence_percent,
        ),
        keypoints=_overlay(frame, config.confidence_threshold),
        timestamp=now,
    )
    return state, result


def evaluate_frame(
    state: EngineState,
    frame: Frame,
    now: Optional[float] = None
) -> Tuple[EngineState, EvaluationResult]:
    """
    Evaluate one frame against the active mode.

    Args:
        state: session state from the previous tick
        frame: adapted keypoints for this tick
        now: timestamp in seconds (defaults to the frame's, then the monotonic clock)

    Returns:
        Tuple of (next state, result snapshot)
    """
    now = _resolve_now(frame, now)
    if state.config.kind == ModeKind.GESTURE:
        return _evaluate_gesture(state, frame, now)
    return _evaluate_pose(state, frame, now)


# ═══════════════════════════════════════════════════════════════════════════════
# ENGINE
# ═══════════════════════════════════════════════════════════════════════════════

class CoachEngine:
    """
    One coaching session: the mode controller plus the current EngineState.

    Used by the tick loop, which owns exactly one engine and calls it from a
    single task, so no locking is needed.
    """

    def __init__(
        self,
        controller: Optional[ModeController] = None,
        mode: Union[str, ModeId, None] = None
    ):
        self.controller = controller or ModeController()
        self.state = self.controller.start(mode or settings.DEFAULT_MODE)
        logger.info(f"✅ Coach engine ready (mode: {self.state.mode_id.value})")

    @property
    def mode(self) -> ModeId:
        return self.state.mode_id

    def adapt(self, records: Optional[Iterable[Any]], timestamp: Optional[float] = None) -> Frame:
        """Adapt raw records with the adapter that matches the active mode."""
        if self.state.config.kind == ModeKind.GESTURE:
            return adapt_hand_frame(records, timestamp)
        return adapt_body_frame(records, timestamp)

    @log_execution_time
    def process(self, records: Optional[Iterable[Any]], now: Optional[float] = None) -> EvaluationResult:
        """Adapt and evaluate one detection, advancing the session state."""
        frame = self.adapt(records, timestamp=now)
        self.state, result = evaluate_frame(self.state, frame, now)
        return result

    def switch_mode(self, mode_id: Union[str, ModeId]) -> bool:
        """Switch modes; returns True if the mode actually changed."""
        previous = self.state
        self.state = self.controller.switch_mode(self.state, mode_id)
        return self.state is not previous
