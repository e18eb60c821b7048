"""
POSECOACH+ Coach Service - Mode Controller

The closed set of coaching modes, their single authoritative configuration
table, and the session state that is rebuilt whenever the mode changes.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple, Union

from core.config import Settings, settings as default_settings

from .pose_classifier import (
    BALANCE_BAND_RULES,
    BALANCE_RULES,
    LEFT_FOOT_ABOVE_RIGHT_KNEE,
    LEFT_KNEE,
    SQUAT_RULES,
    JointTriple,
    PoseRule,
    RaisedCheck,
)
from .rep_counter import INITIAL_REPS, RepState, RepThresholds
from .scoring import INITIAL_SCORE, ScorePolicy, ScoreState
from .stability import INITIAL_STABILITY, StabilityState

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS AND CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════════

class ModeId(str, Enum):
    """Supported coaching modes."""
    SQUAT = "squat"
    SQUAT_REPS = "squat_reps"
    BALANCE = "balance"
    BALANCE_BAND = "balance_band"
    RPS = "rps"


class ModeKind(Enum):
    """Which pipeline a mode runs."""
    POSE = "pose"
    GESTURE = "gesture"


BODY_CONFIDENCE_THRESHOLD = 0.4
HAND_CONFIDENCE_THRESHOLD = 0.3

SQUAT_REP_DOWN_ANGLE = 130
SQUAT_REP_UP_ANGLE = 160

PROMPTS: Dict[str, str] = {
    "squat.help": "Bend your knees and hold the squat until the bar fills up.",
    "squat.missing": "Step back so your left hip, knee and ankle are in view.",
    "squat_reps.help": "Squat below the line and stand back up to count a rep.",
    "squat_reps.missing": "Step back so your left hip, knee and ankle are in view.",
    "balance.help": "Stand on your right leg and lift your left foot above the right knee.",
    "balance.missing": "Make sure both legs are fully in view.",
    "balance_band.help": "Stand on one leg and hold the lifted knee at a steady bend.",
    "balance_band.missing": "Make sure your left leg is fully in view.",
    "rps.help": "Show rock, paper or scissors with one hand.",
    "rps.missing": "Place one hand in the center of the frame, palm facing the camera.",
}


def prompt_text(key: str) -> str:
    """Display text for a prompt key (the key itself if untranslated)."""
    return PROMPTS.get(key, key)


# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ModeConfig:
    """Thresholds, rules and targets for one mode."""
    mode_id: ModeId
    kind: ModeKind
    confidence_threshold: float
    rules: Tuple[PoseRule, ...] = ()
    joint: Optional[JointTriple] = None
    raised_check: Optional[RaisedCheck] = None
    stability_target_seconds: Optional[float] = None
    rep_thresholds: Optional[RepThresholds] = None
    rep_target: Optional[int] = None
    score_policy: ScorePolicy = ScorePolicy.NONE
    score_rate: float = 0.0
    tick_interval_ms: int = 0

    def __post_init__(self):
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError(f"{self.mode_id.value}: confidence threshold must be within [0, 1]")
        if self.kind == ModeKind.POSE and (self.joint is None or not self.rules):
            raise ValueError(f"{self.mode_id.value}: pose modes need a joint and a rule table")
        if self.stability_target_seconds is not None and self.stability_target_seconds <= 0:
            raise ValueError(f"{self.mode_id.value}: stability target must be positive")
        if self.rep_thresholds is not None and (self.rep_target is None or self.rep_target <= 0):
            raise ValueError(f"{self.mode_id.value}: rep modes need a positive rep target")
        if self.score_policy == ScorePolicy.PER_REP and self.rep_thresholds is None:
            raise ValueError(f"{self.mode_id.value}: per-rep scoring needs rep thresholds")

    @property
    def counts_reps(self) -> bool:
        return self.rep_thresholds is not None

    @property
    def prompt_key(self) -> str:
        return f"{self.mode_id.value}.help"

    @property
    def missing_key(self) -> str:
        return f"{self.mode_id.value}.missing"


def build_mode_table(config: Settings = default_settings) -> Dict[ModeId, ModeConfig]:
    """
    Build the configuration table for every mode.

    Targets, scoring rates and pacing come from settings; angle bands and
    confidence cutoffs are the named constants above.
    """
    stability_target = config.STABILITY_TARGET_SECONDS
    squat_reps = RepThresholds(down=SQUAT_REP_DOWN_ANGLE, up=SQUAT_REP_UP_ANGLE)

    modes = [
        ModeConfig(
            mode_id=ModeId.SQUAT,
            kind=ModeKind.POSE,
            confidence_threshold=BODY_CONFIDENCE_THRESHOLD,
            rules=SQUAT_RULES,
            joint=LEFT_KNEE,
            stability_target_seconds=stability_target,
            score_policy=ScorePolicy.STABILITY,
            score_rate=config.SCORE_POINTS_PER_SECOND,
            tick_interval_ms=config.TICK_INTERVAL_MS,
        ),
        ModeConfig(
            mode_id=ModeId.SQUAT_REPS,
            kind=ModeKind.POSE,
            confidence_threshold=BODY_CONFIDENCE_THRESHOLD,
            rules=SQUAT_RULES,
            joint=LEFT_KNEE,
            rep_thresholds=squat_reps,
            rep_target=config.REP_TARGET,
            score_policy=ScorePolicy.PER_REP,
            score_rate=config.SCORE_POINTS_PER_REP,
            tick_interval_ms=config.TICK_INTERVAL_MS,
        ),
        ModeConfig(
            mode_id=ModeId.BALANCE,
            kind=ModeKind.POSE,
            confidence_threshold=BODY_CONFIDENCE_THRESHOLD,
            rules=BALANCE_RULES,
            joint=LEFT_KNEE,
            raised_check=LEFT_FOOT_ABOVE_RIGHT_KNEE,
            stability_target_seconds=stability_target,
            score_policy=ScorePolicy.STABILITY,
            score_rate=config.SCORE_POINTS_PER_SECOND,
            tick_interval_ms=config.TICK_INTERVAL_MS,
        ),
        ModeConfig(
            mode_id=ModeId.BALANCE_BAND,
            kind=ModeKind.POSE,
            confidence_threshold=BODY_CONFIDENCE_THRESHOLD,
            rules=BALANCE_BAND_RULES,
            joint=LEFT_KNEE,
            stability_target_seconds=stability_target,
            score_policy=ScorePolicy.STABILITY,
            score_rate=config.SCORE_POINTS_PER_SECOND,
            tick_interval_ms=config.TICK_INTERVAL_MS,
        ),
        ModeConfig(
            mode_id=ModeId.RPS,
            kind=ModeKind.GESTURE,
            confidence_threshold=HAND_CONFIDENCE_THRESHOLD,
            tick_interval_ms=config.HAND_TICK_INTERVAL_MS,
        ),
    ]
    return {mode.mode_id: mode for mode in modes}


# ═══════════════════════════════════════════════════════════════════════════════
# SESSION STATE
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EngineState:
    """Everything one coaching session carries from tick to tick."""
    config: ModeConfig
    stability: StabilityState = INITIAL_STABILITY
    reps: RepState = INITIAL_REPS
    score: ScoreState = INITIAL_SCORE

    @property
    def mode_id(self) -> ModeId:
        return self.config.mode_id


class ModeController:
    """
    Owns the mode table and hands out fresh session state.

    Features:
    - Lenient parsing of mode identifiers from UI events
    - Switch ignores unknown and unchanged modes
    - Every accepted switch discards stability, reps and score wholesale
    """

    def __init__(self, configs: Optional[Mapping[ModeId, ModeConfig]] = None):
        self.configs: Dict[ModeId, ModeConfig] = dict(configs) if configs else build_mode_table()

    @property
    def mode_ids(self) -> Tuple[ModeId, ...]:
        return tuple(self.configs.keys())

    def parse_mode(self, value: Union[str, ModeId]) -> Optional[ModeId]:
        """Resolve a mode identifier, or None if it is not a configured mode."""
        try:
            mode_id = ModeId(value)
        except (ValueError, TypeError):
            return None
        return mode_id if mode_id in self.configs else None

    def start(self, mode_id: Union[str, ModeId]) -> EngineState:
        """Fresh state for a mode; raises ValueError for an unknown mode."""
        resolved = self.parse_mode(mode_id)
        if resolved is None:
            raise ValueError(f"Unknown mode: {mode_id!r}. Valid modes: {[m.value for m in self.mode_ids]}")
        return EngineState(config=self.configs[resolved])

    def switch_mode(self, state: EngineState, new_id: Union[str, ModeId]) -> EngineState:
        """
        Switch the active mode.

        Args:
            state: current session state
            new_id: requested mode identifier

        Returns:
            Fresh state for the new mode, or the unchanged state if the request
            is unknown or names the current mode
        """
        resolved = self.parse_mode(new_id)
        if resolved is None:
            logger.warning(f"⚠️ Ignoring switch to unknown mode {new_id!r}")
            return state
        if resolved == state.mode_id:
            logger.debug(f"Mode {resolved.value} already active")
            return state

        logger.info(f"🔀 Mode {state.mode_id.value} → {resolved.value}")
        return EngineState(config=self.configs[resolved])
