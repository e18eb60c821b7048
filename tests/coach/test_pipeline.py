"""
End-to-end frame evaluation tests through CoachEngine.
"""

import pytest

from coach_service.models import CoachEngine, EvaluationResult, ModeController, ModeId, prompt_text
from coach_service.models.pipeline import HAND_DETECTED_LABEL

RAISED_GOOD = {"hip": (200.0, 200.0), "knee": (260.0, 250.0), "ankle": (210.0, 270.0)}
RAISED_STRAIGHT = {"hip": (200.0, 300.0), "knee": (300.0, 290.0), "ankle": (400.0, 280.0)}


class TestSquat:

    def test_labels(self, make_engine, body):
        engine = make_engine(ModeId.SQUAT)
        assert engine.process(body(170), now=0.0).quality_label == "Standing too straight"
        assert engine.process(body(150), now=0.1).quality_label == "Nice half squat"
        assert engine.process(body(110), now=0.2).quality_label == "Deep squat, strong!"

    def test_result_fields(self, make_engine, body):
        result = make_engine(ModeId.SQUAT).process(body(150.4), now=2.0)
        assert isinstance(result, EvaluationResult)
        assert result.detected
        assert result.angle == 150
        assert result.mode == "squat"
        assert result.prompt == prompt_text("squat.help")
        assert result.rep_count is None
        assert result.gesture is None
        assert result.timestamp == 2.0

    def test_hold_builds_stability_and_score(self, make_engine, body):
        engine = make_engine(ModeId.SQUAT)
        for t in (0.0, 1.0, 2.0, 3.0):
            result = engine.process(body(150), now=t)
        assert result.stable_seconds == pytest.approx(3.0)
        assert result.completion_percent == 38
        assert result.score == 15

        result = engine.process(body(170), now=4.0)
        assert result.stable_seconds == 0.0
        assert result.completion_percent == 0
        assert result.score == 15

    def test_score_independent_of_frame_rate(self, make_engine, body):
        slow = make_engine(ModeId.SQUAT)
        fast = make_engine(ModeId.SQUAT)
        for t in (0.0, 2.0, 4.0):
            slow_result = slow.process(body(140), now=t)
        for i in range(17):
            fast_result = fast.process(body(140), now=i * 0.25)
        assert slow_result.score == fast_result.score == 20

    def test_completion_caps_at_100(self, make_engine, body):
        engine = make_engine(ModeId.SQUAT)
        engine.process(body(120), now=0.0)
        assert engine.process(body(120), now=40.0).completion_percent == 100


class TestMissingLandmarks:

    def test_missing_joint(self, make_engine, body):
        engine = make_engine(ModeId.SQUAT)
        engine.process(body(150), now=0.0)
        engine.process(body(150), now=2.0)

        result = engine.process(body(150, omit=("left_ankle",)), now=2.5)
        assert not result.detected
        assert result.angle is None
        assert result.quality_label == prompt_text("squat.missing")
        assert result.stable_seconds == 0.0
        assert result.score == 10

    def test_low_confidence_same_as_absent(self, make_engine, body):
        low = make_engine(ModeId.SQUAT).process(body(150, overrides={"left_knee": 0.39}), now=1.0)
        absent = make_engine(ModeId.SQUAT).process(body(150, omit=("left_knee",)), now=1.0)
        assert low.to_dict() == absent.to_dict()

    def test_no_detection_at_all(self, make_engine):
        result = make_engine(ModeId.BALANCE).process(None, now=1.0)
        assert not result.detected
        assert result.quality_label == prompt_text("balance.missing")

    def test_missing_landmark_abandons_half_rep(self, make_engine, body):
        engine = make_engine(ModeId.SQUAT_REPS)
        for t, angle in enumerate([170, 110]):
            engine.process(body(angle), now=float(t))
        result = engine.process(body(110, omit=("left_hip",)), now=2.0)
        assert result.rep_count == 0

        result = engine.process(body(170), now=3.0)
        assert result.rep_count == 0


class TestSquatReps:

    def test_counts_and_scores_reps(self, make_engine, body):
        engine = make_engine(ModeId.SQUAT_REPS)
        results = [
            engine.process(body(angle), now=float(t))
            for t, angle in enumerate([170, 150, 110, 90, 150, 170])
        ]
        assert [r.rep_count for r in results] == [0, 0, 0, 0, 0, 1]
        assert results[-1].score == 10
        assert results[-1].completion_percent == 10

    def test_count_survives_missing_frames(self, make_engine, body):
        engine = make_engine(ModeId.SQUAT_REPS)
        for t, angle in enumerate([170, 100, 170]):
            engine.process(body(angle), now=float(t))
        result = engine.process([], now=3.0)
        assert result.rep_count == 1
        assert result.score == 10


class TestBalance:

    def test_raised_and_bent(self, make_engine, body):
        result = make_engine(ModeId.BALANCE).process(body(0, left_leg=RAISED_GOOD), now=0.0)
        assert result.quality_label == "Great balance, hold it!"

    def test_foot_not_raised(self, make_engine, body):
        result = make_engine(ModeId.BALANCE).process(body(120), now=0.0)
        assert result.quality_label == "Lift your foot above the other knee"

    def test_raised_but_straight(self, make_engine, body):
        result = make_engine(ModeId.BALANCE).process(body(0, left_leg=RAISED_STRAIGHT), now=0.0)
        assert result.quality_label == "Bend the lifted knee more"

    def test_missing_reference_knee(self, make_engine, body):
        result = make_engine(ModeId.BALANCE).process(
            body(0, left_leg=RAISED_GOOD, omit=("right_knee",)), now=0.0
        )
        assert not result.detected

    def test_hold(self, make_engine, body):
        engine = make_engine(ModeId.BALANCE)
        for t in (0.0, 2.0, 4.0):
            result = engine.process(body(0, left_leg=RAISED_GOOD), now=t)
        assert result.stable_seconds == pytest.approx(4.0)
        assert result.completion_percent == 50
        assert result.score == 20


class TestBalanceBand:

    @pytest.mark.parametrize("angle, label", [
        (165, "Bend the lifted knee more"),
        (142, "Steady, hold it there"),
        (120, "Too bent, ease up a little"),
    ])
    def test_labels(self, make_engine, body, angle, label):
        assert make_engine(ModeId.BALANCE_BAND).process(body(angle), now=0.0).quality_label == label


class TestRockPaperScissors:

    def test_gesture_result(self, make_engine, hand):
        result = make_engine(ModeId.RPS).process(hand(True, True, False, False), now=0.5)
        assert result.detected
        assert result.quality_label == HAND_DETECTED_LABEL
        assert result.gesture.label == "scissors"
        assert result.gesture.confidence_percent == 90
        assert result.angle is None
        assert result.completion_percent == 0
        assert result.score == 0

    def test_no_hand(self, make_engine):
        result = make_engine(ModeId.RPS).process([], now=0.5)
        assert not result.detected
        assert result.gesture is None
        assert result.quality_label == prompt_text("rps.missing")

    def test_to_dict_is_json_ready(self, make_engine, hand):
        data = make_engine(ModeId.RPS).process(hand(False, False, False, False), now=1.0).to_dict()
        assert data["gesture"] == {"label": "rock", "confidence_percent": 90}
        assert data["mode"] == "rps"


class TestEngine:

    def test_default_mode_from_settings(self):
        assert CoachEngine(ModeController()).mode == ModeId.SQUAT

    def test_switch_mode(self, make_engine, body):
        engine = make_engine(ModeId.SQUAT)
        engine.process(body(150), now=0.0)
        engine.process(body(150), now=5.0)
        assert engine.switch_mode("balance_band")
        assert engine.mode == ModeId.BALANCE_BAND
        assert engine.state.score.value == 0
        assert not engine.switch_mode("balance_band")
        assert not engine.switch_mode("moonwalk")
        assert engine.mode == ModeId.BALANCE_BAND

    def test_sessions_are_independent(self, make_engine, body):
        first = make_engine(ModeId.SQUAT)
        second = make_engine(ModeId.SQUAT)
        first.process(body(150), now=0.0)
        first.process(body(150), now=3.0)
        assert second.process(body(150), now=3.0).score == 0


class TestNonFiniteInput:

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_coordinate_is_missing_landmark(self, make_engine, body, bad):
        records = body(150)
        for record in records:
            if record["name"] == "left_ankle":
                record["x"] = bad
        result = make_engine(ModeId.SQUAT).process(records, now=0.0)
        assert not result.detected
        assert result.angle is None
        assert result.quality_label == prompt_text("squat.missing")

    def test_non_finite_hand_point(self, make_engine, hand):
        records = hand(True, True, False, False)
        records[8] = dict(records[8], y=float("nan"))
        result = make_engine(ModeId.RPS).process(records, now=0.0)
        assert not result.detected


class TestOverlayKeypoints:

    def test_result_carries_visible_keypoints(self, make_engine, body):
        result = make_engine(ModeId.SQUAT).process(body(150), now=0.0)
        names = [kp.identifier for kp in result.keypoints]
        assert names[:4] == ["nose", "left_shoulder", "right_shoulder", "left_hip"]
        assert len(result.keypoints) == 9

    def test_below_threshold_joint_left_out(self, make_engine, body):
        result = make_engine(ModeId.SQUAT).process(
            body(150, overrides={"right_ankle": 0.39, "nose": 0.4}), now=0.0
        )
        names = {kp.identifier for kp in result.keypoints}
        assert "right_ankle" not in names
        assert "nose" in names

    def test_undetected_result_still_has_overlay(self, make_engine, body):
        result = make_engine(ModeId.SQUAT).process(body(150, omit=("left_knee",)), now=0.0)
        assert not result.detected
        assert "left_hip" in {kp.identifier for kp in result.keypoints}

    def test_hand_keypoints_by_index(self, make_engine, hand):
        result = make_engine(ModeId.RPS).process(hand(False, False, False, False, overrides={4: 0.1}), now=0.0)
        indices = [kp.identifier for kp in result.keypoints]
        assert 4 not in indices
        assert indices[:4] == [0, 1, 2, 3]
        assert len(indices) == 20

    def test_keypoints_in_to_dict(self, make_engine, body):
        data = make_engine(ModeId.SQUAT).process(body(150), now=0.0).to_dict()
        assert data["keypoints"][0] == {"identifier": "nose", "x": 230.0, "y": 60.0, "confidence": 0.9}
