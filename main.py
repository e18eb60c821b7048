"""
POSECOACH+ Replay Runner

Plays a recorded landmark stream through the coaching engine and logs every
evaluation. Handy for checking thresholds and mode behaviour without a
camera or a detector model.

Usage:
    python main.py recordings/squat_reps.jsonl --mode squat_reps
    python main.py recordings/squat_reps.jsonl --json
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from core.config import settings
from shared.utils import resolve_log_level, setup_logger

from coach_service.models import CoachEngine, EvaluationResult, ModeController, ModeId
from coach_service.stream import LoopStats, ReplayDetector, TickLoop, load_recording

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay a landmark recording through the coach engine.")
    parser.add_argument("recording", help="Path to a JSON-lines landmark recording")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ModeId],
        default=settings.DEFAULT_MODE,
        help=f"Mode active at the start of the replay (default: {settings.DEFAULT_MODE})",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print each result as a JSON line instead of a log summary",
    )
    return parser.parse_args(argv)


def _summarize(result: EvaluationResult) -> str:
    parts = [f"[{result.mode}] {result.quality_label}"]
    if result.angle is not None:
        parts.append(f"angle={result.angle}°")
    if result.gesture is not None:
        parts.append(f"gesture={result.gesture.label} ({result.gesture.confidence_percent}%)")
    if result.rep_count is not None:
        parts.append(f"reps={result.rep_count}")
    parts.append(f"stable={result.stable_seconds:.1f}s")
    parts.append(f"done={result.completion_percent}%")
    parts.append(f"score={result.score}")
    return " | ".join(parts)


async def replay(recording: str, mode: str, as_json: bool = False) -> LoopStats:
    """Run the whole recording through a tick loop without pacing delays."""
    entries = load_recording(recording)
    engine = CoachEngine(ModeController(), mode=mode)

    def render(result: EvaluationResult):
        if as_json:
            print(json.dumps(result.to_dict()))
        else:
            logger.info(_summarize(result))

    detector = ReplayDetector(entries=entries, on_mode=engine.switch_mode)
    loop = TickLoop(engine, detector, renderer=render, clock=detector.clock, tick_interval=0.0)
    detector.on_exhausted = loop.stop

    # Recorded timestamps drive the clock, so replay runs as fast as possible
    return await loop.run(max_ticks=len(entries) + 1)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    level = logging.DEBUG if settings.DEBUG else resolve_log_level(settings.LOG_LEVEL)
    # --json keeps stdout for results only
    setup_logger(level=level, stream=sys.stderr if args.json else sys.stdout)
    logger.info(f"🚀 {settings.APP_NAME} replay: {args.recording} (mode: {args.mode})")

    try:
        stats = asyncio.run(replay(args.recording, args.mode, as_json=args.json))
    except (OSError, ValueError) as e:
        logger.error(f"❌ Replay failed: {e}")
        return 1

    logger.info(f"✅ Replay finished: {stats.to_dict()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
