"""
POSECOACH+ Coach Service - Tick Loop

Cooperative asyncio loop driving one coaching engine:
- one detection request per tick, awaited without blocking other tasks
- one evaluation per successful detection
- immutable result snapshots published to a renderer callback
- detector failures logged and skipped; the last result stays on screen
- a stop signal ends rescheduling; late detections are discarded

There is no timeout on the detection await. A detector that never answers
stalls the loop until it does or the task is cancelled.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol, Sequence, Union

from ..models.modes import ModeId
from ..models.pipeline import CoachEngine, EvaluationResult

logger = logging.getLogger(__name__)


class DetectorFailure(Exception):
    """The upstream detection request failed or raised."""

    def __init__(self, cause: BaseException):
        super().__init__(f"{type(cause).__name__}: {cause}")
        self.cause = cause


class Detector(Protocol):
    """Landmark source; returns one subject's keypoint records, or None if nobody was found."""

    async def detect(self) -> Optional[Sequence[Any]]:
        ...


Renderer = Callable[[EvaluationResult], None]


class LoopState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class LoopStats:
    """Counters for one loop run."""
    ticks: int = 0
    evaluations: int = 0
    failures: int = 0
    discarded: int = 0

    def to_dict(self) -> dict:
        return {
            "ticks": self.ticks,
            "evaluations": self.evaluations,
            "failures": self.failures,
            "discarded": self.discarded,
        }


class TickLoop:
    """
    Runs detect → evaluate → publish, one tick at a time.

    Engine state is only touched inside the synchronous evaluation step, and
    renderers only ever see finished EvaluationResult snapshots.
    """

    def __init__(
        self,
        engine: CoachEngine,
        detector: Detector,
        renderer: Optional[Renderer] = None,
        clock: Callable[[], float] = time.monotonic,
        tick_interval: Optional[float] = None,
    ):
        self.engine = engine
        self.detector = detector
        self.renderer = renderer
        self.clock = clock
        self.tick_interval = tick_interval
        self.state = LoopState.IDLE
        self.stats = LoopStats()

        self._stop_event = asyncio.Event()
        self._last_result: Optional[EvaluationResult] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def last_result(self) -> Optional[EvaluationResult]:
        """Most recently published result (kept across failed ticks)."""
        return self._last_result

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    # ═══════════════════════════════════════════════════════════════════════════
    # CONTROL
    # ═══════════════════════════════════════════════════════════════════════════

    def stop(self):
        """Stop rescheduling; an in-flight detection finishes but its result is dropped."""
        if not self._stop_event.is_set():
            logger.info("🛑 Tick loop stop requested")
        self._stop_event.set()

    def switch_mode(self, mode_id: Union[str, ModeId]) -> bool:
        """Forward a UI mode-switch command; unknown modes are ignored."""
        return self.engine.switch_mode(mode_id)

    async def start(self) -> asyncio.Task:
        """Run the loop as a background task."""
        self._task = asyncio.create_task(self.run())
        return self._task

    async def shutdown(self):
        """Signal stop and wait for the background task to finish its current tick."""
        self.stop()
        if self._task:
            await self._task
            self._task = None

    # ═══════════════════════════════════════════════════════════════════════════
    # LOOP
    # ═══════════════════════════════════════════════════════════════════════════

    async def run(self, max_ticks: Optional[int] = None) -> LoopStats:
        """
        Tick until stopped.

        Args:
            max_ticks: optional cap on the number of ticks (used by replays and tests)

        Returns:
            LoopStats for the run
        """
        self.state = LoopState.RUNNING
        logger.info(f"▶️ Tick loop running (mode: {self.engine.mode.value})")

        try:
            while not self._stop_event.is_set():
                await self.tick()
                if max_ticks is not None and self.stats.ticks >= max_ticks:
                    break
                await asyncio.sleep(self._interval_seconds())
        finally:
            self.state = LoopState.STOPPED
            logger.info(f"⏹️ Tick loop stopped {self.stats.to_dict()}")

        return self.stats

    async def tick(self) -> Optional[EvaluationResult]:
        """
        Run a single tick.

        Returns:
            The new result, or None if the tick was skipped or its detection discarded
        """
        if self._stop_event.is_set():
            return None

        self.stats.ticks += 1
        mode_at_request = self.engine.mode

        try:
            records = await self._request_detection()
        except DetectorFailure as e:
            self.stats.failures += 1
            logger.warning(f"⚠️ Detection failed, keeping last result: {e}")
            return None

        if self._stop_event.is_set():
            self.stats.discarded += 1
            logger.debug("Discarding detection that finished after stop")
            return None

        if self.engine.mode != mode_at_request:
            # Records were produced for the previous mode's detector
            self.stats.discarded += 1
            logger.debug(f"Discarding detection issued under {mode_at_request.value}")
            return None

        result = self.engine.process(records, now=self.clock())
        self.stats.evaluations += 1
        self._last_result = result
        self._publish(result)
        return result

    async def _request_detection(self) -> Optional[Sequence[Any]]:
        try:
            return await self.detector.detect()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise DetectorFailure(e) from e

    def _publish(self, result: EvaluationResult):
        if self.renderer is None:
            return
        try:
            self.renderer(result)
        except Exception as e:
            logger.error(f"❌ Renderer error: {type(e).__name__}: {e}")

    def _interval_seconds(self) -> float:
        """Fixed interval if one was given, else the active mode's pacing."""
        if self.tick_interval is not None:
            return max(0.0, self.tick_interval)
        return max(0, self.engine.state.config.tick_interval_ms) / 1000.0
