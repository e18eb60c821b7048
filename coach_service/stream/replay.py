"""
POSECOACH+ Coach Service - Recorded Landmark Replay

Detector that plays back a JSON-lines landmark recording, so the engine can
be exercised without a camera or a model. Each line is one of:

    {"t": 0.033, "keypoints": [{"name": "left_knee", "x": 310, "y": 402, "score": 0.91}, ...]}
    {"t": 0.066, "error": "inference timed out"}      # simulated detector failure
    {"mode": "squat_reps"}                             # simulated mode switch
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)


class ReplayError(RuntimeError):
    """Recorded detector failure."""


@dataclass
class ReplayEntry:
    """One recorded line."""
    timestamp: Optional[float] = None
    keypoints: Optional[List[Dict[str, Any]]] = None
    error: Optional[str] = None
    mode: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReplayEntry":
        return cls(
            timestamp=data.get("t"),
            keypoints=data.get("keypoints"),
            error=data.get("error"),
            mode=data.get("mode"),
        )


def load_recording(path: Union[str, Path]) -> List[ReplayEntry]:
    """Read a JSON-lines recording; blank lines are skipped."""
    entries = []
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{line_number}: invalid JSON ({e.msg})") from e
            if not isinstance(data, dict):
                raise ValueError(f"{path}:{line_number}: expected an object")
            entries.append(ReplayEntry.from_dict(data))
    logger.info(f"📼 Loaded {len(entries)} replay entries from {path}")
    return entries


@dataclass
class ReplayDetector:
    """
    Plays recorded entries back one detection at a time.

    Mode entries are forwarded to on_mode; the recorded timestamp of the last
    detection is exposed through clock() so it can serve as the loop clock.
    """
    entries: Sequence[ReplayEntry]
    on_mode: Optional[Callable[[str], Any]] = None
    on_exhausted: Optional[Callable[[], Any]] = None
    current_time: float = 0.0
    _position: int = field(default=0, init=False)

    @property
    def exhausted(self) -> bool:
        return self._position >= len(self.entries)

    def clock(self) -> float:
        return self.current_time

    async def detect(self) -> Optional[Sequence[Dict[str, Any]]]:
        while True:
            if self.exhausted:
                if self.on_exhausted:
                    self.on_exhausted()
                return None

            entry = self.entries[self._position]
            self._position += 1
            if entry.mode is None:
                break

            # An accepted switch consumes the whole tick so no recorded frame is lost to it
            if self.on_mode and self.on_mode(entry.mode):
                return None
            logger.debug(f"Replay mode line {entry.mode!r} changed nothing")

        if entry.timestamp is not None:
            self.current_time = float(entry.timestamp)
        if entry.error is not None:
            raise ReplayError(entry.error)
        return entry.keypoints or []
