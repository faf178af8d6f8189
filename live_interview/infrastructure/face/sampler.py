"""
Rolling facial-expression statistics for one question cycle.
"""
import asyncio
import logging
from typing import Dict, Optional, Any

from ...config import (
    FACE_SAMPLE_INTERVAL, FACE_METRIC_PRECISION,
    EYE_CONTACT_NEUTRAL_THRESHOLD, EYE_CONTACT_HAPPY_THRESHOLD,
    CONFIDENCE_HAPPY_WEIGHT, CONFIDENCE_NEUTRAL_WEIGHT
)
from ...interview.models import FacialMetricSnapshot
from .detector import ExpressionDetector

logger = logging.getLogger("face_sampler")


def _score(expressions: Dict[str, float], name: str) -> float:
    return min(1.0, max(0.0, float(expressions.get(name) or 0.0)))


class FacialMetricSampler:
    """
    Samples the video source at a fixed cadence and accumulates expression sums.

    Owns its accumulator. Each start() opens a new generation; a detection that
    completes after its loop was stopped is discarded instead of leaking into
    the next question's numbers.

    Eye contact is an approximation: a frame counts when the neutral or happy
    score clears its threshold. No gaze estimation is performed.
    """

    def __init__(self,
                 detector: ExpressionDetector,
                 interval: float = FACE_SAMPLE_INTERVAL,
                 precision: int = FACE_METRIC_PRECISION):
        self._detector = detector
        self._interval = interval
        self._precision = precision
        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self.reset()

    @property
    def model_loaded(self) -> bool:
        return bool(self._detector.loaded)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, video_source: Any) -> bool:
        """
        Begin periodic sampling of video_source.

        Returns False (and does nothing) when the model is not loaded or
        there is no source. Any running loop is stopped first.
        """
        if not self.model_loaded or video_source is None:
            logger.debug("Facial sampling not started: model not loaded or no video source")
            return False
        self.stop()
        self._generation += 1
        self._task = asyncio.create_task(self._run(video_source, self._generation))
        return True

    def stop(self) -> None:
        """Halt sampling. Idempotent."""
        self._generation += 1
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def reset(self) -> None:
        """Zero all sums and frame counters."""
        self._sums = dict.fromkeys(FacialMetricSnapshot.METRICS, 0.0)
        self.total_frames = 0
        self.face_frames = 0

    def snapshot(self) -> FacialMetricSnapshot:
        """Averages over face-detected frames; all zeros if no face was seen."""
        logger.debug(f"Total frames: {self.total_frames}, face frames: {self.face_frames}")
        if self.face_frames == 0:
            if self.total_frames:
                logger.warning("No face detected during question")
            return FacialMetricSnapshot.empty(total_frames=self.total_frames)

        averages = {
            name: round(min(1.0, max(0.0, total / self.face_frames)), self._precision)
            for name, total in self._sums.items()
        }
        return FacialMetricSnapshot(total_frames=self.total_frames, face_frames=self.face_frames, **averages)

    async def sample_once(self, video_source: Any) -> None:
        """Take a single sample in the current generation."""
        await self._sample(video_source, self._generation)

    async def _run(self, video_source: Any, generation: int) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while generation == self._generation:
            await self._sample(video_source, generation)
            next_tick += self._interval
            now = loop.time()
            if next_tick < now and self._interval > 0:
                # ticks that passed during a slow detection are skipped, not queued
                missed = int((now - next_tick) // self._interval) + 1
                next_tick += missed * self._interval
            await asyncio.sleep(max(0.0, next_tick - now))

    async def _sample(self, video_source: Any, generation: int) -> None:
        self.total_frames += 1
        try:
            expressions = await asyncio.to_thread(self._analyze, video_source)
        except Exception as e:
            logger.warning(f"Face analysis error: {e}")
            return

        if generation != self._generation or expressions is None:
            return
        try:
            self._record(expressions)
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipped malformed expression scores {expressions!r}: {e}")

    def _analyze(self, video_source: Any) -> Optional[Dict[str, float]]:
        return self._detector.detect(video_source.read_frame())

    def _record(self, expressions: Dict[str, float]) -> None:
        # every score is parsed before anything is added, so a bad frame leaves no trace
        happy = _score(expressions, "happy")
        neutral = _score(expressions, "neutral")
        frame = {
            "smile": happy,
            "happy": happy,
            "neutral": neutral,
            "sad": _score(expressions, "sad"),
            "angry": _score(expressions, "angry"),
            "surprised": _score(expressions, "surprised"),
            "nervous": min(1.0, _score(expressions, "fearful") + _score(expressions, "disgusted")),
            "eye_contact": 1.0 if (neutral > EYE_CONTACT_NEUTRAL_THRESHOLD
                                   or happy > EYE_CONTACT_HAPPY_THRESHOLD) else 0.0,
            "confidence": happy * CONFIDENCE_HAPPY_WEIGHT + neutral * CONFIDENCE_NEUTRAL_WEIGHT,
        }

        self.face_frames += 1
        for name, value in frame.items():
            self._sums[name] += value
