import asyncio
import threading
import time
import unittest

from live_interview.infrastructure.face import FacialMetricSampler
from live_interview.interview.models import FacialMetricSnapshot
from live_interview.interview.testing import MockExpressionDetector, MockMediaStream


def loaded_detector(**kwargs) -> MockExpressionDetector:
    detector = MockExpressionDetector(**kwargs)
    detector.load()
    return detector


class BlockingDetector(MockExpressionDetector):
    """Holds detect() until the test releases it."""

    def __init__(self):
        super().__init__(default={"happy": 1.0, "neutral": 0.0})
        self.entered = threading.Event()
        self.release = threading.Event()
        self.loaded = True

    def detect(self, frame):
        self.entered.set()
        self.release.wait(timeout=5)
        return super().detect(frame)


class SlowDetector(MockExpressionDetector):
    """Each detection takes `delay` seconds, like a real model call."""

    def __init__(self, delay: float):
        super().__init__(default={"happy": 0.5, "neutral": 0.5})
        self.delay = delay
        self.loaded = True

    def detect(self, frame):
        time.sleep(self.delay)
        return super().detect(frame)


class TestFacialMetricSampler(unittest.TestCase):

    def test_snapshot_without_frames_is_all_zero(self):
        sampler = FacialMetricSampler(loaded_detector())
        snapshot = sampler.snapshot()
        self.assertEqual(snapshot, FacialMetricSnapshot.empty())
        self.assertTrue(all(v == 0.0 for v in snapshot.averages().values()))

    def test_averages_over_face_frames_only(self):
        script = [{"happy": 0.8, "neutral": 0.0}] * 10 + [None, None]
        sampler = FacialMetricSampler(loaded_detector(script=script))
        source = MockMediaStream()

        async def scenario():
            for _ in range(12):
                await sampler.sample_once(source)
            return sampler.snapshot()

        snapshot = asyncio.run(scenario())
        self.assertEqual(snapshot.total_frames, 12)
        self.assertEqual(snapshot.face_frames, 10)
        self.assertEqual(snapshot.happy, 0.8)
        self.assertEqual(snapshot.smile, 0.8)
        self.assertEqual(snapshot.eye_contact, 1.0)
        self.assertEqual(snapshot.confidence, 0.48)
        self.assertEqual(snapshot.neutral, 0.0)

    def test_confidence_and_nervous_rules(self):
        script = [
            {"happy": 0.0, "neutral": 1.0, "fearful": 0.7, "disgusted": 0.6},
            {"happy": 0.0, "neutral": 0.5, "sad": 0.5},
        ]
        sampler = FacialMetricSampler(loaded_detector(script=script))
        source = MockMediaStream()

        async def scenario():
            await sampler.sample_once(source)
            await sampler.sample_once(source)
            return sampler.snapshot()

        snapshot = asyncio.run(scenario())
        # frame 1: conf 0.4, eye 1, nervous clamped to 1; frame 2: conf 0.2, eye 0
        self.assertEqual(snapshot.confidence, 0.3)
        self.assertEqual(snapshot.eye_contact, 0.5)
        self.assertEqual(snapshot.nervous, 0.5)
        self.assertEqual(snapshot.sad, 0.25)
        self.assertEqual(snapshot.neutral, 0.75)

    def test_detection_error_skips_frame(self):
        script = [RuntimeError("inference failed"), {"neutral": 1.0}]
        sampler = FacialMetricSampler(loaded_detector(script=script))
        source = MockMediaStream()

        async def scenario():
            await sampler.sample_once(source)
            await sampler.sample_once(source)
            return sampler.snapshot()

        snapshot = asyncio.run(scenario())
        self.assertEqual(snapshot.total_frames, 2)
        self.assertEqual(snapshot.face_frames, 1)
        self.assertEqual(snapshot.neutral, 1.0)
        self.assertEqual(snapshot.confidence, 0.4)

    def test_reset_zeroes_everything(self):
        sampler = FacialMetricSampler(loaded_detector(default={"happy": 1.0}))
        source = MockMediaStream()

        async def scenario():
            await sampler.sample_once(source)
            sampler.reset()
            return sampler.snapshot()

        snapshot = asyncio.run(scenario())
        self.assertEqual(snapshot, FacialMetricSnapshot.empty())

    def test_result_landing_after_stop_is_discarded(self):
        detector = BlockingDetector()
        sampler = FacialMetricSampler(detector)
        source = MockMediaStream()

        async def scenario():
            pending = asyncio.create_task(sampler.sample_once(source))
            await asyncio.to_thread(detector.entered.wait, 5)
            sampler.stop()
            detector.release.set()
            await pending
            return sampler.snapshot()

        snapshot = asyncio.run(scenario())
        self.assertEqual(snapshot.face_frames, 0)
        self.assertEqual(snapshot.happy, 0.0)

    def test_start_is_noop_without_model_or_source(self):
        unloaded = FacialMetricSampler(MockExpressionDetector())
        self.assertFalse(unloaded.model_loaded)
        self.assertFalse(unloaded.start(MockMediaStream()))
        self.assertFalse(unloaded.running)

        loaded = FacialMetricSampler(loaded_detector())
        self.assertFalse(loaded.start(None))

    def test_periodic_sampling_until_stopped(self):
        detector = loaded_detector(default={"happy": 0.5, "neutral": 0.5})
        sampler = FacialMetricSampler(detector, interval=0.001)
        source = MockMediaStream()

        async def scenario():
            self.assertTrue(sampler.start(source))
            await asyncio.sleep(0.1)
            self.assertTrue(sampler.running)
            sampler.stop()
            frames = sampler.total_frames
            await asyncio.sleep(0.05)
            return frames, sampler.snapshot()

        frames, snapshot = asyncio.run(scenario())
        self.assertGreater(snapshot.face_frames, 0)
        self.assertEqual(snapshot.total_frames, frames)
        self.assertFalse(sampler.running)
        self.assertEqual(snapshot.confidence, 0.5)

    def test_malformed_scores_skip_frame_and_sampling_continues(self):
        detector = loaded_detector(script=[{"happy": "n/a"}], default={"happy": 1.0})
        sampler = FacialMetricSampler(detector, interval=0.001)
        source = MockMediaStream()

        async def scenario():
            sampler.start(source)
            await asyncio.sleep(0.1)
            running = sampler.running
            sampler.stop()
            return running, sampler.snapshot()

        running, snapshot = asyncio.run(scenario())
        self.assertTrue(running)
        self.assertGreater(snapshot.face_frames, 0)
        self.assertGreater(snapshot.total_frames, snapshot.face_frames)
        self.assertEqual(snapshot.happy, 1.0)

    def test_malformed_frame_leaves_no_partial_sums(self):
        script = [{"happy": 0.9, "neutral": 0.2, "sad": object()}, {"neutral": 1.0}]
        sampler = FacialMetricSampler(loaded_detector(script=script))
        source = MockMediaStream()

        async def scenario():
            await sampler.sample_once(source)
            await sampler.sample_once(source)
            return sampler.snapshot()

        snapshot = asyncio.run(scenario())
        self.assertEqual(snapshot.total_frames, 2)
        self.assertEqual(snapshot.face_frames, 1)
        self.assertEqual(snapshot.happy, 0.0)
        self.assertEqual(snapshot.neutral, 1.0)

    def test_cadence_holds_when_detection_is_slow(self):
        sampler = FacialMetricSampler(SlowDetector(delay=0.08), interval=0.1)
        source = MockMediaStream()

        async def scenario():
            sampler.start(source)
            await asyncio.sleep(1.0)
            sampler.stop()
            return sampler.total_frames

        # one sample per 0.1 s tick; sleeping a full interval after each
        # 0.08 s detection would give about six
        self.assertGreaterEqual(asyncio.run(scenario()), 8)


if __name__ == '__main__':
    unittest.main()
