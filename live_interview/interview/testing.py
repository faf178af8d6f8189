"""
Testing infrastructure with mock collaborators for the session controller.
"""
import threading
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from .models import Answer, Question
from ..config import Config
from ..errors import ApiError, FaceModelError, MediaAcquisitionError
from ..infrastructure.face import ExpressionDetector
from ..infrastructure.speech import (
    SpeechEngine, SpeechTranscriber, RecognitionEvent, RecognitionResult
)


def fast_test_config(**overrides) -> Config:
    """Config with timings shrunk so a whole session runs in well under a second."""
    values = dict(
        question_time_seconds=3,
        countdown_tick_seconds=0.01,
        submit_settle_delay=0.0,
        sampler_start_delay=0.0,
        face_sample_interval=0.001,
        report_poll_interval=0.0,
        report_poll_max_tries=3,
        video_ready_timeout=0.1,
    )
    values.update(overrides)
    return Config(**values)


def make_questions(count: int, duration_seconds: int = 3) -> List[Question]:
    return [
        Question(question_id=f"q{i}", text=f"Mock question {i}?", duration_seconds=duration_seconds)
        for i in range(1, count + 1)
    ]


class MockInterviewApi:
    """Scripted backend. Records every call for later assertions."""

    def __init__(self,
                 questions: List[Question],
                 final_report: Optional[Dict[str, Any]] = None,
                 report_ready_after: int = 1,
                 failing_submissions: Optional[List[int]] = None,
                 fail_create: bool = False,
                 failing_question_fetches: Optional[List[int]] = None):
        self._questions = list(questions)
        self.final_report = final_report
        self.report_ready_after = report_ready_after
        self.failing_submissions = set(failing_submissions or [])
        self.fail_create = fail_create
        self.failing_question_fetches = set(failing_question_fetches or [])
        self.session_id = "mock-session-1"
        self.next_question_calls = 0
        self.get_session_calls = 0
        self.submitted: List[Answer] = []
        self.submit_attempts = 0
        self._lock = threading.Lock()

    def create_session(self) -> str:
        if self.fail_create:
            raise ApiError("POST /interview/sessions returned 500: mock failure", 500)
        return self.session_id

    def next_question(self, session_id: str) -> Optional[Question]:
        with self._lock:
            self.next_question_calls += 1
            if self.next_question_calls in self.failing_question_fetches:
                raise ApiError("POST /questions failed: connection reset")
            return self._questions.pop(0) if self._questions else None

    def submit_answer(self, session_id: str, answer: Answer) -> Dict[str, Any]:
        with self._lock:
            self.submit_attempts += 1
            if self.submit_attempts in self.failing_submissions:
                raise ApiError("POST /answers failed: connection reset")
            self.submitted.append(answer)
            return {"success": True}

    def get_session(self, session_id: str) -> Dict[str, Any]:
        with self._lock:
            self.get_session_calls += 1
            ready = self.final_report is not None and self.get_session_calls >= self.report_ready_after
            return {"sessionId": session_id, "finalReport": self.final_report if ready else None}


class MockSpeechEngine(SpeechEngine):
    """Speech engine driven by the test. Mimics 'already started' errors."""

    def __init__(self, scripted: Optional[List[List[RecognitionEvent]]] = None):
        # one list of events per start(), delivered synchronously on start
        self.scripted = list(scripted or [])
        self.on_result: Optional[Callable[[RecognitionEvent], None]] = None
        self.running = False
        self.start_calls = 0
        self.stop_calls = 0

    def start(self, on_result: Callable[[RecognitionEvent], None]) -> None:
        if self.running:
            raise RuntimeError("recognition already started")
        self.running = True
        self.start_calls += 1
        self.on_result = on_result
        events = self.scripted.pop(0) if self.scripted else []
        for event in events:
            on_result(event)

    def stop(self) -> None:
        self.stop_calls += 1
        if not self.running:
            raise RuntimeError("recognition not started")
        self.running = False

    def say(self, text: str, is_final: bool = True) -> None:
        """Deliver one result as if the engine heard it."""
        if self.on_result is not None:
            self.on_result(RecognitionEvent(results=[RecognitionResult(text, is_final)]))


def final_event(*texts: str) -> RecognitionEvent:
    return RecognitionEvent(results=[RecognitionResult(t, True) for t in texts])


def mock_transcriber_factory(engine: MockSpeechEngine):
    """Transcriber factory for the controller using a mock engine."""
    def factory(media: Any, on_update: Callable[[str, str], None]) -> SpeechTranscriber:
        return SpeechTranscriber(engine, on_update=on_update)
    return factory


def unavailable_transcriber_factory(media: Any, on_update: Callable[[str, str], None]) -> SpeechTranscriber:
    return SpeechTranscriber(None, on_update=on_update)


Expression = Union[Dict[str, float], None, Exception]


class MockExpressionDetector(ExpressionDetector):
    """
    Returns scripted expressions per frame.

    Items may be a dict of scores, None (no face) or an Exception to raise.
    Once the script runs out, `default` is returned for every frame.
    """

    def __init__(self, script: Optional[List[Expression]] = None,
                 default: Expression = None, fail_load: bool = False):
        self.script = list(script or [])
        self.default = default
        self.fail_load = fail_load
        self.loaded = False
        self.detect_calls = 0
        self._lock = threading.Lock()

    def load(self) -> None:
        if self.fail_load:
            raise FaceModelError("mock model files missing")
        self.loaded = True

    def detect(self, frame: Any) -> Optional[Dict[str, float]]:
        with self._lock:
            self.detect_calls += 1
            item = self.script.pop(0) if self.script else self.default
        if isinstance(item, Exception):
            raise item
        return item


class MockMediaStream:
    """Stand-in for MediaStream; frames are opaque placeholders."""

    def __init__(self):
        self.release_calls = 0
        self.frames_read = 0

    @property
    def active(self) -> bool:
        return self.release_calls == 0

    def read_frame(self) -> Optional[object]:
        if not self.active:
            return None
        self.frames_read += 1
        return object()

    async def wait_until_ready(self, timeout: float, poll: float = 0.01) -> bool:
        return self.active

    def audio_chunks(self) -> Iterator[bytes]:
        return iter(())

    def release(self) -> None:
        self.release_calls += 1


class MockMediaFactory:
    """Callable media factory that remembers the stream it handed out."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.stream: Optional[MockMediaStream] = None

    def __call__(self, config: Config) -> MockMediaStream:
        if self.fail:
            raise MediaAcquisitionError("Permission denied: camera")
        self.stream = MockMediaStream()
        return self.stream


def create_mock_session_setup(question_count: int = 2,
                              final_report: Optional[Dict[str, Any]] = None,
                              **config_overrides) -> Dict[str, Any]:
    """Create a complete set of mock collaborators for a controller."""
    if final_report is None:
        final_report = {
            "overallScore": 72,
            "strengths": ["Clear structure"],
            "weaknesses": ["Short answers"],
            "suggestions": ["Give concrete examples"],
            "communicationRating": 7,
            "confidenceRating": 6,
        }
    return {
        "api": MockInterviewApi(make_questions(question_count), final_report=final_report),
        "detector": MockExpressionDetector(default={"happy": 0.5, "neutral": 0.5}),
        "engine": MockSpeechEngine(),
        "media_factory": MockMediaFactory(),
        "config": fast_test_config(**config_overrides),
    }
