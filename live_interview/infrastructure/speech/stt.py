"""
Speech-to-text for live answers: a continuous recognition engine behind a
start/stop transcriber that keeps finalized text and exposes interim text.
"""
import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Iterable, List, Optional

from ...config import LANGUAGE_CODE, SAMPLE_RATE_TARGET
from ...errors import SpeechEngineUnavailable

logger = logging.getLogger("speech_stt")


@dataclass
class RecognitionResult:
    """One recognition hypothesis; is_final marks stable text."""
    transcript: str
    is_final: bool


@dataclass
class RecognitionEvent:
    """A batch of results; only entries from result_index onward are new."""
    results: List[RecognitionResult] = field(default_factory=list)
    result_index: int = 0


ResultCallback = Callable[[RecognitionEvent], None]


class SpeechEngine(ABC):
    """Continuous, interim-results recognition engine."""

    @abstractmethod
    def start(self, on_result: ResultCallback) -> None:
        """Begin recognizing. May raise if already started."""

    @abstractmethod
    def stop(self) -> None:
        """Stop recognizing. May raise if not started."""


def is_speech_recognition_supported() -> bool:
    """True when the Google Cloud Speech client library is importable."""
    try:
        from google.cloud import speech  # noqa: F401
    except ImportError:
        return False
    return True


class GoogleStreamingEngine(SpeechEngine):
    """
    Google Cloud Speech streaming recognition with interim results.

    Audio is pulled from audio_source (an iterable factory of 16 kHz mono
    PCM16 chunks) on a background thread; results are handed to the
    on_result callback from that same thread.
    """

    def __init__(self,
                 audio_source: Callable[[], Iterable[bytes]],
                 language_code: str = LANGUAGE_CODE,
                 sample_rate: int = SAMPLE_RATE_TARGET):
        from google.cloud import speech

        self._speech = speech
        self._client = speech.SpeechClient()
        self._audio_source = audio_source
        self._streaming_config = speech.StreamingRecognitionConfig(
            config=speech.RecognitionConfig(
                encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
                sample_rate_hertz=sample_rate,
                language_code=language_code,
                enable_automatic_punctuation=True,
            ),
            interim_results=True,
        )
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self, on_result: ResultCallback) -> None:
        """Start a recognition thread. Returns immediately; never blocks the caller."""
        previous = self._thread
        if previous is not None and previous.is_alive():
            if not self._stop_event.is_set():
                raise RuntimeError("recognition already started")
        else:
            previous = None
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(on_result, self._stop_event, previous),
            name="speech-recognition", daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        if self._thread is None:
            raise RuntimeError("recognition not started")
        self._stop_event.set()

    def _requests(self, stop_event: threading.Event):
        for chunk in self._audio_source():
            if stop_event.is_set():
                break
            yield self._speech.StreamingRecognizeRequest(audio_content=chunk)

    def _run(self, on_result: ResultCallback, stop_event: threading.Event,
             previous: Optional[threading.Thread] = None) -> None:
        if previous is not None:
            # previous run is winding down; let it release the microphone
            previous.join(timeout=0.5)
        try:
            responses = self._client.streaming_recognize(self._streaming_config, self._requests(stop_event))
            for response in responses:
                results = [
                    RecognitionResult(r.alternatives[0].transcript, bool(r.is_final))
                    for r in response.results if r.alternatives
                ]
                if results:
                    on_result(RecognitionEvent(results=results))
        except Exception as e:
            logger.error("Streaming recognition failed: %s", e)


class SpeechTranscriber:
    """
    Awaitable wrapper around a SpeechEngine.

    Engine callbacks may come from any thread; they are pushed onto an
    asyncio queue and applied by a consumer task on the event loop. Each
    start() opens a new generation so events from an earlier run are dropped.
    """

    def __init__(self,
                 engine: Optional[SpeechEngine],
                 on_update: Optional[Callable[[str, str], None]] = None):
        if engine is None:
            raise SpeechEngineUnavailable("No speech recognition engine available")
        self._engine = engine
        self._on_update = on_update
        self._transcript = ""
        self.interim_text = ""
        self._generation = 0
        self._queue: Optional[asyncio.Queue] = None
        self._consumer: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @classmethod
    def create_default(cls, audio_source: Callable[[], Iterable[bytes]],
                       language_code: str = LANGUAGE_CODE,
                       sample_rate: int = SAMPLE_RATE_TARGET,
                       on_update: Optional[Callable[[str, str], None]] = None) -> 'SpeechTranscriber':
        """
        Build a transcriber over Google streaming recognition.

        Raises:
            SpeechEngineUnavailable: If the client library or credentials are missing
        """
        try:
            engine = GoogleStreamingEngine(audio_source, language_code, sample_rate)
        except Exception as e:
            raise SpeechEngineUnavailable(f"Speech recognition unavailable: {e}") from e
        return cls(engine, on_update=on_update)

    @property
    def transcript(self) -> str:
        """Accumulated finalized text."""
        return self._transcript.strip()

    @property
    def listening(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    def clear(self) -> None:
        self._transcript = ""
        self.interim_text = ""

    def start(self) -> None:
        """Start a new recognition run. Engine errors are logged, never raised."""
        self._loop = asyncio.get_running_loop()
        if self._queue is not None and self.listening:
            self._queue.put_nowait(None)
        self._generation += 1
        self._queue = asyncio.Queue()
        self._consumer = asyncio.create_task(self._consume(self._queue, self._generation))
        try:
            self._engine.start(partial(self._push, self._generation, self._queue))
        except Exception as e:
            logger.warning(f"Speech recognition start ignored: {e}")

    def stop(self) -> None:
        """Stop the engine. Late events keep flowing until drain()."""
        try:
            self._engine.stop()
        except Exception as e:
            logger.warning(f"Speech recognition stop ignored: {e}")

    async def drain(self) -> None:
        """Close the current run after applying every event already queued."""
        consumer, queue = self._consumer, self._queue
        if consumer is None or queue is None:
            return
        # queued behind any events the engine already scheduled on the loop
        self._loop.call_soon(queue.put_nowait, None)
        await consumer
        self._consumer = None
        self.interim_text = ""

    def abort(self) -> None:
        """Stop without waiting for queued events (session teardown)."""
        if self.listening:
            self.stop()
            self._consumer.cancel()
        self._consumer = None
        self._generation += 1

    def _push(self, generation: int, queue: asyncio.Queue, event: RecognitionEvent) -> None:
        loop = self._loop
        if loop is None or generation != self._generation:
            return
        try:
            loop.call_soon_threadsafe(queue.put_nowait, event)
        except RuntimeError:
            # loop already closed; nobody is listening any more
            logger.debug("Dropped recognition event after loop shutdown")

    async def _consume(self, queue: asyncio.Queue, generation: int) -> None:
        while True:
            event = await queue.get()
            if event is None:
                return
            if generation == self._generation:
                self._apply(event)

    def _apply(self, event: RecognitionEvent) -> None:
        final_parts, interim_parts = [], []
        for result in event.results[event.result_index:]:
            text = result.transcript.strip()
            if not text:
                continue
            (final_parts if result.is_final else interim_parts).append(text)

        if final_parts:
            self._transcript = f"{self._transcript} {' '.join(final_parts)}".strip()
        self.interim_text = " ".join(interim_parts)

        if self._on_update is not None:
            try:
                self._on_update(self.transcript, self.interim_text)
            except Exception as e:
                logger.warning(f"Transcript update callback failed: {e}")
