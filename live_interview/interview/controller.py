"""
Live interview session controller.

Drives the question -> answer -> next question cycle against the backend,
with a countdown, speech transcription and facial sampling active while the
candidate answers, then polls for the final report.
"""
import asyncio
import logging
import time
from typing import Any, Callable, Optional

from .models import (
    Answer, FinalReport, Question, Session, SessionOutcome, SessionState
)
from .events import (
    InterviewEventBus, EventLogger, SessionMetrics,
    SessionStartedEvent, QuestionIssuedEvent, CountdownTickEvent,
    TranscriptUpdatedEvent, AnswerSubmittedEvent, SubmissionFailedEvent,
    SessionCompletedEvent, ReportReadyEvent, ReportUnavailableEvent,
    ErrorOccurredEvent
)
from ..config import Config
from ..errors import ApiError, InvalidStateError, SpeechEngineUnavailable
from ..infrastructure.face import ExpressionDetector, FacialMetricSampler
from ..infrastructure.media import MediaStream
from ..infrastructure.speech import SpeechTranscriber

logger = logging.getLogger("controller")

TranscriberFactory = Callable[[Any, Callable[[str, str], None]], SpeechTranscriber]


class InterviewSessionController:
    """
    Owns one interview session from camera acquisition to final report.

    State machine:
        NOT_STARTED -> INITIALIZING -> AWAITING_ANSWER -> SUBMITTING
        -> (AWAITING_ANSWER | COMPLETING) -> POLLING -> DONE
    with FAILED as the terminal state for fatal errors.

    Manual submit and countdown expiry both go through _claim_submission(),
    which moves AWAITING_ANSWER to SUBMITTING for the current cycle only.
    Whichever trigger loses the race is a no-op. Every question cycle gets a
    new number so timers and sampler loops of an earlier cycle cannot act on
    the current one.

    All exit paths (done, fatal error, cancellation) release the media stream
    and stop recognition, sampling and the countdown.
    """

    def __init__(self,
                 api: Any,
                 detector: ExpressionDetector,
                 config: Optional[Config] = None,
                 media_factory: Callable[[Config], Any] = MediaStream.open,
                 transcriber_factory: Optional[TranscriberFactory] = None,
                 event_bus: Optional[InterviewEventBus] = None):
        self.config = config or Config()
        self.api = api
        self.detector = detector
        self.sampler = FacialMetricSampler(
            detector,
            interval=self.config.face_sample_interval,
            precision=self.config.face_metric_precision
        )
        self._media_factory = media_factory
        self._transcriber_factory = transcriber_factory or self._default_transcriber

        # Initialize event system
        self.event_bus = event_bus or InterviewEventBus()
        self.event_logger = EventLogger()
        self.metrics = SessionMetrics()
        self.event_bus.subscribe_all(self.event_logger.handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)

        self.state = SessionState.NOT_STARTED
        self.session: Optional[Session] = None
        self.media: Optional[Any] = None
        self.transcriber: Optional[SpeechTranscriber] = None
        self.time_left = 0

        self._cycle = 0
        self._cycle_started_at = 0.0
        self._claimed_at = 0.0
        self._submit_trigger: Optional[str] = None
        self._submit_requested: Optional[asyncio.Event] = None
        self._countdown_task: Optional[asyncio.Task] = None
        self._sampler_start_task: Optional[asyncio.Task] = None
        self._run_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def session_id(self) -> str:
        return self.session.session_id if self.session else "unknown"

    @property
    def current_question(self) -> Optional[Question]:
        return self.session.current_question if self.session else None

    async def run(self) -> SessionOutcome:
        """
        Run the complete session. Call once, after the user consented to
        camera and microphone use.

        Returns:
            SessionOutcome; state is DONE (report may still be unavailable)
            or FAILED with the fatal error message

        Raises:
            InvalidStateError: If the session was already started
        """
        if self.state is not SessionState.NOT_STARTED:
            raise InvalidStateError(f"Session already started (state: {self.state.value})")
        self._run_task = asyncio.current_task()
        self._set_state(SessionState.INITIALIZING)

        try:
            question = await self._initialize()

            while question is not None:
                await self._run_cycle(question)
                if self._question_cap_reached():
                    logger.info(f"Reached {self.config.max_questions} questions; completing session")
                    break
                question = await self._call(self.api.next_question, self.session.session_id)

            await self._complete()
            report = await self._poll_final_report()
            self._set_state(SessionState.DONE)
            return self._outcome(report=report)

        except asyncio.CancelledError:
            logger.info("Session abandoned")
            raise

        except Exception as e:
            component = "initialization" if self.session is None else "session"
            self.event_bus.emit(ErrorOccurredEvent(
                self.session_id, time.time(), type(e).__name__, str(e), component, fatal=True
            ))
            logger.error("Interview session failed: %s", e)
            self._set_state(SessionState.FAILED)
            return self._outcome(error=str(e))

        finally:
            self._teardown()

    def submit_answer(self) -> bool:
        """
        Manual submit for the current question.

        Returns:
            True if this call started the submission, False if a submission
            was already in flight or no question is awaiting an answer
        """
        return self._claim_submission(self._cycle, "manual")

    def cancel(self) -> None:
        """Abandon the session (user navigated away). Resources are released by run()."""
        if self._run_task is not None and not self._run_task.done():
            self._run_task.cancel()

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    async def _initialize(self) -> Optional[Question]:
        """Load the face model, acquire media, create the session, fetch the first question."""
        await asyncio.to_thread(self.detector.load)
        self.media = await asyncio.to_thread(self._media_factory, self.config)
        self.transcriber = self._create_transcriber()

        session_id = await self._call(self.api.create_session)
        self.session = Session(session_id=session_id)
        self.event_bus.emit(SessionStartedEvent(session_id, time.time(), self.config.question_time_seconds))

        return await self._call(self.api.next_question, session_id)

    def _default_transcriber(self, media: Any, on_update: Callable[[str, str], None]) -> SpeechTranscriber:
        return SpeechTranscriber.create_default(
            media.audio_chunks,
            language_code=self.config.language_code,
            sample_rate=self.config.sr_target,
            on_update=on_update
        )

    def _create_transcriber(self) -> Optional[SpeechTranscriber]:
        try:
            return self._transcriber_factory(self.media, self._on_transcript_update)
        except SpeechEngineUnavailable as e:
            logger.warning(f"Continuing without speech recognition: {e}")
            self.event_bus.emit(ErrorOccurredEvent(
                self.session_id, time.time(), type(e).__name__, str(e), "speech"
            ))
            return None

    # ------------------------------------------------------------------
    # Question cycle
    # ------------------------------------------------------------------

    async def _run_cycle(self, question: Question) -> None:
        """Present one question and return once its answer has been handled."""
        self._stop_capture_activities()
        self._cycle += 1
        cycle = self._cycle

        self.sampler.reset()
        if self.transcriber is not None:
            self.transcriber.clear()

        self.session.current_question = question
        self.time_left = question.duration_seconds
        self._submit_trigger = None
        self._submit_requested = asyncio.Event()
        self._cycle_started_at = asyncio.get_running_loop().time()
        self._set_state(SessionState.AWAITING_ANSWER)

        index = len(self.session.answers) + 1
        logger.info(f"Question {index}: {question.text}")
        self.event_bus.emit(QuestionIssuedEvent(
            self.session_id, time.time(), question.question_id, question.text, index
        ))

        self._countdown_task = asyncio.create_task(self._countdown(cycle, question))
        if self.transcriber is not None:
            self.transcriber.start()
        self._sampler_start_task = asyncio.create_task(self._start_sampler_when_ready(cycle))

        await self._submit_requested.wait()
        await self._submit(question)

    async def _countdown(self, cycle: int, question: Question) -> None:
        tick = self.config.countdown_tick_seconds
        while self.time_left > 0:
            await asyncio.sleep(tick)
            if cycle != self._cycle or self.state is not SessionState.AWAITING_ANSWER:
                return
            self.time_left -= 1
            self.event_bus.emit(CountdownTickEvent(
                self.session_id, time.time(), question.question_id, self.time_left
            ))
        self._claim_submission(cycle, "timeout")

    async def _start_sampler_when_ready(self, cycle: int) -> None:
        await self.media.wait_until_ready(self.config.video_ready_timeout)
        await asyncio.sleep(self.config.sampler_start_delay)
        if cycle == self._cycle and self.state is SessionState.AWAITING_ANSWER:
            self.sampler.start(self.media)

    def _claim_submission(self, cycle: int, trigger: str) -> bool:
        """Move AWAITING_ANSWER -> SUBMITTING for this cycle. Anything else is a no-op."""
        if cycle != self._cycle or self.state is not SessionState.AWAITING_ANSWER:
            logger.debug(f"Ignored {trigger} submit (state: {self.state.value}, cycle {cycle}/{self._cycle})")
            return False
        self._set_state(SessionState.SUBMITTING)
        self._submit_trigger = trigger
        self._claimed_at = asyncio.get_running_loop().time()
        self._submit_requested.set()
        return True

    async def _submit(self, question: Question) -> None:
        """Stop capture, build the answer and send it. Delivery failure does not stop the session."""
        self._stop_capture_activities()
        snapshot = self.sampler.snapshot()

        # let the last recognition events land before reading the transcript
        await asyncio.sleep(self.config.submit_settle_delay)
        transcript = ""
        if self.transcriber is not None:
            await self.transcriber.drain()
            transcript = self.transcriber.transcript

        elapsed = round(self._claimed_at - self._cycle_started_at, 2)
        answer = Answer(
            question_id=question.question_id,
            transcript=transcript.strip() or self.config.no_answer_sentinel,
            duration_seconds=min(float(question.duration_seconds), max(0.0, elapsed)),
            behavior_metrics=snapshot
        )

        try:
            await self._call(self.api.submit_answer, self.session.session_id, answer)
            logger.info(f"Answer submitted for question {question.question_id} ({self._submit_trigger})")
            self.event_bus.emit(AnswerSubmittedEvent(
                self.session_id, time.time(), question.question_id, answer.transcript, self._submit_trigger or ""
            ))
        except Exception as e:
            # any delivery failure is absorbed; the interview moves on
            logger.warning(f"Submission failed: {e}")
            self.event_bus.emit(SubmissionFailedEvent(self.session_id, time.time(), question.question_id, str(e)))
            self.event_bus.emit(ErrorOccurredEvent(
                self.session_id, time.time(), type(e).__name__, str(e), "submission"
            ))

        self.session.answers.append(answer)

    def _question_cap_reached(self) -> bool:
        cap = self.config.max_questions
        return cap is not None and len(self.session.answers) >= cap

    # ------------------------------------------------------------------
    # Completion and report
    # ------------------------------------------------------------------

    async def _complete(self) -> None:
        self._set_state(SessionState.COMPLETING)
        self._stop_capture_activities()
        self._release_media()
        self.session.current_question = None
        self.session.completed = True
        self.time_left = 0
        self.event_bus.emit(SessionCompletedEvent(self.session_id, time.time(), len(self.session.answers)))
        self._set_state(SessionState.POLLING)

    async def _poll_final_report(self) -> Optional[FinalReport]:
        """Fetch the session until finalReport has a numeric overallScore or tries run out."""
        max_tries = self.config.report_poll_max_tries
        for attempt in range(1, max_tries + 1):
            try:
                data = await self._call(self.api.get_session, self.session.session_id)
            except ApiError as e:
                logger.warning(f"Report poll {attempt}/{max_tries} failed: {e}")
                data = {}

            report = FinalReport.from_payload(data.get("finalReport"))
            if report is not None:
                self.session.final_report = report
                logger.info(f"Final report ready after {attempt} attempt(s): {report.overall_score}")
                self.event_bus.emit(ReportReadyEvent(self.session_id, time.time(), report.overall_score, attempt))
                return report

            if attempt < max_tries:
                await asyncio.sleep(self.config.report_poll_interval)

        logger.warning(f"Final report unavailable after {max_tries} attempts")
        self.event_bus.emit(ReportUnavailableEvent(self.session_id, time.time(), max_tries))
        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _call(self, fn: Callable, *args):
        """Run a blocking backend call off the event loop."""
        return await asyncio.to_thread(fn, *args)

    def _set_state(self, state: SessionState) -> None:
        logger.debug(f"State {self.state.value} -> {state.value}")
        self.state = state

    def _on_transcript_update(self, transcript: str, interim: str) -> None:
        self.event_bus.emit(TranscriptUpdatedEvent(self.session_id, time.time(), transcript, interim))

    def _stop_capture_activities(self) -> None:
        for task in (self._countdown_task, self._sampler_start_task):
            if task is not None and not task.done():
                task.cancel()
        self._countdown_task = None
        self._sampler_start_task = None
        self.sampler.stop()
        if self.transcriber is not None and self.transcriber.listening:
            self.transcriber.stop()

    def _release_media(self) -> None:
        if self.media is not None:
            try:
                self.media.release()
            except Exception as e:
                logger.warning(f"Error releasing media: {e}")
            self.media = None

    def _teardown(self) -> None:
        self._stop_capture_activities()
        if self.transcriber is not None:
            self.transcriber.abort()
        self._release_media()

    def _outcome(self, report: Optional[FinalReport] = None, error: Optional[str] = None) -> SessionOutcome:
        return SessionOutcome(
            state=self.state,
            session_id=self.session.session_id if self.session else None,
            answers=list(self.session.answers) if self.session else [],
            report=report,
            error=error
        )
