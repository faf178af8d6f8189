"""
Event-driven notifications for the live interview session.
"""
import logging
from abc import ABC
from typing import Dict, Any, List, Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of session events."""
    SESSION_STARTED = "session_started"
    QUESTION_ISSUED = "question_issued"
    COUNTDOWN_TICK = "countdown_tick"
    TRANSCRIPT_UPDATED = "transcript_updated"
    ANSWER_SUBMITTED = "answer_submitted"
    SUBMISSION_FAILED = "submission_failed"
    SESSION_COMPLETED = "session_completed"
    REPORT_READY = "report_ready"
    REPORT_UNAVAILABLE = "report_unavailable"
    ERROR_OCCURRED = "error_occurred"


@dataclass
class InterviewEvent(ABC):
    """Base class for all session events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class SessionStartedEvent(InterviewEvent):
    """Event fired once the backend session exists."""
    def __init__(self, session_id: str, timestamp: float, question_time_seconds: int):
        super().__init__(
            event_type=EventType.SESSION_STARTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"question_time_seconds": question_time_seconds}
        )


@dataclass
class QuestionIssuedEvent(InterviewEvent):
    """Event fired when a new question is displayed."""
    def __init__(self, session_id: str, timestamp: float, question_id: str,
                 question: str, index: int):
        super().__init__(
            event_type=EventType.QUESTION_ISSUED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "question_id": question_id,
                "question": question,
                "index": index
            }
        )


@dataclass
class CountdownTickEvent(InterviewEvent):
    """Event fired every countdown tick with the remaining seconds."""
    def __init__(self, session_id: str, timestamp: float, question_id: str, time_left: int):
        super().__init__(
            event_type=EventType.COUNTDOWN_TICK,
            session_id=session_id,
            timestamp=timestamp,
            data={"question_id": question_id, "time_left": time_left}
        )


@dataclass
class TranscriptUpdatedEvent(InterviewEvent):
    """Event fired when finalized or interim transcript text changes."""
    def __init__(self, session_id: str, timestamp: float, transcript: str, interim: str):
        super().__init__(
            event_type=EventType.TRANSCRIPT_UPDATED,
            session_id=session_id,
            timestamp=timestamp,
            data={"transcript": transcript, "interim": interim}
        )


@dataclass
class AnswerSubmittedEvent(InterviewEvent):
    """Event fired when the backend acknowledged an answer."""
    def __init__(self, session_id: str, timestamp: float, question_id: str,
                 transcript: str, trigger: str):
        super().__init__(
            event_type=EventType.ANSWER_SUBMITTED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "question_id": question_id,
                "transcript": transcript,
                "trigger": trigger
            }
        )


@dataclass
class SubmissionFailedEvent(InterviewEvent):
    """Event fired when an answer could not be delivered. The session continues."""
    def __init__(self, session_id: str, timestamp: float, question_id: str, error_message: str):
        super().__init__(
            event_type=EventType.SUBMISSION_FAILED,
            session_id=session_id,
            timestamp=timestamp,
            data={"question_id": question_id, "error_message": error_message}
        )


@dataclass
class SessionCompletedEvent(InterviewEvent):
    """Event fired when the backend reports no more questions."""
    def __init__(self, session_id: str, timestamp: float, answer_count: int):
        super().__init__(
            event_type=EventType.SESSION_COMPLETED,
            session_id=session_id,
            timestamp=timestamp,
            data={"answer_count": answer_count}
        )


@dataclass
class ReportReadyEvent(InterviewEvent):
    """Event fired when the final report is available."""
    def __init__(self, session_id: str, timestamp: float, overall_score: float, attempts: int):
        super().__init__(
            event_type=EventType.REPORT_READY,
            session_id=session_id,
            timestamp=timestamp,
            data={"overall_score": overall_score, "attempts": attempts}
        )


@dataclass
class ReportUnavailableEvent(InterviewEvent):
    """Event fired when polling gave up without a report."""
    def __init__(self, session_id: str, timestamp: float, attempts: int):
        super().__init__(
            event_type=EventType.REPORT_UNAVAILABLE,
            session_id=session_id,
            timestamp=timestamp,
            data={"attempts": attempts}
        )


@dataclass
class ErrorOccurredEvent(InterviewEvent):
    """Event fired when an error occurs, fatal or absorbed."""
    def __init__(self, session_id: str, timestamp: float, error_type: str,
                 error_message: str, component: str, fatal: bool = False):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message,
                "component": component,
                "fatal": fatal
            }
        )


EventHandler = Callable[[InterviewEvent], None]


class InterviewEventBus:
    """Event bus for session communication."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from specific event type."""
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type}")
            except ValueError:
                logger.warning(f"Handler not found for {event_type}")

    def emit(self, event: InterviewEvent) -> None:
        """
        Emit an event to all subscribers.

        Handler errors are logged and never reach the emitter.
        """
        logger.debug(f"Emitting event: {event.event_type} for session {event.session_id}")

        for handler in self._handlers.get(event.event_type, []):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

        for handler in self._global_handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")

    def clear_handlers(self) -> None:
        """Clear all event handlers."""
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: InterviewEvent) -> None:
        """Log event details. Countdown ticks go to DEBUG to keep the log readable."""
        level = logging.DEBUG if event.event_type == EventType.COUNTDOWN_TICK else logging.INFO
        self.logger.log(level, f"Event: {event.event_type} | Session: {event.session_id} | Data: {event.data}")


class SessionMetrics:
    """Collects counters from session events."""

    def __init__(self):
        self.reset()

    def handle_event(self, event: InterviewEvent) -> None:
        """Update metrics based on event."""
        if event.event_type == EventType.SESSION_STARTED:
            self.sessions_started += 1
        elif event.event_type == EventType.QUESTION_ISSUED:
            self.questions_issued += 1
        elif event.event_type == EventType.ANSWER_SUBMITTED:
            self.answers_submitted += 1
        elif event.event_type == EventType.SUBMISSION_FAILED:
            self.submissions_failed += 1
        elif event.event_type == EventType.REPORT_READY:
            self.reports_ready += 1
        elif event.event_type == EventType.REPORT_UNAVAILABLE:
            self.reports_unavailable += 1
        elif event.event_type == EventType.ERROR_OCCURRED:
            self.errors_occurred += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return {
            "sessions_started": self.sessions_started,
            "questions_issued": self.questions_issued,
            "answers_submitted": self.answers_submitted,
            "submissions_failed": self.submissions_failed,
            "reports_ready": self.reports_ready,
            "reports_unavailable": self.reports_unavailable,
            "errors_occurred": self.errors_occurred
        }

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self.sessions_started = 0
        self.questions_issued = 0
        self.answers_submitted = 0
        self.submissions_failed = 0
        self.reports_ready = 0
        self.reports_unavailable = 0
        self.errors_occurred = 0
