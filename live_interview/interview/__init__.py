"""Interview session components.

This module contains the business logic for running a timed live interview:
the session controller, its data models, the event system and the
plain-text report rendering.
"""

# Data models
from .models import (
    SessionState, Question, FacialMetricSnapshot, Answer,
    FinalReport, Session, SessionOutcome
)

# Event system
from .events import (
    InterviewEventBus, EventLogger, SessionMetrics,
    EventType, InterviewEvent, SessionStartedEvent,
    QuestionIssuedEvent, CountdownTickEvent, TranscriptUpdatedEvent,
    AnswerSubmittedEvent, SubmissionFailedEvent, SessionCompletedEvent,
    ReportReadyEvent, ReportUnavailableEvent, ErrorOccurredEvent
)

# Session controller
from .controller import InterviewSessionController

# Report rendering
from .report import format_time_left, render_report

__all__ = [
    # Data models
    "SessionState", "Question", "FacialMetricSnapshot", "Answer",
    "FinalReport", "Session", "SessionOutcome",

    # Events
    "InterviewEventBus", "EventLogger", "SessionMetrics",
    "EventType", "InterviewEvent", "SessionStartedEvent",
    "QuestionIssuedEvent", "CountdownTickEvent", "TranscriptUpdatedEvent",
    "AnswerSubmittedEvent", "SubmissionFailedEvent", "SessionCompletedEvent",
    "ReportReadyEvent", "ReportUnavailableEvent", "ErrorOccurredEvent",

    # Controller
    "InterviewSessionController",

    # Report
    "format_time_left", "render_report"
]
