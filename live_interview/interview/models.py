"""
Data models for the live interview session.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, List, Any


class SessionState(str, Enum):
    """States of the live interview session."""
    NOT_STARTED = "not_started"
    INITIALIZING = "initializing"
    AWAITING_ANSWER = "awaiting_answer"
    SUBMITTING = "submitting"
    COMPLETING = "completing"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.DONE, SessionState.FAILED)


@dataclass(frozen=True)
class Question:
    """A question issued by the backend. Immutable once issued."""
    question_id: str
    text: str
    duration_seconds: int
    category: Optional[str] = None
    difficulty: Optional[str] = None


@dataclass(frozen=True)
class FacialMetricSnapshot:
    """Averaged expression metrics over the face-detected frames of one question."""
    confidence: float = 0.0
    eye_contact: float = 0.0
    smile: float = 0.0
    neutral: float = 0.0
    nervous: float = 0.0
    happy: float = 0.0
    sad: float = 0.0
    angry: float = 0.0
    surprised: float = 0.0
    total_frames: int = 0
    face_frames: int = 0

    METRICS = ("confidence", "eye_contact", "smile", "neutral", "nervous",
               "happy", "sad", "angry", "surprised")

    @classmethod
    def empty(cls, total_frames: int = 0) -> 'FacialMetricSnapshot':
        return cls(total_frames=total_frames)

    def averages(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in self.METRICS}

    def to_payload(self) -> Dict[str, Any]:
        """Wire format expected by the backend (camelCase keys)."""
        return {
            "confidence": self.confidence,
            "eyeContact": self.eye_contact,
            "smile": self.smile,
            "neutral": self.neutral,
            "nervous": self.nervous,
            "happy": self.happy,
            "sad": self.sad,
            "angry": self.angry,
            "surprised": self.surprised,
            "totalFrames": self.total_frames,
            "faceFrames": self.face_frames,
        }


@dataclass(frozen=True)
class Answer:
    """One submitted answer. Built once at submission time and sent once."""
    question_id: str
    transcript: str
    duration_seconds: float
    behavior_metrics: FacialMetricSnapshot

    def to_payload(self) -> Dict[str, Any]:
        return {
            "questionId": self.question_id,
            "transcript": self.transcript,
            "answerText": self.transcript,
            "durationSeconds": self.duration_seconds,
            "behaviorMetrics": self.behavior_metrics.to_payload(),
        }


def _is_number(value: Any) -> bool:
    return (isinstance(value, (int, float)) and not isinstance(value, bool)
            and math.isfinite(value))


@dataclass
class FinalReport:
    """Backend-produced aggregate report. Only overall_score is interpreted."""
    overall_score: float
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    communication_rating: Optional[float] = None
    confidence_rating: Optional[float] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> Optional['FinalReport']:
        """Parse a finalReport dict. Returns None until it carries a numeric overallScore."""
        if not isinstance(payload, dict) or not _is_number(payload.get("overallScore")):
            return None

        def _as_list(key: str) -> List[str]:
            value = payload.get(key) or []
            return [str(item) for item in value] if isinstance(value, list) else [str(value)]

        def _as_rating(key: str) -> Optional[float]:
            value = payload.get(key)
            return float(value) if _is_number(value) else None

        return cls(
            overall_score=float(payload["overallScore"]),
            strengths=_as_list("strengths"),
            weaknesses=_as_list("weaknesses"),
            suggestions=_as_list("suggestions"),
            communication_rating=_as_rating("communicationRating"),
            confidence_rating=_as_rating("confidenceRating"),
            raw=dict(payload),
        )


@dataclass
class Session:
    """One complete interview attempt, owned by the controller."""
    session_id: str
    answers: List[Answer] = field(default_factory=list)
    current_question: Optional[Question] = None
    completed: bool = False
    final_report: Optional[FinalReport] = None


@dataclass
class SessionOutcome:
    """What the controller hands back when the session ends."""
    state: SessionState
    session_id: Optional[str] = None
    answers: List[Answer] = field(default_factory=list)
    report: Optional[FinalReport] = None
    error: Optional[str] = None

    @property
    def report_available(self) -> bool:
        return self.report is not None
