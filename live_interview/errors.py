"""
Exception hierarchy for the live interview client.

Fatal errors (media, face model, session creation) stop the session and are
surfaced to the user. Degraded errors are logged and absorbed by the
controller so one failure never stalls the interview.
"""
from typing import Optional


class LiveInterviewError(Exception):
    """Base class for all live interview errors."""


class MediaAcquisitionError(LiveInterviewError):
    """Camera or microphone could not be acquired. Requires user action."""


class FaceModelError(LiveInterviewError):
    """The facial expression model could not be loaded."""


class SpeechEngineUnavailable(LiveInterviewError):
    """No speech recognition engine is available in this environment."""


class InvalidStateError(LiveInterviewError):
    """A session operation was called from a state that does not allow it."""


class ApiError(LiveInterviewError):
    """Backend request failed at the transport level or with an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
