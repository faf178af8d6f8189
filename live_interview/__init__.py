"""
Live Interview: timed, camera-and-microphone mock interview client.

Runs a question/answer session against the interview backend, transcribing
spoken answers and sampling facial expressions while the candidate answers,
then waits for the backend's final evaluation report.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.models import SessionState, SessionOutcome
from .interview.controller import InterviewSessionController

__all__ = ["InterviewSessionController", "SessionState", "SessionOutcome"]
