"""Infrastructure components for the live interview client.

This module contains the low-level pieces the session controller drives:
camera/microphone capture, speech recognition, facial expression sampling
and the backend REST client.
"""

# Media capture
from .media import MediaStream

# Speech recognition
from .speech import SpeechTranscriber, GoogleStreamingEngine

# Facial analysis
from .face import FacialMetricSampler, DeepFaceExpressionDetector

# Backend
from .api import InterviewApiClient

__all__ = [
    "MediaStream",
    "SpeechTranscriber", "GoogleStreamingEngine",
    "FacialMetricSampler", "DeepFaceExpressionDetector",
    "InterviewApiClient"
]
