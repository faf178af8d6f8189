"""Speech-to-text for spoken answers."""

from .stt import (
    SpeechEngine, GoogleStreamingEngine, SpeechTranscriber,
    RecognitionEvent, RecognitionResult, is_speech_recognition_supported
)

__all__ = [
    "SpeechEngine", "GoogleStreamingEngine", "SpeechTranscriber",
    "RecognitionEvent", "RecognitionResult", "is_speech_recognition_supported"
]
