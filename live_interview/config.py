"""
Live Interview Configuration
============================

This file contains ALL configuration for the live interview client.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass
from typing import Optional


# =============================================================================
# USER SETTINGS - Edit these to customize the interview session
# =============================================================================

# Backend API
API_BASE_URL = "http://localhost:5000/api"
API_TOKEN = None  # Optional: bearer token for authenticated users

# Interview settings
QUESTION_TIME_SECONDS = 10
MAX_QUESTIONS = None  # None lets the backend decide when the session ends

# Speech settings
LANGUAGE_CODE = "en-US"

# Camera
CAMERA_INDEX = 0
CAMERA_WIDTH = 640
CAMERA_HEIGHT = 480

# Logging
LOG_FILE = "./_interview/interview.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# HTTP
API_TIMEOUT = 30

# Session timing
REPORT_POLL_INTERVAL = 2.0
REPORT_POLL_MAX_TRIES = 15
SUBMIT_SETTLE_DELAY = 0.8
SAMPLER_START_DELAY = 0.5
COUNTDOWN_TICK_SECONDS = 1.0
VIDEO_READY_TIMEOUT = 10.0
VIDEO_READY_POLL = 0.2
NO_ANSWER_SENTINEL = "[NO ANSWER]"

# Facial analysis
FACE_SAMPLE_INTERVAL = 0.15
FACE_METRIC_PRECISION = 3
FACE_DETECTOR_BACKEND = "opencv"
EYE_CONTACT_NEUTRAL_THRESHOLD = 0.6
EYE_CONTACT_HAPPY_THRESHOLD = 0.4
CONFIDENCE_HAPPY_WEIGHT = 0.6
CONFIDENCE_NEUTRAL_WEIGHT = 0.4

# Microphone
MIC_DEVICE = None  # None uses the system default input
SAMPLE_RATE_CAPTURE = 48000
SAMPLE_RATE_TARGET = 16000
CHANNELS = 1
FRAME_MS = 100


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    api_base_url: str = API_BASE_URL
    api_token: Optional[str] = API_TOKEN
    api_timeout: float = API_TIMEOUT
    question_time_seconds: int = QUESTION_TIME_SECONDS
    max_questions: Optional[int] = MAX_QUESTIONS
    report_poll_interval: float = REPORT_POLL_INTERVAL
    report_poll_max_tries: int = REPORT_POLL_MAX_TRIES
    submit_settle_delay: float = SUBMIT_SETTLE_DELAY
    sampler_start_delay: float = SAMPLER_START_DELAY
    countdown_tick_seconds: float = COUNTDOWN_TICK_SECONDS
    video_ready_timeout: float = VIDEO_READY_TIMEOUT
    face_sample_interval: float = FACE_SAMPLE_INTERVAL
    face_metric_precision: int = FACE_METRIC_PRECISION
    no_answer_sentinel: str = NO_ANSWER_SENTINEL
    language_code: str = LANGUAGE_CODE
    camera_index: int = CAMERA_INDEX
    camera_width: int = CAMERA_WIDTH
    camera_height: int = CAMERA_HEIGHT
    mic_device: Optional[int] = MIC_DEVICE
    sr_capture: int = SAMPLE_RATE_CAPTURE
    sr_target: int = SAMPLE_RATE_TARGET
    channels: int = CHANNELS
    frame_ms: int = FRAME_MS
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL


def _int_env(name: str, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def get_config() -> Config:
    """Load configuration, letting environment variables override the defaults above."""
    question_time = _int_env("INTERVIEW_QUESTION_SECONDS", QUESTION_TIME_SECONDS)
    if question_time <= 0:
        raise ValueError("INTERVIEW_QUESTION_SECONDS must be positive")

    return Config(
        api_base_url=os.getenv("INTERVIEW_API_URL") or API_BASE_URL,
        api_token=os.getenv("INTERVIEW_API_TOKEN") or API_TOKEN,
        question_time_seconds=question_time,
        language_code=os.getenv("INTERVIEW_LANGUAGE") or LANGUAGE_CODE,
        camera_index=_int_env("INTERVIEW_CAMERA", CAMERA_INDEX),
        log_file=os.getenv("INTERVIEW_LOG_FILE") or LOG_FILE,
        log_level=os.getenv("INTERVIEW_LOG_LEVEL") or LOG_LEVEL,
    )
