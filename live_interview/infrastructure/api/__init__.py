"""REST client for the interview backend."""

from .client import InterviewApiClient, extract_data

__all__ = ["InterviewApiClient", "extract_data"]
