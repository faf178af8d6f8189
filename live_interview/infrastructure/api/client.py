"""
REST client for the interview backend.
"""
import logging
from typing import Optional, Dict, Any

import requests

from ...config import API_BASE_URL, API_TIMEOUT, QUESTION_TIME_SECONDS
from ...errors import ApiError
from ...interview.models import Answer, Question

logger = logging.getLogger("api_client")


def extract_data(body: Any) -> Any:
    """Unwrap the {success, data} envelope; bodies without one pass through."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


class InterviewApiClient:
    """Blocking client for the live interview session endpoints."""

    def __init__(self,
                 base_url: str = API_BASE_URL,
                 token: Optional[str] = None,
                 timeout: float = API_TIMEOUT,
                 question_time_seconds: int = QUESTION_TIME_SECONDS,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.question_time_seconds = question_time_seconds
        self._http = session or requests.Session()
        self._http.headers.update({"Content-Type": "application/json"})
        if token:
            self._http.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")
        try:
            resp = self._http.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise ApiError(f"{method} {path} failed: {e}") from e

        if resp.status_code >= 400:
            message = resp.text
            try:
                body = resp.json()
                if isinstance(body, dict):
                    message = body.get("message") or body.get("error") or message
            except ValueError:
                pass
            raise ApiError(f"{method} {path} returned {resp.status_code}: {message}", resp.status_code)

        try:
            body = resp.json()
        except ValueError as e:
            raise ApiError(f"{method} {path} returned invalid JSON: {resp.text[:200]}") from e
        return body if isinstance(body, dict) else {"data": body}

    def create_session(self) -> str:
        """Create a session and return its identifier."""
        session = extract_data(self._request("POST", "/interview/sessions"))
        session_id = session.get("sessionId") if isinstance(session, dict) else None
        if not session_id:
            raise ApiError("Session creation response carried no sessionId")
        logger.info(f"Created interview session {session_id}")
        return str(session_id)

    def next_question(self, session_id: str) -> Optional[Question]:
        """
        Ask for the next question.

        Returns:
            The question, or None when the backend reports the session completed
            (or answers without a questionId)
        """
        body = self._request("POST", f"/interview/sessions/{session_id}/questions")
        if body.get("completed") is True:
            return None

        data = extract_data(body)
        if not isinstance(data, dict) or not data.get("questionId"):
            logger.info("Question response without questionId; treating session as completed")
            return None

        return Question(
            question_id=str(data["questionId"]),
            text=str(data.get("question") or ""),
            duration_seconds=self.question_time_seconds,
            category=data.get("category"),
            difficulty=data.get("difficulty"),
        )

    def submit_answer(self, session_id: str, answer: Answer) -> Dict[str, Any]:
        """Post one answer with its behavior metrics."""
        return self._request("POST", f"/interview/sessions/{session_id}/answers", answer.to_payload())

    def get_session(self, session_id: str) -> Dict[str, Any]:
        """Fetch the session document, including finalReport once computed."""
        session = extract_data(self._request("GET", f"/interview/sessions/{session_id}"))
        return session if isinstance(session, dict) else {}

    def close(self) -> None:
        self._http.close()
