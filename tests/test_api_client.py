import unittest
from unittest.mock import MagicMock

import requests

from live_interview.errors import ApiError
from live_interview.infrastructure.api import InterviewApiClient, extract_data
from live_interview.interview.models import Answer, FacialMetricSnapshot


def fake_response(status_code=200, body=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    if isinstance(body, Exception):
        resp.json.side_effect = body
    else:
        resp.json.return_value = body
    return resp


class TestInterviewApiClient(unittest.TestCase):

    def setUp(self):
        self.http = requests.Session()
        self.http.request = MagicMock()
        self.client = InterviewApiClient(
            base_url="http://backend.test/api/", token="secret", timeout=5,
            question_time_seconds=10, session=self.http
        )

    def respond(self, *args, **kwargs):
        self.http.request.return_value = fake_response(*args, **kwargs)

    def test_token_is_sent_as_bearer(self):
        self.assertEqual(self.http.headers["Authorization"], "Bearer secret")

    def test_create_session_unwraps_envelope(self):
        self.respond(body={"success": True, "data": {"sessionId": "s-42"}})

        self.assertEqual(self.client.create_session(), "s-42")
        self.http.request.assert_called_once_with(
            "POST", "http://backend.test/api/interview/sessions", json=None, timeout=5
        )

    def test_create_session_without_id_fails(self):
        self.respond(body={"success": True, "data": {}})
        with self.assertRaises(ApiError):
            self.client.create_session()

    def test_next_question_parses_question(self):
        self.respond(body={"success": True, "data": {
            "questionId": "q7", "question": "Tell me about a failure.", "category": "behavioral"
        }})

        question = self.client.next_question("s-42")

        self.assertEqual(question.question_id, "q7")
        self.assertEqual(question.text, "Tell me about a failure.")
        self.assertEqual(question.duration_seconds, 10)
        self.assertEqual(question.category, "behavioral")
        self.assertEqual(self.http.request.call_args[0][1],
                         "http://backend.test/api/interview/sessions/s-42/questions")

    def test_next_question_completed(self):
        self.respond(body={"success": True, "completed": True, "data": None})
        self.assertIsNone(self.client.next_question("s-42"))

    def test_next_question_without_id_means_completed(self):
        self.respond(body={"success": True, "data": {"question": "orphan"}})
        self.assertIsNone(self.client.next_question("s-42"))

    def test_submit_answer_posts_payload(self):
        self.respond(body={"success": True})
        answer = Answer("q7", "I shipped late once.", 8.5, FacialMetricSnapshot(eye_contact=0.9, face_frames=3))

        self.client.submit_answer("s-42", answer)

        method, url = self.http.request.call_args[0]
        payload = self.http.request.call_args[1]["json"]
        self.assertEqual((method, url), ("POST", "http://backend.test/api/interview/sessions/s-42/answers"))
        self.assertEqual(payload["questionId"], "q7")
        self.assertEqual(payload["transcript"], "I shipped late once.")
        self.assertEqual(payload["durationSeconds"], 8.5)
        self.assertEqual(payload["behaviorMetrics"]["eyeContact"], 0.9)
        self.assertEqual(payload["behaviorMetrics"]["faceFrames"], 3)

    def test_get_session_returns_document(self):
        self.respond(body={"success": True, "data": {"finalReport": {"overallScore": 80}}})
        self.assertEqual(self.client.get_session("s-42")["finalReport"]["overallScore"], 80)

    def test_error_status_raises_with_message(self):
        self.respond(status_code=500, body={"message": "database down"})

        with self.assertRaises(ApiError) as ctx:
            self.client.get_session("s-42")

        self.assertEqual(ctx.exception.status_code, 500)
        self.assertIn("database down", str(ctx.exception))

    def test_transport_error_raises(self):
        self.http.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(ApiError) as ctx:
            self.client.create_session()
        self.assertIsNone(ctx.exception.status_code)

    def test_invalid_json_raises(self):
        self.respond(body=ValueError("no json"), text="<html>")
        with self.assertRaises(ApiError):
            self.client.get_session("s-42")


class TestExtractData(unittest.TestCase):

    def test_envelope_and_plain_bodies(self):
        self.assertEqual(extract_data({"success": True, "data": {"a": 1}}), {"a": 1})
        self.assertEqual(extract_data({"a": 1}), {"a": 1})
        self.assertEqual(extract_data([1, 2]), [1, 2])


if __name__ == '__main__':
    unittest.main()
