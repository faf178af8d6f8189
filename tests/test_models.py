import unittest

from live_interview.interview.models import (
    Answer, FacialMetricSnapshot, FinalReport, SessionOutcome, SessionState
)
from live_interview.interview.report import format_time_left, render_report


class TestFinalReport(unittest.TestCase):

    def test_requires_numeric_overall_score(self):
        for payload in (None, {}, {"overallScore": None}, {"overallScore": "80"},
                        {"overallScore": True}, {"overallScore": float("nan")}, "80"):
            self.assertIsNone(FinalReport.from_payload(payload), payload)

    def test_parses_full_report(self):
        report = FinalReport.from_payload({
            "overallScore": 81,
            "strengths": ["Structured answers"],
            "weaknesses": "Rushed ending",
            "communicationRating": 8,
            "confidenceRating": "high",
        })
        self.assertEqual(report.overall_score, 81.0)
        self.assertEqual(report.strengths, ["Structured answers"])
        self.assertEqual(report.weaknesses, ["Rushed ending"])
        self.assertEqual(report.suggestions, [])
        self.assertEqual(report.communication_rating, 8.0)
        self.assertIsNone(report.confidence_rating)

    def test_zero_score_is_still_a_report(self):
        self.assertEqual(FinalReport.from_payload({"overallScore": 0}).overall_score, 0.0)


class TestPayloads(unittest.TestCase):

    def test_empty_snapshot_is_all_zero(self):
        snapshot = FacialMetricSnapshot.empty(total_frames=7)
        self.assertEqual(snapshot.total_frames, 7)
        self.assertEqual(snapshot.face_frames, 0)
        self.assertEqual(set(snapshot.averages().values()), {0.0})

    def test_answer_payload_keys(self):
        answer = Answer("q1", "[NO ANSWER]", 10.0, FacialMetricSnapshot.empty())
        payload = answer.to_payload()
        self.assertEqual(payload["answerText"], payload["transcript"])
        self.assertEqual(set(payload["behaviorMetrics"]), {
            "confidence", "eyeContact", "smile", "neutral", "nervous", "happy",
            "sad", "angry", "surprised", "totalFrames", "faceFrames"
        })

    def test_terminal_states(self):
        self.assertTrue(SessionState.DONE.is_terminal)
        self.assertTrue(SessionState.FAILED.is_terminal)
        self.assertFalse(SessionState.POLLING.is_terminal)


class TestReportRendering(unittest.TestCase):

    def test_format_time_left(self):
        self.assertEqual(format_time_left(10), "0:10")
        self.assertEqual(format_time_left(75), "1:15")
        self.assertEqual(format_time_left(-3), "0:00")

    def test_render_failed(self):
        text = render_report(SessionOutcome(SessionState.FAILED, error="Could not open camera 0"))
        self.assertIn("INTERVIEW FAILED", text)
        self.assertIn("Could not open camera 0", text)

    def test_render_report_sections(self):
        report = FinalReport.from_payload({
            "overallScore": 72.5, "strengths": ["Clear"], "suggestions": ["Slow down"]
        })
        text = render_report(SessionOutcome(SessionState.DONE, "s-1", report=report))
        self.assertIn("Overall Score: 72.5", text)
        self.assertIn("  - Clear", text)
        self.assertIn("Suggestions:", text)
        self.assertNotIn("Weaknesses:", text)


if __name__ == '__main__':
    unittest.main()
