"""
Plain-text rendering of the session outcome for the command line.
"""
from typing import List

from .models import SessionOutcome, SessionState


def format_time_left(seconds: int) -> str:
    """Render remaining seconds as m:ss."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def _section(title: str, items: List[str]) -> List[str]:
    if not items:
        return []
    return [f"{title}:"] + [f"  - {item}" for item in items]


def render_report(outcome: SessionOutcome) -> str:
    """Summarize the outcome; degraded outcomes say so instead of showing scores."""
    lines = ["=" * 50]
    if outcome.state is SessionState.FAILED:
        lines += ["INTERVIEW FAILED", "=" * 50, f"Reason: {outcome.error or 'unknown error'}"]
        return "\n".join(lines)

    lines += ["INTERVIEW COMPLETE", "=" * 50, f"Answers submitted: {len(outcome.answers)}"]
    report = outcome.report
    if report is None:
        lines.append("Report unavailable: the evaluation did not finish in time. Check back later.")
        return "\n".join(lines)

    lines.append(f"Overall Score: {report.overall_score:g}")
    if report.communication_rating is not None:
        lines.append(f"Communication: {report.communication_rating:g}")
    if report.confidence_rating is not None:
        lines.append(f"Confidence: {report.confidence_rating:g}")
    lines += _section("Strengths", report.strengths)
    lines += _section("Weaknesses", report.weaknesses)
    lines += _section("Suggestions", report.suggestions)
    return "\n".join(lines)
