#!/usr/bin/env python3
"""
Main entry point for the live interview client.
Allows running the package with: python -m live_interview
"""
import asyncio
import sys
from dataclasses import replace

from .config import get_config
from .utils import setup_logging
from .infrastructure.api import InterviewApiClient
from .infrastructure.face import DeepFaceExpressionDetector
from .interview import (
    InterviewSessionController, EventType, SessionState,
    format_time_left, render_report
)


def _ask_consent() -> bool:
    print("📷 This interview uses your camera and microphone.")
    print("   Video frames are analyzed locally; only averaged metrics and the transcript are sent.")
    try:
        reply = input("Start the interview? [y/N] ").strip().lower()
    except EOFError:
        return False
    return reply in ("y", "yes")


def _attach_console(controller: InterviewSessionController) -> None:
    """Print questions, the countdown and submissions as they happen."""
    bus = controller.event_bus

    def on_question(event):
        print(f"\n❓ Question {event.data['index']}: {event.data['question']}")
        print("   (Press Enter to submit early)")

    def on_tick(event):
        print(f"\r⏱️  {format_time_left(event.data['time_left'])}  ", end="", flush=True)

    def on_submitted(event):
        print(f"\n✅ Answer submitted: {event.data['transcript']}")

    def on_failed(event):
        print(f"\n⚠️  Answer could not be delivered: {event.data['error_message']}")

    def on_completed(event):
        print(f"\n🏁 Interview finished ({event.data['answer_count']} answers). Waiting for evaluation...")

    bus.subscribe(EventType.QUESTION_ISSUED, on_question)
    bus.subscribe(EventType.COUNTDOWN_TICK, on_tick)
    bus.subscribe(EventType.ANSWER_SUBMITTED, on_submitted)
    bus.subscribe(EventType.SUBMISSION_FAILED, on_failed)
    bus.subscribe(EventType.SESSION_COMPLETED, on_completed)


async def _run_with_keyboard(controller: InterviewSessionController):
    """Run the session; each Enter on stdin is a manual submit."""
    loop = asyncio.get_running_loop()
    if sys.stdin.isatty():
        loop.add_reader(sys.stdin, lambda: (sys.stdin.readline(), controller.submit_answer()))
    try:
        return await controller.run()
    finally:
        if sys.stdin.isatty():
            loop.remove_reader(sys.stdin)


def main():
    """Command-line interface for the live interview."""

    # Load configuration from environment
    try:
        config = get_config()
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    skip_consent = "--yes" in sys.argv or "-y" in sys.argv
    for arg in sys.argv:
        if arg.startswith("--questions-time="):
            try:
                seconds = int(arg.split("=")[1])
                if seconds <= 0:
                    raise ValueError(seconds)
                config = replace(config, question_time_seconds=seconds)
            except (ValueError, IndexError):
                print("❌ Invalid question time. Use --questions-time=N with N > 0")
                sys.exit(1)
        elif arg.startswith("--max-questions="):
            try:
                config = replace(config, max_questions=max(1, int(arg.split("=")[1])))
            except (ValueError, IndexError):
                print("❌ Invalid question count. Use --max-questions=N")
                sys.exit(1)
        elif arg == "--debug":
            config = replace(config, log_level="DEBUG")

    if not skip_consent and not _ask_consent():
        print("Interview not started.")
        return

    log_file = setup_logging(config.log_file, config.log_level)
    print(f"📝 Detailed log: {log_file}")
    print(f"⏱️  {config.question_time_seconds}s per question")

    api = InterviewApiClient(
        base_url=config.api_base_url,
        token=config.api_token,
        timeout=config.api_timeout,
        question_time_seconds=config.question_time_seconds
    )
    controller = InterviewSessionController(api, DeepFaceExpressionDetector(), config=config)
    _attach_console(controller)

    try:
        outcome = asyncio.run(_run_with_keyboard(controller))
    except KeyboardInterrupt:
        print("\n🛑 Interview abandoned.")
        sys.exit(130)
    finally:
        api.close()

    print()
    print(render_report(outcome))
    if outcome.state is SessionState.FAILED:
        sys.exit(1)


if __name__ == "__main__":
    main()
