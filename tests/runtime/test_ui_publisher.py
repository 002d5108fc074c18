import unittest

from runtime.messages import format_duration, session_status_message
from runtime.ui import RuntimeUIPublisher
from worktimer import ManualScheduler, SessionConfig, SessionTimer


class _UIServerStub:
    def __init__(self):
        self.events: list[tuple[str, dict[str, object]]] = []

    def publish(self, event_type: str, **payload):
        self.events.append((event_type, payload))


class RuntimeUIPublisherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.scheduler = ManualScheduler()
        self.timer = SessionTimer(
            self.scheduler,
            config=SessionConfig(work_unit_ms=10_000, use_sounds=False),
        )
        self.ui_server = _UIServerStub()
        self.timer.add_listener(RuntimeUIPublisher(self.ui_server).handle_session_event)

    def test_phase_events_published_as_session_updates(self) -> None:
        self.timer.set_task_title("Docs")
        self.timer.start()

        event_type, payload = self.ui_server.events[-1]
        self.assertEqual("session", event_type)
        self.assertEqual("begin_work_unit", payload["event"])
        self.assertEqual("work", payload["status"])
        self.assertEqual("Docs", payload["task"])
        self.assertEqual(10_000, payload["duration_ms"])
        self.assertEqual("Work unit 'Docs' (00:10 remaining)", payload["message"])

    def test_progress_events_published_separately(self) -> None:
        self.timer.start()
        self.scheduler.advance(1_000)

        event_type, payload = self.ui_server.events[-1]
        self.assertEqual("progress", event_type)
        self.assertEqual(10, payload["progress"])
        self.assertEqual("work", payload["phase"])
        self.assertEqual(9_000, payload["remaining_ms"])

    def test_publisher_without_server_is_silent(self) -> None:
        publisher = RuntimeUIPublisher(None)
        publisher.publish("session", status="stopped")


class StatusMessageTests(unittest.TestCase):
    def test_format_duration(self) -> None:
        self.assertEqual("00:00", format_duration(-5))
        self.assertEqual("01:05", format_duration(65_999))
        self.assertEqual("1:02:05", format_duration(3_725_000))

    def test_session_status_message(self) -> None:
        scheduler = ManualScheduler()
        timer = SessionTimer(
            scheduler,
            config=SessionConfig(work_unit_ms=120_000, short_break_ms=60_000, use_sounds=False),
        )
        self.assertFalse(timer.snapshot().is_active)
        self.assertEqual("Stopped.", session_status_message(timer.snapshot()))

        timer.start()
        scheduler.advance(30_000)
        timer.pause()
        self.assertTrue(timer.snapshot().is_active)
        self.assertEqual(
            "Work unit paused (01:30 remaining)",
            session_status_message(timer.snapshot()),
        )

        timer.pause()
        scheduler.advance(90_000)
        self.assertEqual(
            "Short break (01:00 remaining)",
            session_status_message(timer.snapshot()),
        )


if __name__ == "__main__":
    unittest.main()
