import logging
import unittest
from datetime import timedelta

from worktimer import (
    ManualScheduler,
    SessionConfig,
    SessionStateError,
    SessionTimer,
)
from worktimer.constants import (
    EVENT_BEGIN_LONG_BREAK,
    EVENT_BEGIN_SHORT_BREAK,
    EVENT_BEGIN_WORK_UNIT,
    EVENT_PROGRESS,
    EVENT_SESSION_ENDED,
    EVENT_SHORT_BREAK_ENDED,
    EVENT_WORK_UNIT_ENDED,
)

_FAST = {
    "work_unit_ms": 10_000,
    "short_break_ms": 2_000,
    "long_break_ms": 5_000,
    "units_before_long_break": 4,
    "units_in_session": 8,
    "use_sounds": False,
}


class SessionTimerTestCase(unittest.TestCase):
    def _build(self, **overrides) -> SessionTimer:
        self.scheduler = ManualScheduler()
        self.timer = SessionTimer(
            self.scheduler,
            config=SessionConfig(**{**_FAST, **overrides}),
            logger=logging.getLogger("test.worktimer"),
        )
        self.events = []
        self.timer.add_listener(self.events.append)
        return self.timer

    def _names(self, *, include_progress: bool = False) -> list[str]:
        return [
            event.name
            for event in self.events
            if include_progress or event.name != EVENT_PROGRESS
        ]


class SessionTimerLifecycleTests(SessionTimerTestCase):
    def test_initial_state_is_stopped(self) -> None:
        timer = self._build()

        self.assertEqual("stopped", timer.status)
        self.assertIsNone(timer.phase)
        self.assertEqual(0, timer.remaining_ms())
        self.assertEqual(0, timer.elapsed())
        self.assertEqual(timedelta(0), timer.elapsed_time())
        self.assertEqual("Stopped.", timer.status_message())
        self.assertEqual("Undefined task", timer.task_title)

    def test_start_enters_work_and_emits_begin(self) -> None:
        timer = self._build()
        timer.start()

        self.assertEqual("work", timer.status)
        self.assertEqual(10_000, timer.remaining_ms())
        self.assertEqual([EVENT_BEGIN_WORK_UNIT], self._names())
        self.assertEqual("In a work unit.", timer.status_message())

    def test_start_while_running_raises(self) -> None:
        timer = self._build()
        timer.start()

        with self.assertRaises(SessionStateError):
            timer.start()
        self.assertEqual("work", timer.status)

    def test_start_resets_counters_from_previous_session(self) -> None:
        timer = self._build(units_in_session=2)
        timer.start()
        self.scheduler.advance(10_000)
        timer.stop()
        self.assertEqual(1, timer.completed_work_units)

        timer.start()

        self.assertEqual(0, timer.completed_work_units)
        self.assertEqual(0, timer.completed_short_breaks)
        self.assertEqual({}, timer.completed_tasks())

    def test_scenario_eight_units_long_break_after_fourth(self) -> None:
        timer = self._build(units_in_session=8, units_before_long_break=4)
        timer.start()
        self.scheduler.advance(97_000)

        begins = [name for name in self._names() if name.startswith("begin_")]
        self.assertEqual(
            [EVENT_BEGIN_WORK_UNIT, EVENT_BEGIN_SHORT_BREAK] * 3
            + [EVENT_BEGIN_WORK_UNIT, EVENT_BEGIN_LONG_BREAK]
            + [EVENT_BEGIN_WORK_UNIT, EVENT_BEGIN_SHORT_BREAK] * 3
            + [EVENT_BEGIN_WORK_UNIT],
            begins,
        )
        self.assertEqual([EVENT_WORK_UNIT_ENDED, EVENT_SESSION_ENDED], self._names()[-2:])
        self.assertEqual("stopped", timer.status)
        self.assertEqual(8, timer.completed_work_units)
        self.assertEqual(6, timer.completed_short_breaks)
        self.assertEqual(1, timer.completed_long_breaks)
        self.assertEqual(timedelta(milliseconds=97_000), timer.completed_session_time())

    def test_no_phase_runs_after_session_end(self) -> None:
        timer = self._build(units_in_session=3)
        timer.start()
        self.scheduler.advance(34_000)
        event_count = len(self.events)

        self.scheduler.advance(60_000)

        self.assertEqual(event_count, len(self.events))
        self.assertEqual(1, self._names().count(EVENT_SESSION_ENDED))
        self.assertEqual(3, timer.completed_work_units)
        self.assertEqual(2, timer.completed_short_breaks)
        self.assertEqual(0, timer.completed_long_breaks)
        self.assertEqual("stopped", timer.status)

    def test_counters_mid_session(self) -> None:
        timer = self._build(units_in_session=12, units_before_long_break=4)
        timer.start()
        self.scheduler.advance(63_000)

        self.assertEqual("work", timer.status)
        self.assertEqual(5, timer.completed_work_units)
        self.assertEqual(4, timer.completed_short_breaks)
        self.assertEqual(1, timer.completed_long_breaks)
        self.assertEqual(1, self._names().count(EVENT_BEGIN_LONG_BREAK))

    def test_single_unit_session_ends_without_break(self) -> None:
        timer = self._build(units_in_session=1)
        timer.start()
        self.scheduler.advance(10_000)

        self.assertEqual(
            [EVENT_BEGIN_WORK_UNIT, EVENT_WORK_UNIT_ENDED, EVENT_SESSION_ENDED],
            self._names(),
        )
        self.assertEqual("stopped", self.events[-1].snapshot.status)

    def test_break_end_returns_to_work(self) -> None:
        timer = self._build()
        timer.start()
        self.scheduler.advance(12_000)

        self.assertEqual(
            [
                EVENT_BEGIN_WORK_UNIT,
                EVENT_WORK_UNIT_ENDED,
                EVENT_BEGIN_SHORT_BREAK,
                EVENT_SHORT_BREAK_ENDED,
                EVENT_BEGIN_WORK_UNIT,
            ],
            self._names(),
        )
        self.assertEqual("work", timer.status)


class SessionTimerPauseTests(SessionTimerTestCase):
    def test_pause_captures_remaining_and_freezes_time(self) -> None:
        timer = self._build()
        timer.start()
        self.scheduler.advance(3_500)

        timer.pause()
        self.scheduler.advance(5_000)

        self.assertEqual("paused", timer.status)
        self.assertEqual("work", timer.phase)
        self.assertEqual(6_500, timer.remaining_ms())
        self.assertEqual(3_500, timer.elapsed())
        self.assertEqual(0, self.scheduler.pending())

    def test_pause_resume_keeps_elapsed(self) -> None:
        timer = self._build()
        timer.start()
        self.scheduler.advance(3_500)
        before = timer.elapsed()

        timer.pause()
        timer.pause()

        self.assertEqual("work", timer.status)
        self.assertEqual(before, timer.elapsed())
        self.assertEqual(6_500, timer.remaining_ms())

    def test_resumed_phase_ends_after_remaining_time(self) -> None:
        timer = self._build()
        timer.start()
        self.scheduler.advance(4_000)
        timer.pause()
        self.scheduler.advance(30_000)
        timer.pause()

        self.scheduler.advance(5_999)
        self.assertEqual(0, timer.completed_work_units)
        self.scheduler.advance(1)
        self.assertEqual(1, timer.completed_work_units)
        self.assertEqual("short_break", timer.status)

    def test_pause_in_break_resumes_break(self) -> None:
        timer = self._build()
        timer.start()
        self.scheduler.advance(11_000)
        timer.pause()
        self.assertEqual("short_break", timer.phase)

        timer.pause()

        self.assertEqual("short_break", timer.status)
        self.assertEqual(1_000, timer.remaining_ms())

    def test_pause_while_stopped_is_noop(self) -> None:
        timer = self._build()
        timer.pause()

        self.assertEqual("stopped", timer.status)
        self.assertEqual([], self.events)


class SessionTimerStopAndInvalidateTests(SessionTimerTestCase):
    def test_stop_cancels_timers_and_keeps_counters(self) -> None:
        timer = self._build()
        timer.start()
        self.scheduler.advance(15_000)

        timer.stop()
        self.scheduler.advance(100_000)

        self.assertEqual("stopped", timer.status)
        self.assertEqual(1, timer.completed_work_units)
        self.assertEqual(0, self.scheduler.pending())
        self.assertNotIn(EVENT_SESSION_ENDED, self._names())

    def test_stop_while_stopped_is_noop(self) -> None:
        timer = self._build()
        timer.stop()
        self.assertEqual("stopped", timer.status)

    def test_stop_while_paused(self) -> None:
        timer = self._build()
        timer.start()
        timer.pause()

        timer.stop()

        self.assertEqual("stopped", timer.status)
        self.assertIsNone(timer.phase)

    def test_invalidate_restarts_phase_without_counting(self) -> None:
        timer = self._build()
        timer.start()
        self.scheduler.advance(4_000)

        timer.invalidate_current()

        self.assertEqual("work", timer.status)
        self.assertEqual(0, timer.completed_work_units)
        self.assertEqual(0, timer.elapsed())
        self.assertEqual(10_000, timer.remaining_ms())
        self.assertEqual(2, self._names().count(EVENT_BEGIN_WORK_UNIT))
        self.assertNotIn(EVENT_WORK_UNIT_ENDED, self._names())

    def test_invalidate_while_paused_restarts_interrupted_phase(self) -> None:
        timer = self._build()
        timer.start()
        self.scheduler.advance(11_000)
        timer.pause()

        timer.invalidate_current()

        self.assertEqual("short_break", timer.status)
        self.assertEqual(2_000, timer.remaining_ms())
        self.assertEqual(0, timer.completed_short_breaks)

    def test_invalidate_while_stopped_is_noop(self) -> None:
        timer = self._build()
        timer.invalidate_current()
        self.assertEqual([], self.events)


class SessionTimerProgressTests(SessionTimerTestCase):
    def test_progress_sampled_every_second(self) -> None:
        timer = self._build()
        timer.start()
        self.scheduler.advance(9_999)

        values = [event.progress for event in self.events if event.name == EVENT_PROGRESS]
        self.assertEqual(list(range(10, 100, 10)), values)
        self.assertEqual(90, timer.snapshot().progress)

    def test_progress_is_monotonic_and_deduplicated(self) -> None:
        timer = self._build(work_unit_ms=300_000)
        timer.start()
        self.scheduler.advance(100_500)
        timer.pause()
        self.scheduler.advance(7_000)
        timer.pause()
        self.scheduler.advance(199_000)

        values = [event.progress for event in self.events if event.name == EVENT_PROGRESS]
        self.assertTrue(values)
        for previous, current in zip(values, values[1:]):
            self.assertLess(previous, current)
        self.assertTrue(all(0 <= value <= 100 for value in values))

    def test_progress_resets_for_next_phase(self) -> None:
        timer = self._build()
        timer.start()
        self.scheduler.advance(11_000)

        last = self.events[-1]
        self.assertEqual(EVENT_PROGRESS, last.name)
        self.assertEqual(50, last.progress)
        self.assertEqual("short_break", last.snapshot.phase)


class SessionTimerTaskTitleTests(SessionTimerTestCase):
    def test_completed_tasks_record_last_title(self) -> None:
        timer = self._build()
        timer.start()
        self.scheduler.advance(2_000)
        timer.set_task_title("Draft outline")
        self.scheduler.advance(2_000)
        timer.set_task_title("Review notes")
        self.scheduler.advance(6_000)

        self.assertEqual({0: "Review notes"}, timer.completed_tasks())

    def test_rename_moves_elapsed_origin(self) -> None:
        timer = self._build()
        timer.start()
        self.scheduler.advance(4_000)
        timer.set_task_title("Review notes")
        self.scheduler.advance(2_000)

        self.assertEqual(2_000, timer.elapsed())
        self.assertEqual(timedelta(seconds=6), timer.elapsed_time())

    def test_same_title_keeps_elapsed_origin(self) -> None:
        timer = self._build()
        timer.set_task_title("Draft")
        timer.start()
        self.scheduler.advance(4_000)
        timer.set_task_title("Draft")

        self.assertEqual(4_000, timer.elapsed())

    def test_empty_title_falls_back_to_default(self) -> None:
        timer = self._build()
        timer.set_task_title("Draft")
        timer.set_task_title("   ")
        self.assertEqual("Undefined task", timer.task_title)

    def test_completed_tasks_indexed_by_unit(self) -> None:
        timer = self._build(units_in_session=3)
        timer.set_task_title("First")
        timer.start()
        self.scheduler.advance(10_000)
        timer.set_task_title("Second")
        self.scheduler.advance(12_000)

        self.assertEqual({0: "First", 1: "Second"}, timer.completed_tasks())


class SessionTimerConfigurationTests(SessionTimerTestCase):
    def test_setters_apply_while_stopped(self) -> None:
        timer = self._build()
        timer.set_work_duration(60_000)
        timer.set_short_break_duration(6_000)
        timer.set_long_break_duration(9_000)
        timer.set_session_work_units(6)
        timer.set_work_units_before_long_break(3)
        timer.set_continuous_tic_tac(True)
        timer.set_use_voice_announcements(True)
        timer.set_use_sounds(True)

        config = timer.config
        self.assertEqual(60_000, config.work_unit_ms)
        self.assertEqual(6_000, config.short_break_ms)
        self.assertEqual(9_000, config.long_break_ms)
        self.assertEqual(6, config.units_in_session)
        self.assertEqual(3, config.units_before_long_break)
        self.assertTrue(config.continuous_tic_tac)
        self.assertTrue(config.use_voice_announcements)
        self.assertTrue(config.use_sounds)

    def test_setters_ignored_while_running(self) -> None:
        timer = self._build()
        timer.start()

        timer.set_work_duration(1_000)
        timer.set_session_work_units(1)
        timer.apply_config(SessionConfig(work_unit_ms=1_000))

        self.assertEqual(10_000, timer.config.work_unit_ms)
        self.assertEqual(8, timer.config.units_in_session)
        self.scheduler.advance(1_000)
        self.assertEqual("work", timer.status)

    def test_setters_ignored_while_paused(self) -> None:
        timer = self._build()
        timer.start()
        timer.pause()

        timer.set_short_break_duration(1)

        self.assertEqual(2_000, timer.config.short_break_ms)

    def test_invalid_setter_value_raises(self) -> None:
        timer = self._build()
        with self.assertRaises(ValueError):
            timer.set_work_units_before_long_break(0)


class SessionTimeTests(unittest.TestCase):
    def _session_time(self, **overrides) -> timedelta:
        defaults = {
            "work_unit_ms": 25 * 60_000,
            "short_break_ms": 5 * 60_000,
            "long_break_ms": 15 * 60_000,
        }
        timer = SessionTimer(ManualScheduler(), config=SessionConfig(**{**defaults, **overrides}))
        return timer.session_time()

    def test_multiple_of_long_break_interval(self) -> None:
        # 8 work units, 1 long break, 6 short breaks.
        self.assertEqual(
            timedelta(minutes=245),
            self._session_time(units_in_session=8, units_before_long_break=4),
        )

    def test_default_session(self) -> None:
        self.assertEqual(
            timedelta(minutes=375),
            self._session_time(units_in_session=12, units_before_long_break=4),
        )

    def test_not_a_multiple_of_long_break_interval(self) -> None:
        # 10 work units, 2 long breaks, 7 short breaks.
        self.assertEqual(
            timedelta(minutes=315),
            self._session_time(units_in_session=10, units_before_long_break=4),
        )

    def test_long_break_after_every_unit(self) -> None:
        # 3 work units, 2 long breaks, no short breaks.
        self.assertEqual(
            timedelta(minutes=105),
            self._session_time(units_in_session=3, units_before_long_break=1),
        )

    def test_matches_simulated_run(self) -> None:
        scheduler = ManualScheduler()
        timer = SessionTimer(
            scheduler,
            config=SessionConfig(**{**_FAST, "units_in_session": 10}),
        )
        timer.start()
        scheduler.advance(int(timer.session_time().total_seconds() * 1000))

        self.assertEqual("stopped", timer.status)
        self.assertEqual(timer.session_time(), timer.completed_session_time())


class SessionTimerListenerTests(SessionTimerTestCase):
    def test_listener_failure_is_logged_and_isolated(self) -> None:
        timer = self._build()

        def broken(event) -> None:
            raise RuntimeError("listener exploded")

        timer.add_listener(broken)
        seen = []
        timer.add_listener(seen.append)

        with self.assertLogs("test.worktimer", level="ERROR") as logs:
            timer.start()

        self.assertEqual("work", timer.status)
        self.assertEqual([EVENT_BEGIN_WORK_UNIT], [event.name for event in seen])
        self.assertIn("listener exploded", "\n".join(logs.output))

    def test_listener_may_stop_on_phase_end(self) -> None:
        timer = self._build()

        def stop_on_end(event) -> None:
            if event.name == EVENT_WORK_UNIT_ENDED:
                timer.stop()

        timer.add_listener(stop_on_end)
        timer.start()
        self.scheduler.advance(10_000)

        self.assertEqual("stopped", timer.status)
        self.assertEqual(1, timer.completed_work_units)
        self.assertNotIn(EVENT_BEGIN_SHORT_BREAK, self._names())
        self.assertEqual(0, self.scheduler.pending())

    def test_pause_on_phase_end_pauses_next_phase(self) -> None:
        timer = self._build()

        def pause_on_end(event) -> None:
            if event.name == EVENT_WORK_UNIT_ENDED:
                timer.pause()

        timer.add_listener(pause_on_end)
        timer.start()
        self.scheduler.advance(10_000)

        self.assertEqual("paused", timer.status)
        self.assertEqual("short_break", timer.phase)
        self.assertEqual(2_000, timer.remaining_ms())
        self.assertEqual(1, timer.completed_work_units)

        timer.pause()
        self.scheduler.advance(0)
        self.assertEqual("short_break", timer.status)
        self.assertEqual(1, timer.completed_work_units)
        self.assertEqual({0: "Undefined task"}, timer.completed_tasks())

        self.scheduler.advance(2_000)
        self.assertEqual("work", timer.status)
        self.assertEqual(1, timer.completed_work_units)
        self.assertEqual(1, timer.completed_short_breaks)
        self.assertEqual(1, self._names().count(EVENT_WORK_UNIT_ENDED))

    def test_pause_on_last_phase_end_ends_session_once(self) -> None:
        timer = self._build(units_in_session=1)

        def pause_on_end(event) -> None:
            if event.name == EVENT_WORK_UNIT_ENDED:
                timer.pause()

        timer.add_listener(pause_on_end)
        timer.start()
        self.scheduler.advance(10_000)
        timer.pause()
        self.scheduler.advance(10_000)

        self.assertEqual("stopped", timer.status)
        self.assertEqual(1, timer.completed_work_units)
        self.assertEqual(1, self._names().count(EVENT_SESSION_ENDED))
        self.assertEqual(0, self.scheduler.pending())

    def test_remove_listener(self) -> None:
        timer = self._build()
        timer.remove_listener(self.events.append)
        timer.start()
        self.assertEqual([], self.events)

    def test_snapshot_in_end_event_reflects_completed_unit(self) -> None:
        timer = self._build()
        timer.start()
        self.scheduler.advance(10_000)

        ended = next(event for event in self.events if event.name == EVENT_WORK_UNIT_ENDED)
        self.assertEqual(1, ended.snapshot.completed_work_units)
        self.assertEqual("work", ended.snapshot.status)
        self.assertEqual(0, ended.snapshot.remaining_ms)


if __name__ == "__main__":
    unittest.main()
