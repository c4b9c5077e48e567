import asyncio
import unittest

from interlog import InteractionLog, InteractionLogConfig, ManualTimers, MessageStream
from interlog.types import CHANGE_MUTATED, TAG_LOAD


class AggregatorTestCase(unittest.TestCase):
    def make_log(self, **overrides):
        config = InteractionLogConfig(**overrides)
        self.stream = MessageStream()
        self.timers = ManualTimers()
        self.sensitive = False
        self.focused = False
        log = InteractionLog(
            config=config,
            messages=self.stream,
            is_sensitive=lambda: self.sensitive,
            is_focused=lambda: self.focused,
            timers=self.timers,
        )
        self.addCleanup(log.disable)
        return log

    def event(self, log, keys=("C-n",), command="next-line", context="scratch", change="none"):
        log.pre_event(keys, command, context)
        return log.post_event(change)


class TestLifecycle(AggregatorTestCase):
    def test_disabled_log_ignores_everything(self):
        log = self.make_log()
        self.assertIsNone(log.pre_event(("a",), "self-insert", "scratch"))
        self.assertIsNone(log.post_event())
        log.note_load("plugins")
        self.assertEqual(log.pending(), [])
        self.assertEqual(len(log.loads), 0)

    def test_enable_skips_earlier_messages(self):
        log = self.make_log()
        self.stream.message("startup noise")
        log.enable()
        self.event(log)
        log.flush_now()
        self.assertNotIn("startup noise", log.output.text())

    def test_disable_cancels_timers_and_drops_pending(self):
        log = self.make_log()
        log.enable()
        self.assertEqual(self.timers.pending(), 2)
        self.event(log)
        log.disable()
        self.assertFalse(log.enabled)
        self.assertEqual(self.timers.pending(), 0)
        self.assertEqual(log.pending(), [])
        self.assertIsNone(log.engine.last_rendered)

    def test_default_timers_without_event_loop(self):
        log = InteractionLog()
        with self.assertLogs("interlog", level="WARNING"):
            log.enable()
        self.assertFalse(log.enabled)
        self.assertIsNone(log.pre_event(("C-n",), "next-line", "scratch"))
        self.assertEqual(log.pending(), [])

    def test_invalid_config_is_rejected(self):
        with self.assertRaises(ValueError):
            InteractionLog(config=InteractionLogConfig(idle_threshold=0), timers=ManualTimers())

    def test_instances_are_independent(self):
        first = self.make_log()
        first_stream = self.stream
        second = self.make_log()
        first.enable()
        second.enable()
        first_stream.message("only in first")
        self.event(second, command="other")
        first.flush_now()
        second.flush_now()
        self.assertIn("only in first", first.output.text())
        self.assertNotIn("only in first", second.output.text())
        self.assertNotIn("other", first.output.text())


class TestScheduling(AggregatorTestCase):
    def test_flush_waits_for_idle(self):
        log = self.make_log(idle_threshold=0.1)
        log.enable()
        self.event(log)
        self.timers.advance(0.05)
        self.event(log)
        self.timers.advance(0.06)
        self.assertIsNone(log.output)
        self.timers.advance(0.1)
        self.assertEqual(len(log.output), 1)
        self.assertTrue(log.output.lines()[0].plain().startswith("2x C-n"))

    def test_retention_tick_trims(self):
        log = self.make_log(retention_max=2, retention_interval=1.0)
        log.enable()
        for command in ("a", "b", "c"):
            self.event(log, command=command)
        log.flush_now()
        self.assertEqual(len(log.output), 3)
        self.focused = True
        self.timers.advance(1.0)
        self.assertEqual(len(log.output), 3)
        self.focused = False
        self.timers.advance(1.0)
        self.assertEqual([line.text for line in log.output.lines()], ["b", "c"])

    def test_trim_now_notifies_listeners(self):
        log = self.make_log(retention_max=1)
        log.enable()
        seen = []
        log.add_listener(lambda output: seen.append(len(output)))
        self.event(log, command="a")
        self.event(log, command="b")
        log.flush_now()
        self.assertEqual(log.trim_now(), 1)
        self.assertEqual(seen, [2, 1])
        self.assertEqual(log.trim_now(), 0)
        self.assertEqual(seen, [2, 1])


class TestCapture(AggregatorTestCase):
    def test_capture_scope_collects_messages_and_loads(self):
        log = self.make_log()
        log.enable()
        with log.capture(("F7",), "load_plugins", "screen") as scope:
            log.note_load("plugins")
            self.stream.message("Loading plugins...done")
            log.note_load("plugins.keys", "plugins")
            scope.change_state = CHANGE_MUTATED
        entry = log.pending()[0]
        self.assertEqual(entry.change_state, CHANGE_MUTATED)
        self.assertEqual(entry.post_text, "Loading plugins...done\n")
        self.assertEqual([(load.resource, load.depth) for load in entry.load_lines], [("plugins", 0), ("plugins.keys", 1)])
        log.flush_now()
        loads = [line for line in log.output.lines() if line.tag == TAG_LOAD]
        self.assertEqual(len(loads), 2)

    def test_capture_finalizes_on_error(self):
        log = self.make_log()
        log.enable()
        with self.assertRaises(KeyError):
            with log.capture(("C-x",), "kill", "scratch"):
                self.stream.message("Quit")
                raise KeyError("boom")
        self.assertEqual(log.pending()[0].post_text, "Quit\n")

    def test_ignored_commands_and_contexts(self):
        log = self.make_log(ignored_commands=["scroll"], ignored_contexts=["minibuffer"])
        log.enable()
        self.assertIsNone(log.pre_event(("wheel",), "scroll", "scratch"))
        self.assertIsNone(log.post_event())
        self.assertIsNone(log.pre_event(("a",), "self-insert", "minibuffer"))
        self.assertIsNone(log.post_event())
        self.assertEqual(log.pending(), [])

    def test_ignored_event_output_is_discarded(self):
        log = self.make_log(ignored_commands=["scroll"])
        log.enable()
        self.event(log)
        log.pre_event(("wheel",), "scroll", "scratch")
        log.note_load("lazy-module")
        self.stream.message("scrolled")
        log.post_event()
        entry = self.event(log)
        self.assertEqual(len(log.pending()), 1)
        self.assertEqual(entry.repeat_count, 2)
        self.assertEqual(entry.load_lines, [])
        log.flush_now()
        self.assertNotIn("scrolled", log.output.text())

    def test_ignored_event_keeps_earlier_messages_and_loads(self):
        log = self.make_log(ignored_commands=["scroll"])
        log.enable()
        self.stream.message("Auto-saving...done")
        log.note_load("early")
        log.pre_event(("wheel",), "scroll", "scratch")
        log.note_load("lazy-module")
        self.stream.message("scrolled")
        log.post_event()
        entry = self.event(log)
        self.assertEqual(entry.pre_text, "Auto-saving...done\n")
        self.assertEqual([load.resource for load in entry.load_lines], ["early"])

    def test_sensitive_input_is_masked(self):
        log = self.make_log(mask_token="***")
        log.enable()
        self.sensitive = True
        entry = self.event(log, keys=("h",), command="insert", context="password")
        self.assertEqual(entry.keys, ("***",))
        self.assertEqual(entry.command, "***")
        log.flush_now()
        self.assertNotIn("insert", log.output.text())

    def test_hooks_are_quiet_while_rendering(self):
        log = self.make_log()
        log.enable()
        captured = []

        def listener(output):
            captured.append(log.pre_event(("x",), "from-listener", "scratch"))
            log.post_event()
            log.note_load("inner")

        log.add_listener(listener)
        self.event(log)
        log.flush_now()
        self.assertEqual(captured, [None])
        self.assertEqual(log.pending(), [])
        self.assertEqual(len(log.loads), 0)

    def test_repeats_merge_across_flushes(self):
        log = self.make_log()
        log.enable()
        for _ in range(3):
            self.event(log)
            log.flush_now()
        self.assertEqual(len(log.output), 1)
        self.assertTrue(log.output.lines()[0].plain().startswith("3x C-n"))

    def test_idle_for_uses_timer_clock(self):
        log = self.make_log(idle_threshold=0.5)
        log.enable()
        self.assertFalse(log.idle_for(0.5))
        self.timers.advance(0.5)
        self.assertTrue(log.idle_for(0.5))


class TestDefaultTimers(unittest.IsolatedAsyncioTestCase):
    async def test_idle_flush_on_running_loop(self):
        stream = MessageStream()
        log = InteractionLog(config=InteractionLogConfig(idle_threshold=0.01), messages=stream)
        log.enable()
        self.assertTrue(log.enabled)
        log.pre_event(("C-n",), "next-line", "scratch")
        log.post_event()
        await asyncio.sleep(0.1)
        log.disable()
        self.assertIsNotNone(log.output)
        self.assertEqual(len(log.output), 1)


if __name__ == "__main__":
    unittest.main()
