import asyncio
import unittest

from interlog.scheduler import AsyncioTimers, ManualTimers, Scheduler


class TestManualTimers(unittest.TestCase):
    def test_fires_in_order_and_repeats(self):
        timers = ManualTimers()
        calls = []
        timers.every(1.0, lambda: calls.append(("a", timers.now)))
        timers.every(1.5, lambda: calls.append(("b", timers.now)))
        fired = timers.advance(3.0)
        self.assertEqual(fired, 5)
        self.assertEqual(calls, [("a", 1.0), ("b", 1.5), ("a", 2.0), ("b", 3.0), ("a", 3.0)])
        self.assertEqual(timers.clock(), 3.0)

    def test_cancel_stops_future_calls(self):
        timers = ManualTimers()
        calls = []
        call = timers.every(1.0, lambda: calls.append(1))
        timers.advance(1.0)
        call.cancel()
        self.assertEqual(timers.advance(5.0), 0)
        self.assertEqual(calls, [1])
        self.assertEqual(timers.pending(), 0)

    def test_failing_callback_keeps_timer(self):
        timers = ManualTimers()

        def boom():
            raise RuntimeError("tick failed")

        timers.every(1.0, boom)
        with self.assertLogs("interlog.scheduler", level="ERROR"):
            self.assertEqual(timers.advance(2.0), 2)
        self.assertEqual(timers.pending(), 1)


class TestScheduler(unittest.TestCase):
    def setUp(self):
        self.timers = ManualTimers()
        self.idle = True
        self.flushes = 0
        self.trims = 0

        def on_idle():
            self.flushes += 1

        def on_retention():
            self.trims += 1

        self.scheduler = Scheduler(
            self.timers,
            idle_threshold=0.1,
            retention_interval=30.0,
            is_idle=lambda threshold: self.idle,
            on_idle=on_idle,
            on_retention=on_retention,
        )

    def test_idle_tick_flushes_only_when_idle(self):
        self.scheduler.start()
        self.timers.advance(0.25)
        self.assertEqual(self.flushes, 2)
        self.idle = False
        self.timers.advance(0.5)
        self.assertEqual(self.flushes, 2)

    def test_retention_tick(self):
        self.scheduler.start()
        self.timers.advance(61.0)
        self.assertEqual(self.trims, 2)

    def test_start_is_idempotent_and_stop_cancels_both(self):
        self.scheduler.start()
        self.scheduler.start()
        self.assertEqual(self.timers.pending(), 2)
        self.scheduler.stop()
        self.assertFalse(self.scheduler.running)
        self.assertEqual(self.timers.pending(), 0)
        self.timers.advance(60.0)
        self.assertEqual((self.flushes, self.trims), (0, 0))


class TestAsyncioTimers(unittest.IsolatedAsyncioTestCase):
    async def test_repeats_until_cancelled(self):
        calls = []
        call = AsyncioTimers().every(0.01, lambda: calls.append(1))
        await asyncio.sleep(0.1)
        call.cancel()
        seen = len(calls)
        self.assertGreaterEqual(seen, 2)
        self.assertTrue(call.cancelled)
        await asyncio.sleep(0.05)
        self.assertEqual(len(calls), seen)


if __name__ == "__main__":
    unittest.main()
