from __future__ import annotations

import threading
from types import SimpleNamespace

from django.test import SimpleTestCase

from automation.dispatcher import DispatcherConfig, RuleEvaluationDispatcher, normalize_dispatcher_config
from automation.rules_engine import RuleRunResult


def _event(pk=1):
    return SimpleNamespace(pk=pk)


class NormalizeDispatcherConfigTests(SimpleTestCase):
    def test_defaults(self):
        self.assertEqual(normalize_dispatcher_config(None), DispatcherConfig())

    def test_clamps_out_of_range_values(self):
        config = normalize_dispatcher_config({"max_workers": 64, "queue_max_depth": 2, "eager": 1})
        self.assertEqual(config, DispatcherConfig(max_workers=16, queue_max_depth=10, eager=True))

    def test_rejects_non_integer_values(self):
        config = normalize_dispatcher_config({"max_workers": "four", "queue_max_depth": None})
        self.assertEqual(config.max_workers, 1)
        self.assertEqual(config.queue_max_depth, 10)


class RuleEvaluationDispatcherTests(SimpleTestCase):
    def test_eager_mode_evaluates_inline(self):
        seen = []

        def evaluate(event):
            seen.append(event.pk)
            return RuleRunResult(evaluated=2, fired=1, errors=0)

        dispatcher = RuleEvaluationDispatcher(DispatcherConfig(eager=True), evaluate=evaluate)

        self.assertTrue(dispatcher.submit(_event(7)))
        self.assertEqual(seen, [7])
        stats = dispatcher.get_status()["stats"]
        self.assertEqual(stats["submitted"], 1)
        self.assertEqual(stats["completed"], 1)
        self.assertEqual(stats["rules_evaluated"], 2)
        self.assertEqual(stats["rules_fired"], 1)

    def test_pool_mode_runs_off_the_calling_thread(self):
        threads = []

        def evaluate(event):
            threads.append(threading.current_thread().name)
            return RuleRunResult(evaluated=1, fired=0, errors=0)

        dispatcher = RuleEvaluationDispatcher(DispatcherConfig(max_workers=2), evaluate=evaluate)
        for pk in range(5):
            self.assertTrue(dispatcher.submit(_event(pk)))
        dispatcher.shutdown(wait=True)

        self.assertEqual(len(threads), 5)
        self.assertTrue(all(name.startswith("rule-evaluator-") for name in threads))
        status = dispatcher.get_status()
        self.assertEqual(status["stats"]["completed"], 5)
        self.assertEqual(status["in_flight"], 0)
        self.assertFalse(status["running"])

    def test_overflow_drops_and_counts(self):
        release = threading.Event()
        started = threading.Event()

        def evaluate(event):
            started.set()
            release.wait(timeout=5)
            return RuleRunResult(evaluated=0, fired=0, errors=0)

        dispatcher = RuleEvaluationDispatcher(DispatcherConfig(max_workers=1, queue_max_depth=2), evaluate=evaluate)
        try:
            self.assertTrue(dispatcher.submit(_event(1)))
            self.assertTrue(started.wait(timeout=5))
            self.assertTrue(dispatcher.submit(_event(2)))
            with self.assertLogs("automation.dispatcher.dispatcher", level="WARNING"):
                self.assertFalse(dispatcher.submit(_event(3)))
        finally:
            release.set()
            dispatcher.shutdown(wait=True)

        stats = dispatcher.get_status()["stats"]
        self.assertEqual(stats["dropped"], 1)
        self.assertEqual(stats["completed"], 2)

    def test_evaluation_crash_is_counted_not_raised(self):
        def evaluate(event):
            raise RuntimeError("boom")

        dispatcher = RuleEvaluationDispatcher(DispatcherConfig(eager=True), evaluate=evaluate)

        with self.assertLogs("automation.dispatcher.dispatcher", level="ERROR"):
            self.assertTrue(dispatcher.submit(_event()))
        self.assertEqual(dispatcher.get_status()["stats"]["failed"], 1)

    def test_submit_after_shutdown_is_dropped(self):
        dispatcher = RuleEvaluationDispatcher(DispatcherConfig(), evaluate=lambda event: None)
        dispatcher.shutdown()

        with self.assertLogs("automation.dispatcher.dispatcher", level="WARNING"):
            self.assertFalse(dispatcher.submit(_event()))
        self.assertEqual(dispatcher.get_status()["stats"]["dropped"], 1)
