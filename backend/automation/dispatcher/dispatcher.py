"""Worker pool that runs rule evaluation off the ingestion path."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from time import perf_counter
from typing import TYPE_CHECKING, Any, Callable

from django.db import close_old_connections
from django.utils import timezone

from .config import DispatcherConfig, get_dispatcher_config
from .stats import DispatcherStats

if TYPE_CHECKING:
    from automation.rules_engine import RuleRunResult
    from telemetry.models import TelemetryEvent

logger = logging.getLogger(__name__)


def _default_evaluate(event: TelemetryEvent) -> RuleRunResult:
    from automation.rules_engine import evaluate_event

    return evaluate_event(event)


class RuleEvaluationDispatcher:
    """
    Runs `evaluate_event` for persisted telemetry on a bounded thread pool.

    `submit()` never blocks on evaluation and never raises; when more than
    `queue_max_depth` evaluations are in flight the new one is dropped and counted.
    In eager mode evaluation runs inline on the caller's thread.
    """

    def __init__(
        self,
        config: DispatcherConfig | None = None,
        *,
        evaluate: Callable[[TelemetryEvent], RuleRunResult] | None = None,
    ):
        self._config = config or get_dispatcher_config()
        self._evaluate = evaluate or _default_evaluate
        self._lock = threading.Lock()
        self._in_flight = 0
        self._stats = DispatcherStats()
        self._worker_pool: ThreadPoolExecutor | None = None
        self._shutdown = False

    @property
    def stats(self) -> DispatcherStats:
        return self._stats

    def submit(self, event: TelemetryEvent) -> bool:
        """Schedule evaluation of `event`; returns False when it was dropped."""
        if self._shutdown:
            logger.warning("Evaluator is shut down; dropping telemetry %s", event.pk)
            self._stats.record_dropped()
            return False

        if self._config.eager:
            self._stats.record_submitted()
            self._run(event, close_connections=False)
            return True

        with self._lock:
            if self._in_flight >= self._config.queue_max_depth:
                self._stats.record_dropped()
                logger.warning(
                    "Evaluator queue full (%d in flight); dropping telemetry %s",
                    self._in_flight,
                    event.pk,
                )
                return False
            self._ensure_worker_pool()
            self._in_flight += 1

        try:
            self._worker_pool.submit(self._run, event)
        except RuntimeError as exc:
            # Pool may be shutting down
            with self._lock:
                self._in_flight -= 1
            self._stats.record_dropped()
            logger.warning("Failed to submit telemetry %s to evaluator pool: %s", event.pk, exc)
            return False
        self._stats.record_submitted()
        return True

    def _ensure_worker_pool(self) -> None:
        """Ensure worker pool is initialized. Must be called with _lock held."""
        if self._worker_pool is None:
            self._worker_pool = ThreadPoolExecutor(
                max_workers=self._config.max_workers,
                thread_name_prefix="rule-evaluator-",
            )

    def _run(self, event: TelemetryEvent, close_connections: bool = True) -> None:
        if close_connections:
            close_old_connections()
        started = perf_counter()
        try:
            result = self._evaluate(event)
        except Exception:
            self._stats.record_failed()
            logger.exception("Rule evaluation for telemetry %s failed", event.pk)
        else:
            self._stats.record_rules_result(
                evaluated=result.evaluated,
                fired=result.fired,
                errors=result.errors,
                eval_ms=(perf_counter() - started) * 1000.0,
                now=timezone.now(),
            )
        finally:
            if close_connections:
                with self._lock:
                    self._in_flight -= 1
                close_old_connections()

    def get_status(self) -> dict[str, Any]:
        """Get evaluator status and statistics."""
        with self._lock:
            in_flight = self._in_flight
        return {
            "config": {
                "max_workers": self._config.max_workers,
                "queue_max_depth": self._config.queue_max_depth,
                "eager": self._config.eager,
            },
            "running": not self._shutdown,
            "in_flight": in_flight,
            "stats": self._stats.as_dict(),
        }

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and release the worker pool."""
        self._shutdown = True
        with self._lock:
            pool, self._worker_pool = self._worker_pool, None
        if pool:
            pool.shutdown(wait=wait)


# Module-level singleton
_dispatcher: RuleEvaluationDispatcher | None = None
_dispatcher_lock = threading.Lock()


def get_dispatcher() -> RuleEvaluationDispatcher:
    """Get or create the singleton evaluator instance."""
    global _dispatcher
    with _dispatcher_lock:
        if _dispatcher is None:
            _dispatcher = RuleEvaluationDispatcher()
        return _dispatcher


def submit_event(event: TelemetryEvent) -> bool:
    return get_dispatcher().submit(event)


def get_dispatcher_status() -> dict[str, Any]:
    """Get evaluator status and statistics."""
    return get_dispatcher().get_status()


def shutdown_dispatcher() -> None:
    """Shutdown the evaluator gracefully."""
    global _dispatcher
    with _dispatcher_lock:
        if _dispatcher is not None:
            _dispatcher.shutdown()
            _dispatcher = None
