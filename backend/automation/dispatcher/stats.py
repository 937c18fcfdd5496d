"""Observability counters for the rule evaluator."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class DispatcherStats:
    """Global evaluator statistics."""

    submitted: int = 0
    dropped: int = 0
    completed: int = 0
    failed: int = 0
    rules_evaluated: int = 0
    rules_fired: int = 0
    rules_errors: int = 0
    last_evaluated_at: datetime | None = None
    eval_ms_last: float = 0.0
    eval_ms_total: float = 0.0

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record_submitted(self) -> None:
        with self._lock:
            self.submitted += 1

    def record_dropped(self, count: int = 1) -> None:
        """Record evaluations dropped due to queue overflow."""
        with self._lock:
            self.dropped += count

    def record_failed(self) -> None:
        with self._lock:
            self.failed += 1

    def record_rules_result(
        self, *, evaluated: int = 0, fired: int = 0, errors: int = 0, eval_ms: float = 0.0, now: datetime
    ) -> None:
        """Record one completed evaluation."""
        eval_f = float(eval_ms) if isinstance(eval_ms, (int, float)) else 0.0
        if eval_f < 0:
            eval_f = 0.0
        with self._lock:
            self.completed += 1
            self.rules_evaluated += evaluated
            self.rules_fired += fired
            self.rules_errors += errors
            self.last_evaluated_at = now
            self.eval_ms_last = eval_f
            self.eval_ms_total += eval_f

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for API/monitoring."""
        with self._lock:
            return {
                "submitted": self.submitted,
                "dropped": self.dropped,
                "completed": self.completed,
                "failed": self.failed,
                "rules_evaluated": self.rules_evaluated,
                "rules_fired": self.rules_fired,
                "rules_errors": self.rules_errors,
                "last_evaluated_at": (
                    self.last_evaluated_at.isoformat() if self.last_evaluated_at else None
                ),
                "eval_ms_last": self.eval_ms_last,
                "eval_ms_total": self.eval_ms_total,
            }

    def reset(self) -> None:
        """Reset all counters (for testing)."""
        with self._lock:
            self.submitted = 0
            self.dropped = 0
            self.completed = 0
            self.failed = 0
            self.rules_evaluated = 0
            self.rules_fired = 0
            self.rules_errors = 0
            self.last_evaluated_at = None
            self.eval_ms_last = 0.0
            self.eval_ms_total = 0.0
