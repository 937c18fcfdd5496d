"""Evaluator configuration dataclass and settings normalization."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class DispatcherConfig:
    """Configuration for the rule evaluation worker pool."""

    max_workers: int = 4  # 1-16
    queue_max_depth: int = 1000
    eager: bool = False


def normalize_dispatcher_config(raw: Any) -> DispatcherConfig:
    """
    Normalize raw settings dict into a typed DispatcherConfig.

    Args:
        raw: Raw settings value (dict or None)

    Returns:
        Validated DispatcherConfig with defaults applied
    """
    if not isinstance(raw, dict):
        return DispatcherConfig()

    max_workers = raw.get("max_workers", 4)
    if not isinstance(max_workers, int) or isinstance(max_workers, bool) or max_workers < 1:
        max_workers = 1
    elif max_workers > 16:
        max_workers = 16

    queue_max_depth = raw.get("queue_max_depth", 1000)
    if not isinstance(queue_max_depth, int) or isinstance(queue_max_depth, bool) or queue_max_depth < 10:
        queue_max_depth = 10

    return DispatcherConfig(
        max_workers=max_workers,
        queue_max_depth=queue_max_depth,
        eager=bool(raw.get("eager", False)),
    )


def get_dispatcher_config() -> DispatcherConfig:
    """Load evaluator configuration from `settings.RULE_EVALUATOR`."""
    from django.conf import settings

    return normalize_dispatcher_config(getattr(settings, "RULE_EVALUATOR", None))
