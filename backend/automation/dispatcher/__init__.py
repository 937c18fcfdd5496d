"""
Rule evaluation dispatcher.

Receives persisted telemetry events from the ingestion pipeline and evaluates
active automation rules against them on a bounded worker pool.
"""

from .config import DispatcherConfig, get_dispatcher_config, normalize_dispatcher_config
from .dispatcher import (
    RuleEvaluationDispatcher,
    get_dispatcher,
    get_dispatcher_status,
    shutdown_dispatcher,
    submit_event,
)

__all__ = [
    "DispatcherConfig",
    "RuleEvaluationDispatcher",
    "get_dispatcher",
    "get_dispatcher_config",
    "get_dispatcher_status",
    "normalize_dispatcher_config",
    "shutdown_dispatcher",
    "submit_event",
]
