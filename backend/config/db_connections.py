from __future__ import annotations

import threading

from django.db import close_old_connections


def maybe_close_old_connections() -> None:
    """
    Close stale DB connections for background-thread callbacks.

    Django `TestCase` wraps each test in a transaction; closing the connection from the main
    thread would break it mid-transaction, so this is a no-op there.
    """
    if threading.current_thread() is threading.main_thread():
        return
    close_old_connections()
