from __future__ import annotations

import sys

from django.conf import settings

_NO_RUNTIME_COMMANDS = ("makemigrations", "migrate", "collectstatic", "shell", "check", "pytest", " test")


def runtime_side_effects_enabled() -> bool:
    """
    Return False when the process should not open broker connections or subscriptions.

    Applies to the test suite and to one-shot management commands.
    """
    if getattr(settings, "IS_TESTING", False):
        return False
    argv = " ".join(sys.argv).lower()
    return not any(token in argv for token in _NO_RUNTIME_COMMANDS)
