"""Lifecycle events raised while an action commits."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

EventCallback = Callable[..., None]


class EventBus:
    """Per-registry hooks into action commits.

    Listeners are called in the committing thread with ``action``, ``log``,
    ``obj`` and ``context`` keywords. A failing listener is logged and
    skipped; the commit outcome stays as recorded on the log.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[EventCallback]] = defaultdict(list)

    def on(self, event: str, callback: EventCallback) -> None:
        """Subscribe ``callback`` to one of the ACTION_* events."""
        self._listeners[event].append(callback)

    def off(self, event: str, callback: EventCallback) -> None:
        try:
            self._listeners[event].remove(callback)
        except ValueError:
            pass

    def emit(self, event: str, **kwargs: Any) -> None:
        for callback in list(self._listeners.get(event, [])):
            try:
                callback(**kwargs)
            except Exception:
                logger.exception("Listener for %s failed", event)


# Emitted once the created log is stored, before gating
ACTION_STARTED = "action_started"
# Emitted after the terminal log is saved
ACTION_FINISHED = "action_finished"
ACTION_ABORTED = "action_aborted"
