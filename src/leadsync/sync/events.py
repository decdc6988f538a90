"""Callback registry for sync status observers."""

import logging
from typing import Callable, List

from .models import SyncEvent


logger = logging.getLogger(__name__)


SyncListener = Callable[[SyncEvent], None]


class SyncEventBus:
    """Delivers :class:`SyncEvent` objects to subscribed callbacks in order."""

    def __init__(self):
        self._listeners: List[SyncListener] = []

    def subscribe(self, listener: SyncListener) -> Callable[[], None]:
        """Register a listener.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe():
            self.unsubscribe(listener)

        return unsubscribe

    def unsubscribe(self, listener: SyncListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event: SyncEvent):
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Sync listener {listener!r} failed: {e}")
