"""In-process notification that a count changed.

Every service that mutates a count publishes its id here after the write
commits; refresh views subscribe to drop their cached snapshot.
"""

import logging
from typing import Callable

logger = logging.getLogger(__name__)

ChangeListener = Callable[[int], None]


class ChangeFeed:
    """Fan-out of "count N changed" notifications to registered listeners."""

    def __init__(self):
        self._listeners: list[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, batch_id: int) -> None:
        """Notify every listener that ``batch_id`` changed.

        A failing listener is logged and skipped: the write it reports on has
        already committed.
        """
        for listener in list(self._listeners):
            try:
                listener(batch_id)
            except Exception:
                logger.exception("Change listener failed batch_id=%s", batch_id)
