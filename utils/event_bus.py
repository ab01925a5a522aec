"""
Observer list for connection status changes reported by the publish transport.
"""

import logging
from collections.abc import Callable

logger_status_bus = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]


class StatusBus:
    """Fans each status string out to every subscriber, in subscription order."""

    def __init__(self):
        self.subscribers: list[StatusCallback] = []
        self.last_status: str | None = None

    def subscribe(self, callback: StatusCallback) -> None:
        """Subscribe to status changes."""
        if not callable(callback):
            raise TypeError("Callback must be callable.")
        if callback in self.subscribers:
            logger_status_bus.warning(f"Callback {_name_of(callback)} already subscribed to status changes")
            return
        self.subscribers.append(callback)
        logger_status_bus.debug(f"Callback {_name_of(callback)} subscribed to status changes")

    def unsubscribe(self, callback: StatusCallback) -> None:
        """Remove a callback; unknown callbacks only log a warning."""
        try:
            self.subscribers.remove(callback)
            logger_status_bus.debug(f"Callback {_name_of(callback)} unsubscribed from status changes")
        except ValueError:
            logger_status_bus.warning(f"Callback {_name_of(callback)} not found among status subscribers")

    def clear(self) -> None:
        self.subscribers.clear()

    def publish(self, status: str) -> None:
        """Notify subscribers. A failing subscriber never prevents the others from running."""
        self.last_status = status
        logger_status_bus.info(f"Connection status: {status}")
        for callback in list(self.subscribers):
            try:
                callback(status)
            except Exception as e:
                logger_status_bus.error(
                    f"Error in status subscriber '{_name_of(callback)}' for status {status!r}: {e}",
                    exc_info=False,
                )


def _name_of(callback) -> str:
    return getattr(callback, "__name__", type(callback).__name__)
