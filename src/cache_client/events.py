"""Connection states and an observer registry for cache connection events."""

import threading
from collections import defaultdict
from collections.abc import Callable
from enum import Enum

import structlog

logger = structlog.get_logger(__name__)


class ConnectionStatus(Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    READY = "ready"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"
    ERROR = "error"


class ConnectionEvent(Enum):
    CONNECT = "connect"
    READY = "ready"
    ERROR = "error"
    CLOSE = "close"
    RECONNECTING = "reconnecting"


class ConnectionEvents:
    """Listeners keyed by ``ConnectionEvent``.

    Listeners are side effects only: one that raises is logged and skipped,
    and never interrupts the connection that emitted the event.
    """

    def __init__(self):
        self._listeners: dict[ConnectionEvent, list[Callable]] = defaultdict(list)
        self._lock = threading.Lock()

    def on(self, event: ConnectionEvent, listener: Callable) -> None:
        with self._lock:
            self._listeners[event].append(listener)

    def off(self, event: ConnectionEvent, listener: Callable) -> None:
        with self._lock:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

    def emit(self, event: ConnectionEvent, **payload) -> None:
        with self._lock:
            listeners = list(self._listeners[event])

        for listener in listeners:
            try:
                listener(**payload)
            except Exception:
                logger.exception("Connection event listener failed", connection_event=event.value)
