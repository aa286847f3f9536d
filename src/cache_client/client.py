"""Lifecycle management for the shared Redis connection.

``CacheConnectionManager`` owns one lazily created ``redis.Redis`` client per
process. The client retries commands through reconnects with a linear,
capped backoff, checks that the server is ready on every fresh connection,
and publishes connection transitions through ``ConnectionEvents``.

Caching is an optional accelerator: every connection-level failure is
logged where it happens and reaches callers only as a ``False`` from
``ping``/``is_connected``.
"""

import threading

import redis
import structlog
from redis.connection import Connection, SSLConnection, UnixDomainSocketConnection
from redis.exceptions import BusyLoadingError, ConnectionError, ReadOnlyError, RedisError, TimeoutError
from redis.retry import Retry
from redis.utils import str_if_bytes

from cache_client.backoff import ReconnectBackoff
from cache_client.events import ConnectionEvent, ConnectionEvents, ConnectionStatus
from shared.settings import CacheSettings

logger = structlog.get_logger(__name__)

# Errors that trigger a reconnect and a retry of the failed command. READONLY
# replies come from a replica promoted or demoted underneath us.
RECONNECT_ERRORS = (ConnectionError, TimeoutError, ReadOnlyError)


def check_ready(connection: Connection) -> None:
    """Refuse a connection whose server is still loading its dataset."""
    connection.send_command("INFO", "persistence")
    info = str_if_bytes(connection.read_response())
    for line in info.splitlines():
        if line.strip() == "loading:1":
            raise BusyLoadingError("Redis is loading the dataset in memory")


class ConnectionObserver:
    """Connection initializer that reports transitions to ``ConnectionEvents``.

    Installed as redis-py's ``redis_connect_func``, so it runs on every new
    socket, after the TCP connect and in place of the default handshake.
    """

    def __init__(self, events: ConnectionEvents, ready_check: bool = True):
        self.events = events
        self.ready_check = ready_check
        self.detached = False

    def __call__(self, connection: Connection) -> None:
        self._emit(ConnectionEvent.CONNECT)
        connection.on_connect()
        if self.ready_check:
            check_ready(connection)

        connection._announced_ready = True
        self._emit(ConnectionEvent.READY)

    def detach(self) -> None:
        """Stop reporting. Connections of a closed client may outlive it."""
        self.detached = True

    def _emit(self, event: ConnectionEvent, **payload) -> None:
        if not self.detached:
            self.events.emit(event, **payload)

    def connection_failed(self, error: Exception) -> None:
        self._emit(ConnectionEvent.ERROR, error=error)

    def connection_closed(self) -> None:
        self._emit(ConnectionEvent.CLOSE)

    def reconnect_attempted(self, attempt: int, delay_ms: int) -> None:
        self._emit(ConnectionEvent.RECONNECTING, attempt=attempt, delay_ms=delay_ms)


class ObservedConnectionMixin:
    """Reports failed connects and closed sockets to the ``ConnectionObserver``."""

    _announced_ready = False

    @property
    def observer(self) -> ConnectionObserver | None:
        observer = self.redis_connect_func
        return observer if isinstance(observer, ConnectionObserver) else None

    def connect(self, *args, **kwargs):
        try:
            super().connect(*args, **kwargs)
        except RedisError as exc:
            if self.observer is not None:
                self.observer.connection_failed(exc)
            raise

    def disconnect(self, *args, **kwargs):
        super().disconnect(*args, **kwargs)
        if self._announced_ready:
            self._announced_ready = False
            if self.observer is not None:
                self.observer.connection_closed()


class ObservedConnection(ObservedConnectionMixin, Connection):
    pass


class ObservedSSLConnection(ObservedConnectionMixin, SSLConnection):
    pass


class ObservedUnixConnection(ObservedConnectionMixin, UnixDomainSocketConnection):
    pass


_CONNECTION_CLASSES = {
    "redis": ObservedConnection,
    "rediss": ObservedSSLConnection,
    "unix": ObservedUnixConnection,
}


class CacheConnectionManager:
    """Owns the process-wide Redis client.

    Construct one at the composition root and hand it to whatever needs the
    cache; tests build their own with the settings they want.
    """

    def __init__(self, settings: CacheSettings, events: ConnectionEvents | None = None):
        self.settings = settings
        self.events = events or ConnectionEvents()
        self.status = ConnectionStatus.UNINITIALIZED
        self.retry_attempts = 0

        self._client: redis.Redis | None = None
        self._observer: ConnectionObserver | None = None
        self._lock = threading.Lock()

        self.events.on(ConnectionEvent.CONNECT, self._on_connect)
        self.events.on(ConnectionEvent.READY, self._on_ready)
        self.events.on(ConnectionEvent.ERROR, self._on_error)
        self.events.on(ConnectionEvent.CLOSE, self._on_close)
        self.events.on(ConnectionEvent.RECONNECTING, self._on_reconnecting)

    # ------------------------------------------------------------------
    # Status tracking
    # ------------------------------------------------------------------
    def _on_connect(self):
        self.status = ConnectionStatus.CONNECTING
        logger.info("Redis client connected")

    def _on_ready(self):
        self.status = ConnectionStatus.READY
        self.retry_attempts = 0
        logger.info("Redis client ready")

    def _on_error(self, error):
        self.status = ConnectionStatus.ERROR
        logger.error("Redis client error", error=str(error))

    def _on_close(self):
        self.status = ConnectionStatus.CLOSED
        logger.warning("Redis client connection closed")

    def _on_reconnecting(self, attempt, delay_ms):
        self.status = ConnectionStatus.RECONNECTING
        self.retry_attempts = attempt

    # ------------------------------------------------------------------
    # Client lifecycle
    # ------------------------------------------------------------------
    def get_client(self) -> redis.Redis:
        """Return the shared client, creating it on first use."""
        client = self._client
        if client is not None:
            return client

        with self._lock:
            if self._client is None:
                self._client = self._create_client()
            return self._client

    def _create_client(self) -> redis.Redis:
        settings = self.settings
        logger.info("Connecting to Redis", url=settings.safe_url)

        scheme = settings.url.split("://", 1)[0].lower()
        if scheme not in _CONNECTION_CLASSES:
            raise ValueError(f"Unsupported Redis URL scheme: {scheme!r}")

        observer = ConnectionObserver(self.events, ready_check=settings.ready_check)
        backoff = ReconnectBackoff(
            settings.backoff_base_ms,
            settings.backoff_ceiling_ms,
            on_attempt=observer.reconnect_attempted,
        )
        reconnect_errors = RECONNECT_ERRORS if settings.reconnect_on_error else ()
        # Without the offline queue, commands issued while disconnected fail at once
        retries = settings.retry_limit if settings.offline_queue else 0

        client = redis.Redis.from_url(
            settings.url,
            connection_class=_CONNECTION_CLASSES[scheme],
            redis_connect_func=observer,
            retry=Retry(backoff, retries, supported_errors=reconnect_errors),
            retry_on_error=list(reconnect_errors),
            socket_connect_timeout=settings.connect_timeout,
        )
        self._observer = observer
        self.status = ConnectionStatus.CONNECTING
        return client

    def close(self) -> None:
        """Shut the client down gracefully. No-op when no client exists."""
        with self._lock:
            client, self._client = self._client, None
            observer, self._observer = self._observer, None

        if client is None:
            return

        logger.info("Closing Redis connection")
        try:
            # In-flight commands keep their connections until they finish
            client.connection_pool.disconnect(inuse_connections=False)
        except RedisError as exc:
            logger.error("Error while closing Redis connection", error=str(exc))
        finally:
            # Sockets still serving commands close on garbage collection, unobserved
            if observer is not None:
                observer.detach()

        self.status = ConnectionStatus.CLOSED
        logger.info("Redis connection closed")

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------
    def is_connected(self) -> bool:
        return self.status is ConnectionStatus.READY

    def ping(self) -> bool:
        """Round-trip a PING, creating the client if needed. Never raises."""
        try:
            result = self.get_client().ping()
        except (RedisError, OSError, ValueError) as exc:
            logger.error("Redis ping failed", error=str(exc))
            return False

        logger.debug("Redis ping", result=result)
        return result is True

    def is_enabled(self) -> bool:
        return self.settings.enabled
