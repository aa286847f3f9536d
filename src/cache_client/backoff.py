"""Linear, capped reconnection backoff for the Redis client."""

from collections.abc import Callable

import structlog
from redis.backoff import AbstractBackoff

logger = structlog.get_logger(__name__)


def reconnect_delay_ms(attempt: int, base_ms: int, ceiling_ms: int) -> int:
    """Delay before reconnect ``attempt`` (1-based): ``attempt * base``, capped at ``ceiling``."""
    return min(attempt * base_ms, ceiling_ms)


class ReconnectBackoff(AbstractBackoff):
    """Backoff used by redis-py's ``Retry`` between reconnect attempts.

    redis-py calls ``compute`` with the number of consecutive failures before
    it sleeps and retries, so each call is one reconnect attempt. The optional
    ``on_attempt`` callback receives ``(attempt, delay_ms)``.
    """

    def __init__(self, base_ms: int, ceiling_ms: int, on_attempt: Callable[[int, int], None] | None = None):
        self.base_ms = base_ms
        self.ceiling_ms = ceiling_ms
        self.on_attempt = on_attempt

    def __deepcopy__(self, memo):
        # Every pooled connection deep-copies its Retry; share one stateless backoff
        return self

    def compute(self, failures: int) -> float:
        delay_ms = reconnect_delay_ms(failures, self.base_ms, self.ceiling_ms)
        logger.info("Redis reconnecting", attempt=failures, delay_ms=delay_ms)
        if self.on_attempt is not None:
            self.on_attempt(failures, delay_ms)
        return delay_ms / 1000
