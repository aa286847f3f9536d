"""Health checks for the relational store and the optional cache."""

from dataclasses import dataclass, field

import structlog
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from cache_client.client import CacheConnectionManager
from datastore.fixtures import data_summary
from datastore.store import Store

logger = structlog.get_logger(__name__)

HEALTH_CHECK_KEY = "health_check"


@dataclass
class DatabaseHealth:
    healthy: bool
    version: str | None = None
    tables: list[str] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)
    error: str | None = None


@dataclass
class CacheHealth:
    enabled: bool
    healthy: bool = False
    test_value: str | None = None
    error: str | None = None


def _server_version(store: Store) -> str:
    if store.engine.dialect.name == "sqlite":
        rows = store.query_raw("SELECT sqlite_version() AS version")
    else:
        rows = store.query_raw("SELECT version() AS version")
    return str(rows[0]["version"])


def check_database(store: Store) -> DatabaseHealth:
    """Connect, then report server version, tables and row counts."""
    logger.info("Checking database health")
    try:
        store.connect()
        version = _server_version(store)
        tables = store.table_names()
        summary = data_summary(store)
    except SQLAlchemyError as exc:
        logger.error("Database connection failed", error=str(exc))
        return DatabaseHealth(healthy=False, error=str(exc))

    logger.info("Database connected", version=version, table_count=len(tables), **summary)
    return DatabaseHealth(healthy=True, version=version, tables=tables, summary=summary)


def check_cache(manager: CacheConnectionManager) -> CacheHealth:
    """Ping the cache and round-trip a test key. The cache is optional, so this never raises."""
    if not manager.is_enabled():
        logger.info("Redis disabled, skipping cache health check")
        return CacheHealth(enabled=False)

    if not manager.ping():
        return CacheHealth(enabled=True, error="ping failed")

    try:
        client = manager.get_client()
        client.set(HEALTH_CHECK_KEY, "ok")
        value = client.get(HEALTH_CHECK_KEY)
    except RedisError as exc:
        logger.warning("Redis connection failed (optional service)", error=str(exc))
        return CacheHealth(enabled=True, error=str(exc))

    test_value = value.decode() if isinstance(value, bytes) else value
    logger.info("Redis connected", test_value=test_value)
    return CacheHealth(enabled=True, healthy=test_value == "ok", test_value=test_value)
