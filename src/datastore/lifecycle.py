"""Test database lifecycle: connect, reset, seed, and tear down.

Runs once per test session, before any test touches the database and once
more after the last test has finished. A session that cannot reach a clean,
seeded database must not run at all, so every setup failure is fatal, while
teardown failures are only logged.
"""

from enum import Enum

import structlog
from sqlalchemy.exc import SQLAlchemyError

from datastore.exceptions import DatabaseSetupError
from datastore.schema import RESET_ORDER, categories, products
from datastore.seed import SEED_CATEGORIES, SEED_PRODUCTS
from datastore.store import Store
from shared.settings import Settings

logger = structlog.get_logger(__name__)


class LifecycleState(Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    RESETTING = "resetting"
    SEEDING = "seeding"
    READY_FOR_TESTS = "ready_for_tests"
    DISCONNECTING = "disconnecting"
    CLOSED = "closed"
    FAILED = "failed"


class DatabaseLifecycle:
    """Drives a ``Store`` through one test session."""

    def __init__(self, store: Store):
        self.store = store
        self.state = LifecycleState.UNINITIALIZED

    def _transition(self, state: LifecycleState) -> None:
        logger.debug("Database lifecycle transition", previous=self.state.value, current=state.value)
        self.state = state

    def _fail(self, stage: str, exc: Exception):
        self.state = LifecycleState.FAILED
        logger.error("Test setup failed", stage=stage, error=str(exc))
        raise DatabaseSetupError(stage, str(exc)) from exc

    def set_up(self) -> None:
        """Connect, then reset and seed. Raises ``DatabaseSetupError`` on any failure."""
        logger.info("Setting up test environment")

        self._transition(LifecycleState.CONNECTING)
        try:
            self.store.connect()
            self.store.create_schema()
        except SQLAlchemyError as exc:
            self._fail("connect", exc)
        logger.info("Connected to test database")

        self._transition(LifecycleState.RESETTING)
        try:
            self.reset_database()
        except SQLAlchemyError as exc:
            self._fail("reset", exc)
        logger.info("Test database reset complete")

        self._transition(LifecycleState.SEEDING)
        try:
            self.seed_data()
        except SQLAlchemyError as exc:
            self._fail("seed", exc)
        logger.info("Test data seeded")

        self._transition(LifecycleState.READY_FOR_TESTS)

    def reset_database(self) -> dict[str, int]:
        """Delete every row of every table, deepest children first.

        The first failing delete propagates; later tables are left untouched.
        """
        deleted = {}
        for table in RESET_ORDER:
            deleted[table.name] = self.store.delete_many(table)
            logger.debug("Cleared table", table=table.name, deleted=deleted[table.name])
        return deleted

    def seed_data(self) -> dict[str, int]:
        """Insert the fixed categories, then the fixed products that reference them."""
        created = {
            categories.name: self.store.create_many(categories, SEED_CATEGORIES),
            products.name: self.store.create_many(products, SEED_PRODUCTS),
        }
        logger.info("Test categories and products created", **created)
        return created

    def tear_down(self) -> None:
        """Release the database connection. Never raises."""
        logger.info("Cleaning up test environment")
        self._transition(LifecycleState.DISCONNECTING)
        try:
            self.store.disconnect()
        except Exception as exc:
            logger.error("Test teardown failed", error=str(exc))
        else:
            logger.info("Disconnected from test database")
        finally:
            self.state = LifecycleState.CLOSED


def run_global_setup(settings: Settings | None = None) -> DatabaseLifecycle:
    """Set up the test database for a whole session, or exit the process with status 1."""
    settings = settings or Settings.from_env()
    lifecycle = DatabaseLifecycle(Store(settings.database_url))

    try:
        lifecycle.set_up()
    except DatabaseSetupError:
        lifecycle.tear_down()
        raise SystemExit(1) from None

    return lifecycle


def run_global_teardown(lifecycle: DatabaseLifecycle) -> None:
    lifecycle.tear_down()
