"""Gateway to the relational store.

The rest of the data layer only talks to the database through ``Store``:
connect, disconnect, count, create_many, delete_many and raw queries, plus
the schema helpers used when bootstrapping an empty database.
"""

import structlog
from sqlalchemy import Table, create_engine, delete, event, func, insert, inspect, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from datastore.exceptions import StoreNotConnectedError
from datastore.schema import metadata as storefront_metadata

logger = structlog.get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ships with foreign key enforcement switched off per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Store:
    """A lazily connected SQLAlchemy engine bound to one database URL."""

    def __init__(self, database_url: str, metadata=storefront_metadata):
        self.database_url = database_url
        self.metadata = metadata
        self._engine: Engine | None = None

    @property
    def connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StoreNotConnectedError("Store is not connected; call connect() first")
        return self._engine

    @property
    def safe_url(self) -> str:
        return self.engine.url.render_as_string(hide_password=True)

    def connect(self) -> None:
        """Open the engine and prove the database answers. No-op when connected."""
        if self._engine is not None:
            return

        engine = create_engine(self.database_url, pool_pre_ping=True)
        if engine.dialect.name == "sqlite":
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)

        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError:
            engine.dispose()
            raise

        self._engine = engine
        logger.info("Connected to database", url=self.safe_url)

    def disconnect(self) -> None:
        """Release every pooled connection. Safe to call when already disconnected."""
        if self._engine is None:
            return

        url = self.safe_url
        engine, self._engine = self._engine, None
        engine.dispose()
        logger.info("Disconnected from database", url=url)

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------
    def create_schema(self) -> None:
        """Create any missing tables."""
        self.metadata.create_all(self.engine)

    def drop_schema(self) -> None:
        self.metadata.drop_all(self.engine)

    def table_names(self) -> list[str]:
        return sorted(inspect(self.engine).get_table_names())

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------
    def count(self, table: Table) -> int:
        with self.engine.connect() as connection:
            return connection.execute(select(func.count()).select_from(table)).scalar_one()

    def create_many(self, table: Table, rows: list[dict]) -> int:
        """Insert all rows in one transaction and return how many were written."""
        if not rows:
            return 0

        with self.engine.begin() as connection:
            connection.execute(insert(table), rows)
        return len(rows)

    def delete_many(self, table: Table) -> int:
        """Delete every row of ``table`` in one transaction."""
        with self.engine.begin() as connection:
            deleted = connection.execute(delete(table)).rowcount
        return deleted

    def select_rows(self, table: Table, **filters) -> list[dict]:
        """Return rows of ``table`` matching all equality filters, as dicts."""
        query = select(table)
        for column, value in filters.items():
            query = query.where(table.c[column] == value)

        with self.engine.connect() as connection:
            return [dict(row) for row in connection.execute(query).mappings()]

    def query_raw(self, sql: str, **params) -> list[dict]:
        with self.engine.connect() as connection:
            return [dict(row) for row in connection.execute(text(sql), params).mappings()]
