"""Exceptions raised by the relational data layer."""


class DatastoreError(Exception):
    """Base class for data layer failures."""


class StoreNotConnectedError(DatastoreError):
    """An operation was attempted on a store that is not connected."""


class DatabaseSetupError(DatastoreError):
    """Test database setup failed; tests must not run against this store.

    ``stage`` is the lifecycle step that failed: ``connect``, ``reset`` or ``seed``.
    """

    def __init__(self, stage, message):
        super().__init__(f"Database setup failed during {stage}: {message}")
        self.stage = stage
