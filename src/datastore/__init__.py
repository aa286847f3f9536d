"""Relational data layer: store gateway, schema, and test database lifecycle."""

from datastore.exceptions import DatabaseSetupError, DatastoreError
from datastore.lifecycle import DatabaseLifecycle, LifecycleState
from datastore.store import Store

__all__ = ["DatabaseLifecycle", "DatabaseSetupError", "DatastoreError", "LifecycleState", "Store"]
