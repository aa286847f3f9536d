"""Integration tests for the store gateway on SQLite."""

import pytest
from datastore.exceptions import StoreNotConnectedError
from datastore.schema import categories, products
from datastore.seed import COFFEE_CATEGORY_ID
from datastore.store import Store
from sqlalchemy.exc import IntegrityError


@pytest.fixture()
def scratch_store(tmp_path):
    store = Store(f"sqlite:///{tmp_path / 'scratch.db'}")
    store.connect()
    store.create_schema()

    yield store

    store.disconnect()


class TestConnection:
    def test_operations_require_a_connection(self, tmp_path):
        store = Store(f"sqlite:///{tmp_path / 'never.db'}")

        with pytest.raises(StoreNotConnectedError):
            store.count(categories)

    def test_disconnect_is_idempotent(self, scratch_store):
        scratch_store.disconnect()
        scratch_store.disconnect()

        assert scratch_store.connected is False

    def test_reconnect_after_disconnect(self, scratch_store):
        scratch_store.disconnect()
        scratch_store.connect()

        assert scratch_store.count(categories) == 0

    def test_unreachable_database_fails_on_connect(self, tmp_path):
        from sqlalchemy.exc import OperationalError

        store = Store(f"sqlite:///{tmp_path}")

        with pytest.raises(OperationalError):
            store.connect()
        assert store.connected is False


class TestSchema:
    def test_create_schema_creates_every_table(self, scratch_store):
        assert scratch_store.table_names() == sorted(scratch_store.metadata.tables)

    def test_create_schema_is_safe_to_repeat(self, scratch_store):
        scratch_store.create_schema()

        assert "products" in scratch_store.table_names()

    def test_drop_schema(self, scratch_store):
        scratch_store.drop_schema()

        assert scratch_store.table_names() == []


class TestData:
    def test_create_many_and_count(self, scratch_store):
        written = scratch_store.create_many(
            categories,
            [
                {"id": "cat-1", "name": "Coffee", "slug": "coffee"},
                {"id": "cat-2", "name": "Tea", "slug": "tea"},
            ],
        )

        assert written == 2
        assert scratch_store.count(categories) == 2

    def test_create_many_with_no_rows(self, scratch_store):
        assert scratch_store.create_many(categories, []) == 0

    def test_delete_many_returns_deleted_count(self, scratch_store):
        scratch_store.create_many(categories, [{"id": "cat-1", "name": "Coffee", "slug": "coffee"}])

        assert scratch_store.delete_many(categories) == 1
        assert scratch_store.count(categories) == 0

    def test_foreign_keys_are_enforced(self, scratch_store):
        with pytest.raises(IntegrityError):
            scratch_store.create_many(
                products,
                [
                    {
                        "id": "prod-1",
                        "name": "Orphan",
                        "slug": "orphan",
                        "sku": "ORPHAN-001",
                        "base_price": 1,
                        "stock_quantity": 1,
                        "category_id": "missing",
                    }
                ],
            )

    def test_parent_delete_blocked_while_children_exist(self, store):
        with pytest.raises(IntegrityError):
            store.delete_many(categories)

        assert store.count(categories) == 2

    def test_select_rows_filters_by_column(self, store):
        rows = store.select_rows(categories, id=COFFEE_CATEGORY_ID)

        assert [row["slug"] for row in rows] == ["coffee"]

    def test_query_raw(self, store):
        rows = store.query_raw("SELECT slug FROM products WHERE weight > :weight", weight=200)

        assert rows == [{"slug": "arabica-premium"}]
