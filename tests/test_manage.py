"""Tests for the database management CLI."""

from unittest.mock import patch

import pytest
from datastore.schema import categories, products
from datastore.store import Store
from manage import main
from sqlalchemy.exc import OperationalError


@pytest.fixture()
def database_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'manage.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("REDIS_ENABLED", "false")
    return url


def _counts(url):
    store = Store(url)
    store.connect()
    try:
        return store.count(categories), store.count(products)
    finally:
        store.disconnect()


class TestSchemaCommands:
    def test_setup_db_then_drop_db(self, database_url, capsys):
        main(["setup-db"])
        store = Store(database_url)
        store.connect()
        assert "products" in store.table_names()

        main(["drop-db"])
        assert store.table_names() == []
        store.disconnect()
        assert "Done." in capsys.readouterr().out


class TestDataCommands:
    def test_setup_then_seed(self, database_url):
        main(["setup-db"])
        main(["seed-db"])

        assert _counts(database_url) == (2, 2)

    def test_reset_db_creates_schema_and_seeds(self, database_url):
        main(["reset-db"])
        main(["reset-db"])

        assert _counts(database_url) == (2, 2)

    def test_reset_db_exits_1_when_database_is_unreachable(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path}")

        with pytest.raises(SystemExit) as exc_info:
            main(["reset-db"])

        assert exc_info.value.code == 1


class TestHealthCheck:
    def test_healthy_database_exits_0(self, database_url, capsys):
        main(["reset-db"])

        with pytest.raises(SystemExit) as exc_info:
            main(["health-check"])

        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert "Redis: disabled" in out
        assert "products: 2" in out

    def test_unreachable_database_exits_1(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path}")
        monkeypatch.setenv("REDIS_ENABLED", "0")

        with pytest.raises(SystemExit) as exc_info:
            main(["health-check"])

        assert exc_info.value.code == 1


class TestConnectionCleanup:
    @pytest.mark.parametrize(
        "command, failing",
        [
            ("setup-db", "datastore.store.Store.create_schema"),
            ("drop-db", "datastore.store.Store.drop_schema"),
            ("seed-db", "datastore.lifecycle.DatabaseLifecycle.seed_data"),
        ],
    )
    def test_store_is_disconnected_when_the_command_fails(self, database_url, command, failing):
        error = OperationalError("statement", {}, Exception("disk full"))

        with (
            patch(failing, side_effect=error),
            patch("datastore.store.Store.disconnect", autospec=True) as disconnect,
        ):
            with pytest.raises(OperationalError):
                main([command])

        disconnect.assert_called_once()
