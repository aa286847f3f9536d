"""Integration tests for the monitor endpoints."""

from fastapi.testclient import TestClient
from monitor import create_app
from shared.settings import CacheSettings, Settings

CACHE_DISABLED = CacheSettings(enabled=False)


def _app(database_url, cache=CACHE_DISABLED):
    return create_app(Settings(database_url=database_url, cache=cache))


class TestRoot:
    def test_root(self, settings):
        with TestClient(_app(settings.database_url)) as client:
            response = client.get("/")

        assert response.status_code == 200
        assert response.json()["service"] == "Brewstore Monitor"


class TestHealth:
    def test_ok_when_cache_is_disabled(self, settings):
        with TestClient(_app(settings.database_url)) as client:
            response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["infrastructure"]["database"]["healthy"] is True
        assert data["infrastructure"]["database"]["summary"]["products"] == 2
        assert data["infrastructure"]["cache"]["enabled"] is False

    def test_degraded_when_cache_is_unreachable(self, settings):
        cache = CacheSettings(url="redis://127.0.0.1:1", retry_limit=0, connect_timeout=0.5)

        with TestClient(_app(settings.database_url, cache)) as client:
            response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["infrastructure"]["cache"]["healthy"] is False
        assert data["infrastructure"]["cache"]["connected"] is False
        assert data["infrastructure"]["cache"]["status"] == "error"

    def test_error_when_database_is_unreachable(self, tmp_path):
        with TestClient(_app(f"sqlite:///{tmp_path}")) as client:
            response = client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "error"
        assert data["infrastructure"]["database"]["healthy"] is False
