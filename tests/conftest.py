import os
from pathlib import Path

import pytest

_lifecycle_key = pytest.StashKey[object]()


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def _is_xdist_worker(config) -> bool:
    return hasattr(config, "workerinput")


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Points the suite at a throwaway SQLite database unless DATABASE_URL is set,
    then resets and seeds it once for the whole session. Under pytest-xdist
    only the controlling process runs the setup.
    """
    os.environ["BREWSTORE_ENV"] = session.config.option.env

    if not os.environ.get("DATABASE_URL"):
        db_dir = Path(session.config.rootpath) / ".pytest_cache"
        db_dir.mkdir(exist_ok=True)
        os.environ["DATABASE_URL"] = f"sqlite:///{db_dir / 'brewstore_test.db'}"

    from shared.logging import configure_logging

    configure_logging()

    if _is_xdist_worker(session.config):
        return

    from datastore.lifecycle import run_global_setup

    try:
        session.config.stash[_lifecycle_key] = run_global_setup()
    except SystemExit as exc:
        pytest.exit("Test database setup failed; see the log above", returncode=exc.code)


def pytest_sessionfinish(session, exitstatus):
    lifecycle = session.config.stash.get(_lifecycle_key, None)
    if lifecycle is None:
        return

    from datastore.lifecycle import run_global_teardown

    run_global_teardown(lifecycle)


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = item.path

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def settings():
    from shared.settings import Settings

    return Settings.from_env()


@pytest.fixture(scope="session")
def store(settings):
    """A connection to the session's seeded test database."""
    from datastore.store import Store

    store = Store(settings.database_url)
    store.connect()

    yield store

    store.disconnect()
