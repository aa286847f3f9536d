import pytest


@pytest.fixture()
def lifecycle(store):
    from datastore.lifecycle import DatabaseLifecycle

    return DatabaseLifecycle(store)


@pytest.fixture(autouse=True)
def run_around_tests(request):
    """Restore the seeded state after every test that touched the session database."""
    yield

    if "store" not in request.fixturenames:
        return

    from datastore.lifecycle import DatabaseLifecycle

    lifecycle = DatabaseLifecycle(request.getfixturevalue("store"))
    lifecycle.reset_database()
    lifecycle.seed_data()
