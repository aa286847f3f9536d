"""Brewstore database management CLI.

Provides commands to create, drop, reset and seed the storefront schema,
and a health check for the database and the optional Redis cache.

Usage:
    python src/manage.py setup-db      # Create all tables
    python src/manage.py drop-db       # Drop all tables
    python src/manage.py reset-db      # Reset and seed, as the test session does
    python src/manage.py seed-db       # Insert the fixed seed rows
    python src/manage.py health-check  # Check PostgreSQL and Redis
"""

import argparse
import sys

from shared.logging import add_context, configure_logging
from shared.settings import Settings


def setup_database(settings):
    from datastore.store import Store

    store = Store(settings.database_url)
    store.connect()
    try:
        print("Creating database schema...")
        store.create_schema()
    finally:
        store.disconnect()
    print("Done.")


def drop_database(settings):
    from datastore.store import Store

    store = Store(settings.database_url)
    store.connect()
    try:
        print("Dropping database schema...")
        store.drop_schema()
    finally:
        store.disconnect()
    print("Done.")


def reset_database(settings):
    """Run the full test-session setup; exits with status 1 if it fails."""
    from datastore.lifecycle import run_global_setup, run_global_teardown

    lifecycle = run_global_setup(settings)
    run_global_teardown(lifecycle)
    print("Database reset and seeded.")


def seed_database(settings):
    from datastore.lifecycle import DatabaseLifecycle
    from datastore.store import Store

    store = Store(settings.database_url)
    store.connect()
    try:
        created = DatabaseLifecycle(store).seed_data()
    finally:
        store.disconnect()
    for table, count in created.items():
        print(f"  {table}: {count} rows")
    print("Done.")


def health_check(settings):
    """Check both stores. Returns the process exit status."""
    from cache_client.client import CacheConnectionManager
    from datastore.health import check_cache, check_database
    from datastore.store import Store

    print("================================")
    print("BREWSTORE DATABASE HEALTH CHECK")
    print("================================")

    store = Store(settings.database_url)
    database = check_database(store)
    if database.healthy:
        print("PostgreSQL: connected")
        print(f"  Version: {database.version}")
        print(f"  Tables ({len(database.tables)}): {', '.join(database.tables)}")
        for name, count in database.summary.items():
            print(f"  {name}: {count}")
    else:
        print("PostgreSQL: connection failed")
        print(f"  Error: {database.error}")
    store.disconnect()

    manager = CacheConnectionManager(settings.cache)
    cache = check_cache(manager)
    if not cache.enabled:
        print("Redis: disabled")
    elif cache.healthy:
        print("Redis: connected")
        print(f"  Test value: {cache.test_value}")
    else:
        print("Redis: connection failed (optional service)")
        print(f"  Error: {cache.error}")
    manager.close()

    if not database.healthy:
        print("Database health check failed")
        return 1

    print("Database is healthy and ready!")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Brewstore database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("reset-db", help="Delete all rows and insert the seed data")
    subparsers.add_parser("seed-db", help="Insert the seed categories and products")
    subparsers.add_parser("health-check", help="Check database and cache connectivity")

    args = parser.parse_args(argv)

    add_context(command=args.command)
    settings = Settings.from_env()

    if args.command == "setup-db":
        setup_database(settings)
    elif args.command == "drop-db":
        drop_database(settings)
    elif args.command == "reset-db":
        reset_database(settings)
    elif args.command == "seed-db":
        seed_database(settings)
    elif args.command == "health-check":
        sys.exit(health_check(settings))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    configure_logging()
    main()
