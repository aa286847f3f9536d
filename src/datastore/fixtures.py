"""Test data helpers layered on top of the seeded database."""

import uuid
from datetime import UTC, datetime
from decimal import Decimal

from datastore.lifecycle import DatabaseLifecycle
from datastore.schema import categories, order_items, orders, products, users
from datastore.store import Store

TEST_USERS = {
    "customer": {
        "id": "11111111-2222-3333-4444-555555555555",
        "email": "customer@test.com",
        "full_name": "Test Customer",
        "role": "CUSTOMER",
        "email_verified": True,
        "is_active": True,
    },
    "admin": {
        "id": "22222222-3333-4444-5555-666666666666",
        "email": "admin@test.com",
        "full_name": "Test Admin",
        "role": "ADMIN",
        "email_verified": True,
        "is_active": True,
    },
    "staff": {
        "id": "33333333-4444-5555-6666-777777777777",
        "email": "staff@test.com",
        "full_name": "Test Staff",
        "role": "STAFF",
        "email_verified": True,
        "is_active": True,
    },
}

TEST_SHIPPING_ADDRESS = {
    "full_name": "Test Customer",
    "phone": "0123456789",
    "address": "123 Test Street",
    "city": "Test City",
    "state": "Test State",
    "postal_code": "12345",
    "country": "Vietnam",
}

TAX_AMOUNT = Decimal("2.00")
SHIPPING_AMOUNT = Decimal("5.00")


def create_test_users(store: Store) -> dict[str, dict]:
    """Insert the test users that are not already present and return all three."""
    existing = {row["id"] for row in store.select_rows(users)}
    missing = [user for user in TEST_USERS.values() if user["id"] not in existing]
    store.create_many(users, missing)

    return {role: store.select_rows(users, id=user["id"])[0] for role, user in TEST_USERS.items()}


def create_test_order(store: Store, user_id: str, product_id: str, quantity: int = 1) -> dict:
    """Place a pending cash-on-delivery order for ``quantity`` units of one product."""
    matches = store.select_rows(products, id=product_id)
    if not matches:
        raise ValueError(f"Unknown product: {product_id}")
    product = matches[0]

    subtotal = product["base_price"] * quantity
    order = {
        "id": str(uuid.uuid4()),
        "user_id": user_id,
        "order_number": f"ORD-{datetime.now(UTC):%Y%m%d%H%M%S%f}",
        "subtotal": subtotal,
        "tax_amount": TAX_AMOUNT,
        "shipping_amount": SHIPPING_AMOUNT,
        "total_amount": subtotal + TAX_AMOUNT + SHIPPING_AMOUNT,
        "status": "PENDING",
        "payment_method": "CASH_ON_DELIVERY",
        "payment_status": "PENDING",
        "shipping_address": TEST_SHIPPING_ADDRESS,
    }
    item = {
        "id": str(uuid.uuid4()),
        "order_id": order["id"],
        "product_id": product_id,
        "product_name": product["name"],
        "sku": product["sku"],
        "quantity": quantity,
        "unit_price": product["base_price"],
        "total_price": subtotal,
    }
    store.create_many(orders, [order])
    store.create_many(order_items, [item])

    return {**order, "items": [item]}


def clean_test_data(store: Store) -> dict[str, int]:
    return DatabaseLifecycle(store).reset_database()


def data_summary(store: Store) -> dict[str, int]:
    """Row counts for the tables operators look at first."""
    return {
        "users": store.count(users),
        "products": store.count(products),
        "categories": store.count(categories),
        "orders": store.count(orders),
    }
