"""Fixed seed rows inserted after every reset.

Identifiers are literal so that tests can refer to known rows by id across
the whole suite.
"""

from decimal import Decimal

COFFEE_CATEGORY_ID = "a1b2c3d4-e5f6-7890-abcd-ef1234567890"
TEA_CATEGORY_ID = "b2c3d4e5-f607-8901-bcde-f23456789012"

ARABICA_PRODUCT_ID = "cccccccc-dddd-eeee-ffff-000000000001"
EARL_GREY_PRODUCT_ID = "dddddddd-eeee-ffff-0000-111111111111"

SEED_CATEGORIES = [
    {
        "id": COFFEE_CATEGORY_ID,
        "name": "Coffee",
        "slug": "coffee",
        "description": "Premium coffee products",
        "is_active": True,
    },
    {
        "id": TEA_CATEGORY_ID,
        "name": "Tea",
        "slug": "tea",
        "description": "Premium tea products",
        "is_active": True,
    },
]

SEED_PRODUCTS = [
    {
        "id": ARABICA_PRODUCT_ID,
        "name": "Arabica Premium",
        "slug": "arabica-premium",
        "description": "Premium arabica coffee beans",
        "sku": "ARB-PREM-001",
        "base_price": Decimal("25.99"),
        "stock_quantity": 100,
        "category_id": COFFEE_CATEGORY_ID,
        "is_active": True,
        "weight": 500,
    },
    {
        "id": EARL_GREY_PRODUCT_ID,
        "name": "Earl Grey Premium",
        "slug": "earl-grey-premium",
        "description": "Premium Earl Grey tea",
        "sku": "EG-PREM-001",
        "base_price": Decimal("15.99"),
        "stock_quantity": 50,
        "category_id": TEA_CATEGORY_ID,
        "is_active": True,
        "weight": 100,
    },
]
