"""Relational schema for the storefront tables.

Only the tables that the reset protocol touches are declared here. Foreign
keys mirror the production schema, so deletes must run children first.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    func,
)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("full_name", String(255), nullable=False),
    Column("role", String(20), nullable=False, default="CUSTOMER"),
    Column("email_verified", Boolean, nullable=False, default=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

categories = Table(
    "categories",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(100), nullable=False),
    Column("slug", String(120), nullable=False, unique=True),
    Column("description", Text),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

products = Table(
    "products",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("slug", String(255), nullable=False, unique=True),
    Column("description", Text),
    Column("sku", String(50), nullable=False, unique=True),
    Column("base_price", Numeric(10, 2), nullable=False),
    Column("stock_quantity", Integer, nullable=False, default=0),
    Column("category_id", String(36), ForeignKey("categories.id"), nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("weight", Integer),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

product_variants = Table(
    "product_variants",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("product_id", String(36), ForeignKey("products.id"), nullable=False),
    Column("name", String(255), nullable=False),
    Column("sku", String(50), nullable=False, unique=True),
    Column("price", Numeric(10, 2), nullable=False),
    Column("stock_quantity", Integer, nullable=False, default=0),
)

product_reviews = Table(
    "product_reviews",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("product_id", String(36), ForeignKey("products.id"), nullable=False),
    Column("user_id", String(36), ForeignKey("users.id"), nullable=False),
    Column("rating", Integer, nullable=False),
    Column("comment", Text),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

cart_items = Table(
    "cart_items",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id"), nullable=False),
    Column("product_id", String(36), ForeignKey("products.id"), nullable=False),
    Column("variant_id", String(36), ForeignKey("product_variants.id")),
    Column("quantity", Integer, nullable=False, default=1),
)

orders = Table(
    "orders",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id"), nullable=False),
    Column("order_number", String(50), nullable=False, unique=True),
    Column("subtotal", Numeric(10, 2), nullable=False),
    Column("tax_amount", Numeric(10, 2), nullable=False, default=0),
    Column("shipping_amount", Numeric(10, 2), nullable=False, default=0),
    Column("total_amount", Numeric(10, 2), nullable=False),
    Column("status", String(20), nullable=False, default="PENDING"),
    Column("payment_method", String(30), nullable=False),
    Column("payment_status", String(30), nullable=False, default="PENDING"),
    Column("shipping_address", JSON),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

order_items = Table(
    "order_items",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("order_id", String(36), ForeignKey("orders.id"), nullable=False),
    Column("product_id", String(36), ForeignKey("products.id"), nullable=False),
    Column("product_name", String(255), nullable=False),
    Column("sku", String(50), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("unit_price", Numeric(10, 2), nullable=False),
    Column("total_price", Numeric(10, 2), nullable=False),
)

# Deepest children first. Reset deletes in this order; seeding inserts parents
# before children, so never reorder without checking the foreign keys above.
RESET_ORDER = (
    order_items,
    orders,
    cart_items,
    product_reviews,
    product_variants,
    products,
    categories,
    users,
)
