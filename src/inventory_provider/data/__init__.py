"""Inventory products table: contract, SQLite helper and content provider.

Modules:
- contract: authority, URIs, MIME types and column names
- db: DB location, schema and CRUD helpers
- models: Product dataclass used by the API and client
- provider: URI-routed, validating ProductProvider
"""

from .contract import CONTENT_AUTHORITY, ProductEntry
from .db import InventoryDatabase
from .models import Product
from .provider import PRODUCT_ID, PRODUCTS, ProductProvider, open_inventory

__all__ = [
    "CONTENT_AUTHORITY",
    "InventoryDatabase",
    "PRODUCTS",
    "PRODUCT_ID",
    "Product",
    "ProductEntry",
    "ProductProvider",
    "open_inventory",
]
