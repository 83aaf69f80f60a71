from __future__ import annotations

from typing import Tuple

# Authority the provider is registered under; also the content URI host.
CONTENT_AUTHORITY = "com.example.android.inventoryapp"
BASE_CONTENT_URI = f"content://{CONTENT_AUTHORITY}"
PATH_PRODUCTS = "products"


class ProductEntry:
    TABLE_NAME = "products"

    _ID = "_id"
    COLUMN_INVENTORY_NAME = "name"
    COLUMN_INVENTORY_PRICE = "price"
    COLUMN_INVENTORY_QUANTITY = "quantity"

    COLUMNS: Tuple[str, ...] = (
        _ID,
        COLUMN_INVENTORY_NAME,
        COLUMN_INVENTORY_PRICE,
        COLUMN_INVENTORY_QUANTITY,
    )

    CONTENT_URI = f"{BASE_CONTENT_URI}/{PATH_PRODUCTS}"

    CONTENT_LIST_TYPE = f"vnd.android.cursor.dir/{CONTENT_AUTHORITY}/{PATH_PRODUCTS}"
    CONTENT_ITEM_TYPE = f"vnd.android.cursor.item/{CONTENT_AUTHORITY}/{PATH_PRODUCTS}"
