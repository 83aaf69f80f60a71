from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence

from ..content.cursor import Cursor
from ..content.resolver import ContentResolver
from ..content.uris import UriMatcher, parse_id, with_appended_id
from ..content.values import ContentValues
from ..exceptions import ProductValidationError, UnknownUriError
from ..logging import get_logger
from .contract import CONTENT_AUTHORITY, PATH_PRODUCTS, ProductEntry
from .db import InventoryDatabase


LOG = get_logger("provider")

# Route codes for the products table
PRODUCTS = 100
PRODUCT_ID = 101

_MATCHER = UriMatcher()
# content://<authority>/products -> whole table
_MATCHER.add_uri(CONTENT_AUTHORITY, PATH_PRODUCTS, PRODUCTS)
# content://<authority>/products/<id> -> single row
_MATCHER.add_uri(CONTENT_AUTHORITY, f"{PATH_PRODUCTS}/#", PRODUCT_ID)

_ID_SELECTION = f"{ProductEntry._ID}=?"


def _id_args(uri: str) -> Sequence[str]:
    return [str(parse_id(uri))]


# Range of an SQLite INTEGER (signed 64-bit)
SQLITE_INTEGER_MIN = -(2 ** 63)
SQLITE_INTEGER_MAX = 2 ** 63 - 1


def _storable(number: Optional[int]) -> bool:
    return number is not None and SQLITE_INTEGER_MIN <= number <= SQLITE_INTEGER_MAX


def _bad_price(values: ContentValues, price: Optional[int]) -> bool:
    """A price may be omitted, but a given one must be a non-negative integer."""
    if values.get(ProductEntry.COLUMN_INVENTORY_PRICE) is None:
        return False
    return not _storable(price) or price < 0


def _bad_quantity(quantity: Optional[int]) -> bool:
    return not _storable(quantity)


def _store_integers(values: ContentValues, *, price: Optional[int], quantity: Optional[int]) -> None:
    # A null price means "unspecified": the column default applies on insert.
    if price is None:
        values.pop(ProductEntry.COLUMN_INVENTORY_PRICE, None)
    else:
        values[ProductEntry.COLUMN_INVENTORY_PRICE] = price
    if quantity is not None:
        values[ProductEntry.COLUMN_INVENTORY_QUANTITY] = quantity


class ProductProvider:
    """Content provider for the inventory products table.

    Collection URIs accept caller selections; item URIs always select by the
    trailing id. Writes that change rows notify the resolver on the request URI.
    """

    def __init__(
        self,
        resolver: ContentResolver,
        *,
        root_dir: Optional[str] = None,
        db_path: Optional[str] = None,
    ) -> None:
        self.resolver = resolver
        self._root_dir = root_dir
        self._db_path = db_path
        self.db: Optional[InventoryDatabase] = None

    def on_create(self) -> bool:
        self.db = InventoryDatabase(root_dir=self._root_dir, db_path=self._db_path)
        return True

    def _database(self) -> InventoryDatabase:
        if self.db is None:
            self.on_create()
        return self.db

    # ---------- read ----------
    def query(
        self,
        uri: str,
        projection: Optional[Sequence[str]] = None,
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
        sort_order: Optional[str] = None,
    ) -> Cursor:
        match = _MATCHER.match(uri)
        if match == PRODUCTS:
            pass
        elif match == PRODUCT_ID:
            selection = _ID_SELECTION
            selection_args = _id_args(uri)
        else:
            raise UnknownUriError(f"Cannot query unknown URI {uri}")

        cursor = self._database().query(
            ProductEntry.TABLE_NAME, projection, selection, selection_args, sort_order
        )
        # Cursor goes stale when anything under the queried URI changes
        cursor.set_notification_uri(self.resolver, uri)
        return cursor

    # ---------- insert ----------
    def insert(self, uri: str, values: Mapping[str, Any]) -> Optional[str]:
        if _MATCHER.match(uri) == PRODUCTS:
            return self._insert_product(uri, ContentValues(values))
        raise UnknownUriError(f"Insertion is not supported for {uri}")

    def bulk_insert(self, uri: str, values_list: Iterable[Mapping[str, Any]]) -> int:
        inserted = 0
        for values in values_list:
            if self.insert(uri, values) is not None:
                inserted += 1
        return inserted

    def _insert_product(self, uri: str, values: ContentValues) -> Optional[str]:
        name = values.get_as_string(ProductEntry.COLUMN_INVENTORY_NAME)
        price = values.get_as_integer(ProductEntry.COLUMN_INVENTORY_PRICE)
        quantity = values.get_as_integer(ProductEntry.COLUMN_INVENTORY_QUANTITY)

        if name is None:
            raise ProductValidationError("Product requires a name")
        if _bad_price(values, price):
            raise ProductValidationError("Product requires a valid price")
        if _bad_quantity(quantity):
            raise ProductValidationError("Product requires a valid quantity")

        _store_integers(values, price=price, quantity=quantity)
        new_row_id = self._database().insert(ProductEntry.TABLE_NAME, values)
        if new_row_id == -1:
            LOG.error(f"Failed to insert row for {uri}")
            return None

        self.resolver.notify_change(uri)
        return with_appended_id(uri, new_row_id)

    # ---------- update ----------
    def update(
        self,
        uri: str,
        values: Mapping[str, Any],
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
    ) -> int:
        match = _MATCHER.match(uri)
        if match == PRODUCTS:
            return self._update_product(uri, ContentValues(values), selection, selection_args)
        if match == PRODUCT_ID:
            return self._update_product(uri, ContentValues(values), _ID_SELECTION, _id_args(uri))
        raise UnknownUriError(f"Update is not supported for {uri}")

    def _update_product(
        self,
        uri: str,
        values: ContentValues,
        selection: Optional[str],
        selection_args: Optional[Sequence[Any]],
    ) -> int:
        if values.size() == 0:
            return 0

        price = values.get_as_integer(ProductEntry.COLUMN_INVENTORY_PRICE)
        quantity = values.get_as_integer(ProductEntry.COLUMN_INVENTORY_QUANTITY)
        if values.contains_key(ProductEntry.COLUMN_INVENTORY_NAME):
            if values.get_as_string(ProductEntry.COLUMN_INVENTORY_NAME) is None:
                raise ProductValidationError("Product requires a name")
        if values.contains_key(ProductEntry.COLUMN_INVENTORY_PRICE):
            if _bad_price(values, price):
                raise ProductValidationError("Product requires valid price")
        if values.contains_key(ProductEntry.COLUMN_INVENTORY_QUANTITY):
            if _bad_quantity(quantity):
                raise ProductValidationError("Product requires valid quantity")

        _store_integers(values, price=price, quantity=quantity)
        if values.size() == 0:
            # Only a null price was given; nothing left to write
            return 0
        rows_updated = self._database().update(
            ProductEntry.TABLE_NAME, values, selection, selection_args
        )
        if rows_updated == 0:
            LOG.error(f"No rows updated for {uri}")
        else:
            self.resolver.notify_change(uri)
        return rows_updated

    # ---------- delete ----------
    def delete(
        self,
        uri: str,
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
    ) -> int:
        match = _MATCHER.match(uri)
        if match == PRODUCTS:
            pass
        elif match == PRODUCT_ID:
            selection = _ID_SELECTION
            selection_args = _id_args(uri)
        else:
            raise UnknownUriError(f"Deletion is not supported for {uri}")

        rows_deleted = self._database().delete(ProductEntry.TABLE_NAME, selection, selection_args)
        if rows_deleted != 0:
            self.resolver.notify_change(uri)
        return rows_deleted

    def get_type(self, uri: str) -> str:
        match = _MATCHER.match(uri)
        if match == PRODUCTS:
            return ProductEntry.CONTENT_LIST_TYPE
        if match == PRODUCT_ID:
            return ProductEntry.CONTENT_ITEM_TYPE
        raise UnknownUriError(f"Unknown URI {uri} with match {match}")


def open_inventory(
    root_dir: Optional[str] = None, *, db_path: Optional[str] = None
) -> tuple[ContentResolver, ProductProvider]:
    """Create a resolver with a ready ProductProvider registered on it."""
    resolver = ContentResolver()
    provider = ProductProvider(resolver, root_dir=root_dir, db_path=db_path)
    provider.on_create()
    resolver.register_provider(CONTENT_AUTHORITY, provider)
    return resolver, provider
