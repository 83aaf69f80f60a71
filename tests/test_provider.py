from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import pytest

from inventory_provider.content import ContentObserver
from inventory_provider.data import CONTENT_AUTHORITY, ProductEntry, open_inventory
from inventory_provider.data import provider as provider_module
from inventory_provider.exceptions import ProductValidationError, UnknownUriError


CONTENT_URI = ProductEntry.CONTENT_URI


class _Recorder(ContentObserver):
    def __init__(self) -> None:
        self.uris: List[str] = []

    def on_change(self, self_change: bool, uri: str) -> None:
        self.uris.append(uri)


@pytest.fixture
def inventory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("INVENTORY_DB_PATH", raising=False)
    (tmp_path / "README.md").write_text("test marker", encoding="utf-8")
    resolver, provider = open_inventory(str(tmp_path))
    recorder = _Recorder()
    resolver.register_content_observer(CONTENT_URI, True, recorder)
    return resolver, provider, recorder


def _add(resolver, name="Widget", price=250, quantity=3) -> str:
    return resolver.insert(CONTENT_URI, {"name": name, "price": price, "quantity": quantity})


def test_database_created_under_var_inventory(inventory, tmp_path: Path) -> None:
    _, provider, _ = inventory
    assert provider.db.db_path == str(tmp_path / "var" / "inventory" / "inventory.sqlite3")
    assert Path(provider.db.db_path).is_file()


def test_insert_returns_item_uri_and_notifies(inventory) -> None:
    resolver, _, recorder = inventory
    uri = _add(resolver)
    assert uri == f"{CONTENT_URI}/1"
    assert recorder.uris == [CONTENT_URI]

    row = resolver.query(uri).first()
    assert row == {"_id": 1, "name": "Widget", "price": 250, "quantity": 3}


def test_insert_without_price_uses_default(inventory) -> None:
    resolver, _, _ = inventory
    uri = resolver.insert(CONTENT_URI, {"name": "Free sample", "quantity": 10})
    assert resolver.query(uri).first()["price"] == 0


def test_insert_with_null_price_uses_default(inventory) -> None:
    resolver, _, recorder = inventory
    uri = resolver.insert(CONTENT_URI, {"name": "Loose bolt", "price": None, "quantity": 1})
    assert uri == f"{CONTENT_URI}/1"
    assert resolver.query(uri).first()["price"] == 0
    assert recorder.uris == [CONTENT_URI]


def test_insert_accepts_largest_sqlite_integer(inventory) -> None:
    resolver, _, _ = inventory
    uri = resolver.insert(CONTENT_URI, {"name": "Bulk", "price": 2 ** 63 - 1, "quantity": -(2 ** 63)})
    row = resolver.query(uri).first()
    assert (row["price"], row["quantity"]) == (2 ** 63 - 1, -(2 ** 63))


def test_insert_coerces_numeric_strings(inventory) -> None:
    resolver, _, _ = inventory
    uri = resolver.insert(CONTENT_URI, {"name": "Bolt", "price": " 15 ", "quantity": "7"})
    row = resolver.query(uri).first()
    assert row["price"] == 15
    assert row["quantity"] == 7


@pytest.mark.parametrize(
    "values, message",
    [
        ({"price": 1, "quantity": 1}, "Product requires a name"),
        ({"name": None, "quantity": 1}, "Product requires a name"),
        ({"name": "x", "price": -1, "quantity": 1}, "Product requires a valid price"),
        ({"name": "x", "price": "cheap", "quantity": 1}, "Product requires a valid price"),
        ({"name": "x", "price": 1}, "Product requires a valid quantity"),
        ({"name": "x", "quantity": "lots"}, "Product requires a valid quantity"),
        ({"name": "x", "quantity": 10 ** 20}, "Product requires a valid quantity"),
        ({"name": "x", "price": 2 ** 63, "quantity": 1}, "Product requires a valid price"),
    ],
)
def test_insert_rejects_invalid_values(inventory, values, message) -> None:
    resolver, provider, recorder = inventory
    with pytest.raises(ProductValidationError, match=message):
        resolver.insert(CONTENT_URI, values)
    assert provider.db.count(ProductEntry.TABLE_NAME) == 0
    assert recorder.uris == []


def test_insert_on_item_uri_is_rejected(inventory) -> None:
    resolver, _, _ = inventory
    with pytest.raises(UnknownUriError, match="Insertion is not supported"):
        resolver.insert(f"{CONTENT_URI}/4", {"name": "x", "quantity": 1})


def test_insert_failure_returns_none_without_notification(inventory) -> None:
    resolver, _, recorder = inventory
    # Unknown columns are refused by the database helper, not by validation
    assert resolver.insert(CONTENT_URI, {"name": "x", "quantity": 1, "colour": "red"}) is None
    assert recorder.uris == []


def test_bulk_insert_counts_inserted_rows(inventory) -> None:
    resolver, provider, _ = inventory
    rows = [
        {"name": "A", "quantity": 1},
        {"name": "B", "quantity": 2, "colour": "blue"},
        {"name": "C", "quantity": 3},
    ]
    assert resolver.bulk_insert(CONTENT_URI, rows) == 2
    assert provider.db.count(ProductEntry.TABLE_NAME) == 2


def test_query_collection_with_selection_and_sort(inventory) -> None:
    resolver, _, _ = inventory
    _add(resolver, name="Apple", price=100, quantity=5)
    _add(resolver, name="Banana", price=50, quantity=0)
    _add(resolver, name="Cherry", price=300, quantity=9)

    cursor = resolver.query(
        CONTENT_URI,
        projection=["name", "quantity"],
        selection="quantity > ?",
        selection_args=[0],
        sort_order="name DESC",
    )
    assert cursor.columns == ["name", "quantity"]
    assert [row["name"] for row in cursor] == ["Cherry", "Apple"]
    assert cursor.get_column_index("quantity") == 1


def test_query_item_ignores_caller_selection(inventory) -> None:
    resolver, _, _ = inventory
    _add(resolver, name="Apple")
    uri = _add(resolver, name="Banana")
    cursor = resolver.query(uri, selection="name = ?", selection_args=["Apple"])
    assert [row["name"] for row in cursor] == ["Banana"]


def test_query_rejects_unknown_columns_and_sort(inventory) -> None:
    resolver, _, _ = inventory
    with pytest.raises(ValueError):
        resolver.query(CONTENT_URI, projection=["secret"])
    with pytest.raises(ValueError):
        resolver.query(CONTENT_URI, sort_order="name; DROP TABLE products")


def test_query_unknown_uri(inventory) -> None:
    resolver, _, _ = inventory
    with pytest.raises(UnknownUriError, match="Cannot query unknown URI"):
        resolver.query(f"content://{CONTENT_AUTHORITY}/suppliers")


def test_query_cursor_goes_stale_on_change(inventory) -> None:
    resolver, _, _ = inventory
    uri = _add(resolver)
    cursor = resolver.query(CONTENT_URI)
    seen: List[str] = []
    cursor.add_change_listener(seen.append)

    resolver.update(uri, {"quantity": 4})
    assert cursor.stale is True
    assert seen == [uri]

    cursor.close()
    resolver.update(uri, {"quantity": 5})
    assert seen == [uri]


def test_update_item_validates_and_notifies(inventory) -> None:
    resolver, _, recorder = inventory
    uri = _add(resolver)
    recorder.uris.clear()

    assert resolver.update(uri, {"quantity": 8, "price": "99"}) == 1
    assert recorder.uris == [uri]
    row = resolver.query(uri).first()
    assert (row["quantity"], row["price"]) == (8, 99)


def test_update_with_empty_values_is_noop(inventory) -> None:
    resolver, _, recorder = inventory
    uri = _add(resolver)
    recorder.uris.clear()
    assert resolver.update(uri, {}) == 0
    assert recorder.uris == []


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def test_update_with_only_null_price_is_noop(inventory) -> None:
    resolver, _, recorder = inventory
    uri = _add(resolver, price=250)
    recorder.uris.clear()
    handler = _ListHandler()
    provider_module.LOG.addHandler(handler)
    try:
        assert resolver.update(uri, {"price": None}) == 0
    finally:
        provider_module.LOG.removeHandler(handler)

    assert resolver.query(uri).first()["price"] == 250
    assert recorder.uris == []
    assert [r for r in handler.records if r.levelno >= logging.ERROR] == []


def test_update_with_null_price_keeps_price(inventory) -> None:
    resolver, _, recorder = inventory
    uri = _add(resolver, price=250, quantity=3)
    recorder.uris.clear()
    assert resolver.update(uri, {"price": None, "quantity": 6}) == 1
    row = resolver.query(uri).first()
    assert (row["price"], row["quantity"]) == (250, 6)
    assert recorder.uris == [uri]


@pytest.mark.parametrize(
    "values, message",
    [
        ({"name": None}, "Product requires a name"),
        ({"price": -5}, "Product requires valid price"),
        ({"quantity": None}, "Product requires valid quantity"),
        ({"quantity": "many"}, "Product requires valid quantity"),
        ({"quantity": 10 ** 20}, "Product requires valid quantity"),
        ({"price": 2 ** 63}, "Product requires valid price"),
    ],
)
def test_update_rejects_invalid_values(inventory, values, message) -> None:
    resolver, _, _ = inventory
    uri = _add(resolver)
    with pytest.raises(ProductValidationError, match=message):
        resolver.update(uri, values)
    assert resolver.query(uri).first()["name"] == "Widget"


def test_update_missing_row_returns_zero_without_notification(inventory) -> None:
    resolver, _, recorder = inventory
    assert resolver.update(f"{CONTENT_URI}/42", {"quantity": 1}) == 0
    assert recorder.uris == []


def test_update_collection_uses_selection(inventory) -> None:
    resolver, _, _ = inventory
    _add(resolver, name="A", quantity=0)
    _add(resolver, name="B", quantity=0)
    _add(resolver, name="C", quantity=2)
    assert resolver.update(CONTENT_URI, {"quantity": 10}, "quantity = ?", [0]) == 2


def test_delete_item_and_collection(inventory) -> None:
    resolver, provider, recorder = inventory
    first = _add(resolver, name="A")
    _add(resolver, name="B")
    _add(resolver, name="C")
    recorder.uris.clear()

    assert resolver.delete(first) == 1
    assert resolver.delete(first) == 0
    assert recorder.uris == [first]

    assert resolver.delete(CONTENT_URI, "name = ?", ["B"]) == 1
    assert resolver.delete(CONTENT_URI) == 1
    assert provider.db.count(ProductEntry.TABLE_NAME) == 0


def test_delete_unknown_uri(inventory) -> None:
    resolver, _, _ = inventory
    with pytest.raises(UnknownUriError, match="Deletion is not supported"):
        resolver.delete(f"{CONTENT_URI}/1/extra")


def test_get_type(inventory) -> None:
    resolver, _, _ = inventory
    assert resolver.get_type(CONTENT_URI) == ProductEntry.CONTENT_LIST_TYPE
    assert resolver.get_type(f"{CONTENT_URI}/3") == ProductEntry.CONTENT_ITEM_TYPE
    with pytest.raises(UnknownUriError, match="with match -1"):
        resolver.get_type(f"{CONTENT_URI}/three")


def test_resolver_rejects_unregistered_authority(inventory) -> None:
    resolver, _, _ = inventory
    with pytest.raises(UnknownUriError, match="No provider registered"):
        resolver.query("content://com.example.other/products")
