from __future__ import annotations

from pathlib import Path

import httpx
import pytest
from starlette.testclient import TestClient

from inventory_provider.api import create_app
from inventory_provider.client import InventoryClient
from inventory_provider.data import Product


@pytest.fixture
def inventory_client(tmp_path: Path) -> InventoryClient:
    (tmp_path / "README.md").write_text("test marker", encoding="utf-8")
    app = create_app(root_dir=str(tmp_path), db_path=str(tmp_path / "client.sqlite3"))
    return InventoryClient("http://testserver", http_client=TestClient(app))


def test_client_round_trip(inventory_client: InventoryClient) -> None:
    created = inventory_client.create_product("Mug", quantity=6, price=450)
    assert created == Product(product_id=1, name="Mug", price=450, quantity=6)

    inventory_client.create_product("Bowl", quantity=2)
    assert [p.name for p in inventory_client.list_products(sort="name")] == ["Bowl", "Mug"]
    assert [p.name for p in inventory_client.list_products(search="ug")] == ["Mug"]

    updated = inventory_client.update_product(1, quantity=5)
    assert updated.quantity == 5

    assert inventory_client.get_product(1).price == 450
    assert inventory_client.get_product(99) is None

    assert inventory_client.delete_product(1) == 1
    assert inventory_client.delete_product(1) == 0
    assert inventory_client.delete_all() == 1


def test_client_raises_on_validation_error(inventory_client: InventoryClient) -> None:
    with pytest.raises(httpx.HTTPStatusError) as excinfo:
        inventory_client.create_product("Mug", quantity=1, price=-3)
    assert excinfo.value.response.status_code == 400
