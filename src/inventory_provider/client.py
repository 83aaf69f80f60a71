from typing import Any, Dict, List, Optional

import httpx

from .data.models import Product
from .logging import get_logger


def _product(data: Dict[str, Any]) -> Product:
    return Product(
        product_id=data.get("product_id"),
        name=data.get("name"),
        price=data.get("price"),
        quantity=data.get("quantity"),
    )


class InventoryClient:
    """Thin client for the inventory HTTP API.

    Pass `http_client` to reuse an existing httpx.Client (or a Starlette
    TestClient); otherwise one is created and owned by this instance.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.base = base_url.rstrip("/")
        self.log = get_logger("client")
        self._owns_client = http_client is None
        self.s = http_client or httpx.Client(
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json"},
        )

    def __enter__(self) -> "InventoryClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self.s.close()

    # ---------- helpers ----------
    def _url(self, path: str) -> str:
        return f"{self.base}{path}"

    def _json(self, r: httpx.Response) -> Any:
        r.raise_for_status()
        return r.json()

    # ---------- products ----------
    def list_products(
        self,
        *,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        direction: Optional[str] = None,
    ) -> List[Product]:
        params = {k: v for k, v in (("search", search), ("sort", sort), ("direction", direction)) if v}
        data = self._json(self.s.get(self._url("/api/products"), params=params))
        return [_product(item) for item in data.get("items", [])]

    def get_product(self, product_id: int) -> Optional[Product]:
        r = self.s.get(self._url(f"/api/products/{int(product_id)}"))
        if r.status_code == 404:
            return None
        return _product(self._json(r))

    def create_product(self, name: str, *, quantity: int, price: Optional[int] = None) -> Product:
        payload: Dict[str, Any] = {"name": name, "quantity": quantity}
        if price is not None:
            payload["price"] = price
        self.log.info(f"POST product: name={name!r}, price={price}, quantity={quantity}")
        return _product(self._json(self.s.post(self._url("/api/products"), json=payload)))

    def update_product(self, product_id: int, **fields: Any) -> Product:
        url = self._url(f"/api/products/{int(product_id)}")
        return _product(self._json(self.s.patch(url, json=fields)))

    def delete_product(self, product_id: int) -> int:
        r = self.s.delete(self._url(f"/api/products/{int(product_id)}"))
        if r.status_code == 404:
            self.log.warning(f"delete_product {product_id}: not found")
            return 0
        return int(self._json(r)["deleted"])

    def delete_all(self) -> int:
        return int(self._json(self.s.delete(self._url("/api/products")))["deleted"])
