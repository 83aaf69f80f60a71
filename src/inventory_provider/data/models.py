from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

from .contract import ProductEntry


@dataclass
class Product:
    product_id: Optional[int]
    name: str
    price: int      # minor currency units
    quantity: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Product":
        return cls(
            product_id=row.get(ProductEntry._ID),
            name=row.get(ProductEntry.COLUMN_INVENTORY_NAME),
            price=row.get(ProductEntry.COLUMN_INVENTORY_PRICE),
            quantity=row.get(ProductEntry.COLUMN_INVENTORY_QUANTITY),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
