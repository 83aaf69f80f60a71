from __future__ import annotations

from typing import Any, Dict, List, Optional

from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ..content.uris import with_appended_id
from ..data import Product, ProductEntry, open_inventory
from ..logging import get_logger
from ..paths import find_project_root


LOG = get_logger("api")

_WRITABLE_FIELDS = (
    ProductEntry.COLUMN_INVENTORY_NAME,
    ProductEntry.COLUMN_INVENTORY_PRICE,
    ProductEntry.COLUMN_INVENTORY_QUANTITY,
)

# JSON types a product column can hold
_SCALAR_TYPES = (str, int, float, bool, type(None))


def _normalise_direction(value: Optional[str]) -> str:
    if value and value.lower() == "desc":
        return "DESC"
    return "ASC"


async def _json_object(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Request body must be JSON") from exc
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    unknown = sorted(set(body) - set(_WRITABLE_FIELDS))
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown field(s): {', '.join(unknown)}")
    for field, value in body.items():
        if not isinstance(value, _SCALAR_TYPES):
            raise HTTPException(status_code=400, detail=f"Field '{field}' must be a string, number or null")
    return body


def create_app(
    root_dir: Optional[str] = None,
    *,
    db_path: Optional[str] = None,
    allow_origins: Optional[List[str]] = None,
) -> Starlette:
    """Create a Starlette app exposing the products table over JSON."""

    project_root = find_project_root(root_dir)
    resolver, provider = open_inventory(project_root, db_path=db_path)
    content_uri = ProductEntry.CONTENT_URI

    def _fetch(product_id: int) -> Optional[Dict[str, Any]]:
        cursor = resolver.query(with_appended_id(content_uri, product_id))
        try:
            row = cursor.first()
        finally:
            cursor.close()
        return Product.from_row(row).to_dict() if row else None

    async def health(_: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "db_path": provider.db.db_path})

    async def list_products(request: Request) -> JSONResponse:
        qp = request.query_params
        sort = qp.get("sort") or ProductEntry._ID
        direction = _normalise_direction(qp.get("direction"))
        search = qp.get("search") or None
        selection = None
        selection_args = None
        if search:
            selection = f"{ProductEntry.COLUMN_INVENTORY_NAME} LIKE ?"
            selection_args = [f"%{search}%"]
        try:
            cursor = resolver.query(
                content_uri,
                selection=selection,
                selection_args=selection_args,
                sort_order=f"{sort} {direction}",
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        try:
            items = [Product.from_row(row).to_dict() for row in cursor]
        finally:
            cursor.close()
        return JSONResponse(
            {"items": items, "total": len(items), "type": resolver.get_type(content_uri)}
        )

    async def product_detail(request: Request) -> JSONResponse:
        payload = _fetch(int(request.path_params["product_id"]))
        if payload is None:
            raise HTTPException(status_code=404, detail="Product not found")
        return JSONResponse(payload)

    async def create_product(request: Request) -> JSONResponse:
        body = await _json_object(request)
        try:
            new_uri = resolver.insert(content_uri, body)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if new_uri is None:
            raise HTTPException(status_code=500, detail="Failed to insert product")
        product_id = int(new_uri.rsplit("/", 1)[-1])
        payload = _fetch(product_id) or {}
        payload["uri"] = new_uri
        LOG.info(f"Created product {product_id}")
        return JSONResponse(payload, status_code=201)

    async def update_product(request: Request) -> JSONResponse:
        product_id = int(request.path_params["product_id"])
        body = await _json_object(request)
        try:
            resolver.update(with_appended_id(content_uri, product_id), body)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        payload = _fetch(product_id)
        if payload is None:
            raise HTTPException(status_code=404, detail="Product not found")
        return JSONResponse(payload)

    async def delete_product(request: Request) -> JSONResponse:
        product_id = int(request.path_params["product_id"])
        deleted = resolver.delete(with_appended_id(content_uri, product_id))
        if deleted == 0:
            raise HTTPException(status_code=404, detail="Product not found")
        return JSONResponse({"deleted": deleted})

    async def delete_all(_: Request) -> JSONResponse:
        deleted = resolver.delete(content_uri)
        LOG.info(f"Deleted {deleted} product(s)")
        return JSONResponse({"deleted": deleted})

    routes = [
        Route("/api/health", health, methods=["GET"]),
        Route("/api/products", list_products, methods=["GET"]),
        Route("/api/products", create_product, methods=["POST"]),
        Route("/api/products", delete_all, methods=["DELETE"]),
        Route("/api/products/{product_id:int}", product_detail, methods=["GET"]),
        Route("/api/products/{product_id:int}", update_product, methods=["PATCH"]),
        Route("/api/products/{product_id:int}", delete_product, methods=["DELETE"]),
    ]

    app = Starlette(debug=False, routes=routes)
    app.state.resolver = resolver
    app.state.provider = provider

    origins = allow_origins or ["http://localhost:5173", "http://127.0.0.1:5173"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if "*" in origins else origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


__all__ = ["create_app"]
