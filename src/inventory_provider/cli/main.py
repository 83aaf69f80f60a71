from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict, Sequence

from ..content.uris import with_appended_id
from ..data import Product, ProductEntry, open_inventory
from ..exceptions import ProductValidationError
from ..logging import get_logger, set_level

LOG = get_logger("cli")


def _open(ns: argparse.Namespace):
    return open_inventory(os.getcwd(), db_path=ns.db_path)


def _print_product(row: Dict[str, Any]) -> None:
    print(json.dumps(Product.from_row(row).to_dict(), ensure_ascii=False))


def _handle_init(ns: argparse.Namespace) -> int:
    _, provider = _open(ns)
    LOG.info(f"Inventory DB ready at: {provider.db.db_path}")
    print(provider.db.db_path)
    return 0


def _handle_list(ns: argparse.Namespace) -> int:
    resolver, _ = _open(ns)
    direction = "DESC" if ns.desc else "ASC"
    cursor = resolver.query(ProductEntry.CONTENT_URI, sort_order=f"{ns.sort} {direction}")
    try:
        for row in cursor:
            _print_product(row)
    finally:
        cursor.close()
    return 0


def _handle_add(ns: argparse.Namespace) -> int:
    resolver, _ = _open(ns)
    values: Dict[str, Any] = {
        ProductEntry.COLUMN_INVENTORY_NAME: ns.name,
        ProductEntry.COLUMN_INVENTORY_QUANTITY: ns.quantity,
    }
    if ns.price is not None:
        values[ProductEntry.COLUMN_INVENTORY_PRICE] = ns.price
    try:
        new_uri = resolver.insert(ProductEntry.CONTENT_URI, values)
    except ProductValidationError as exc:
        LOG.error(str(exc))
        return 2
    if new_uri is None:
        LOG.error("Insert failed.")
        return 1
    print(new_uri)
    return 0


def _handle_update(ns: argparse.Namespace) -> int:
    resolver, _ = _open(ns)
    values: Dict[str, Any] = {}
    if ns.name is not None:
        values[ProductEntry.COLUMN_INVENTORY_NAME] = ns.name
    if ns.price is not None:
        values[ProductEntry.COLUMN_INVENTORY_PRICE] = ns.price
    if ns.quantity is not None:
        values[ProductEntry.COLUMN_INVENTORY_QUANTITY] = ns.quantity
    if not values:
        LOG.error("Nothing to update; pass --name, --price or --quantity.")
        return 2
    uri = with_appended_id(ProductEntry.CONTENT_URI, ns.product_id)
    try:
        updated = resolver.update(uri, values)
    except ProductValidationError as exc:
        LOG.error(str(exc))
        return 2
    if updated == 0:
        LOG.error(f"No product with id {ns.product_id}")
        return 1
    cursor = resolver.query(uri)
    try:
        _print_product(cursor.first())
    finally:
        cursor.close()
    return 0


def _handle_delete(ns: argparse.Namespace) -> int:
    resolver, _ = _open(ns)
    if ns.all:
        deleted = resolver.delete(ProductEntry.CONTENT_URI)
    elif ns.product_id is not None:
        deleted = resolver.delete(with_appended_id(ProductEntry.CONTENT_URI, ns.product_id))
    else:
        LOG.error("Pass a product id or --all.")
        return 2
    print(deleted)
    return 0 if deleted or ns.all else 1


def _handle_serve(ns: argparse.Namespace) -> int:
    from ..api import create_app
    import uvicorn

    app = create_app(
        root_dir=os.getcwd(),
        db_path=ns.db_path,
        allow_origins=ns.allow_origins,
    )
    uvicorn.run(
        app,
        host=ns.host,
        port=ns.port,
        log_level=ns.log_level,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inventory-provider",
        description="Manage the inventory products table and serve it over HTTP.",
    )
    parser.add_argument("--db-path", help="SQLite file to use (default: INVENTORY_DB_PATH or var/inventory/)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init = subparsers.add_parser("init", help="Create/ensure the inventory DB schema exists")
    init.set_defaults(handler=_handle_init)

    lst = subparsers.add_parser("list", help="Print every product as one JSON line")
    lst.add_argument("--sort", choices=list(ProductEntry.COLUMNS), default=ProductEntry._ID)
    lst.add_argument("--desc", action="store_true", help="Sort descending")
    lst.set_defaults(handler=_handle_list)

    add = subparsers.add_parser("add", help="Insert a product and print its content URI")
    add.add_argument("--name", required=True)
    add.add_argument("--price", type=int, help="Price in minor currency units")
    add.add_argument("--quantity", type=int, required=True)
    add.set_defaults(handler=_handle_add)

    upd = subparsers.add_parser("update", help="Change fields of one product")
    upd.add_argument("product_id", type=int)
    upd.add_argument("--name")
    upd.add_argument("--price", type=int)
    upd.add_argument("--quantity", type=int)
    upd.set_defaults(handler=_handle_update)

    dele = subparsers.add_parser("delete", help="Delete one product, or all with --all")
    dele.add_argument("product_id", type=int, nargs="?")
    dele.add_argument("--all", action="store_true")
    dele.set_defaults(handler=_handle_delete)

    serve = subparsers.add_parser("serve", help="Run the inventory JSON API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8002)
    serve.add_argument("--log-level", default="info")
    serve.add_argument(
        "--allow-origin",
        action="append",
        dest="allow_origins",
        help="Allowed CORS origin (can be provided multiple times, use '*' for any).",
    )
    serve.set_defaults(handler=_handle_serve)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with arguments: {provided}")
    args = build_parser().parse_args(provided)
    if args.verbose:
        set_level("DEBUG")
    code = args.handler(args)
    LOG.debug(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
