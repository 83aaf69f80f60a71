from __future__ import annotations

import os
import re
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..config import load_db_path
from ..content.cursor import Cursor
from ..logging import get_logger
from ..paths import expand_abs, find_project_root, var_dir
from .contract import ProductEntry


LOG = get_logger("db")


DEFAULT_DB_FOLDER = "inventory"
DEFAULT_DB_FILENAME = "inventory.sqlite3"

# Bump when SCHEMA_SQL changes; older files are dropped and recreated.
DATABASE_VERSION = 1

SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS {ProductEntry.TABLE_NAME} (
  {ProductEntry._ID}                       INTEGER PRIMARY KEY AUTOINCREMENT,
  {ProductEntry.COLUMN_INVENTORY_NAME}     TEXT NOT NULL,
  {ProductEntry.COLUMN_INVENTORY_PRICE}    INTEGER NOT NULL DEFAULT 0,
  {ProductEntry.COLUMN_INVENTORY_QUANTITY} INTEGER NOT NULL DEFAULT 0
);
"""

TABLE_COLUMNS: Dict[str, Tuple[str, ...]] = {
    ProductEntry.TABLE_NAME: ProductEntry.COLUMNS,
}

_SORT_TERM = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)(?:\s+(ASC|DESC))?\s*$", re.IGNORECASE)

# Row values SQLite refused to bind or store; a bad selection still raises
_UNSTORABLE = (
    sqlite3.InterfaceError,
    sqlite3.ProgrammingError,
    sqlite3.IntegrityError,
    OverflowError,
)


class InventoryDatabase:
    """SQLite-backed inventory table.

    - Places the DB under `<repo-root>/var/inventory/inventory.sqlite3` unless
      an explicit path or INVENTORY_DB_PATH is given.
    - Ensures (and upgrades) the schema on construction.
    - Opens one connection per operation.
    """

    def __init__(self, root_dir: Optional[str] = None, *, db_path: Optional[str] = None) -> None:
        root = find_project_root(root_dir)
        configured = db_path or load_db_path(root)
        if configured:
            self.db_path = expand_abs(configured)
            os.makedirs(os.path.dirname(self.db_path) or ".", exist_ok=True)
        else:
            folder = os.path.join(var_dir(root), DEFAULT_DB_FOLDER)
            os.makedirs(folder, exist_ok=True)
            self.db_path = os.path.join(folder, DEFAULT_DB_FILENAME)
        LOG.info(f"Inventory DB path: {self.db_path}")
        self._ensure_schema()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self.connect() as conn:
            cur = conn.cursor()
            try:
                cur.execute("PRAGMA journal_mode=WAL;")
                cur.execute("PRAGMA synchronous=NORMAL;")
            except sqlite3.DatabaseError:
                LOG.debug("WAL journal mode unavailable; using default journal")
            version = int(cur.execute("PRAGMA user_version;").fetchone()[0])
            if 0 < version < DATABASE_VERSION:
                self._upgrade(conn, version)
            cur.executescript(SCHEMA_SQL)
            cur.execute(f"PRAGMA user_version = {DATABASE_VERSION};")
            conn.commit()
            LOG.debug("Inventory DB schema ensured (version %s).", DATABASE_VERSION)

    def _upgrade(self, conn: sqlite3.Connection, old_version: int) -> None:
        LOG.warning(
            "Upgrading inventory DB from version %s to %s; existing products are discarded",
            old_version,
            DATABASE_VERSION,
        )
        conn.execute(f"DROP TABLE IF EXISTS {ProductEntry.TABLE_NAME};")

    # --------------- validation helpers ---------------
    @staticmethod
    def _columns_for(table: str) -> Tuple[str, ...]:
        if table not in TABLE_COLUMNS:
            raise ValueError(f"Unsupported table: {table}")
        return TABLE_COLUMNS[table]

    def _check_columns(self, table: str, columns: Sequence[str]) -> List[str]:
        known = self._columns_for(table)
        unknown = [c for c in columns if c not in known]
        if unknown:
            raise ValueError(f"Unknown column(s) for {table}: {', '.join(unknown)}")
        return list(columns)

    def _check_sort_order(self, table: str, sort_order: str) -> str:
        known = self._columns_for(table)
        terms = []
        for raw in sort_order.split(","):
            m = _SORT_TERM.match(raw)
            if not m or m.group(1) not in known:
                raise ValueError(f"Invalid sort order: {sort_order!r}")
            direction = (m.group(2) or "ASC").upper()
            terms.append(f"{m.group(1)} {direction}")
        return ", ".join(terms)

    @staticmethod
    def _where(selection: Optional[str]) -> str:
        return f" WHERE {selection}" if selection else ""

    # --------------- CRUD ---------------
    def query(
        self,
        table: str,
        projection: Optional[Sequence[str]] = None,
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
        sort_order: Optional[str] = None,
    ) -> Cursor:
        columns = self._check_columns(table, projection) if projection else list(self._columns_for(table))
        sql = f"SELECT {', '.join(columns)} FROM {table}{self._where(selection)}"
        if sort_order:
            sql += f" ORDER BY {self._check_sort_order(table, sort_order)}"
        with self.connect() as conn:
            rows = conn.execute(sql, tuple(selection_args or ())).fetchall()
        return Cursor(columns, [dict(row) for row in rows])

    def insert(self, table: str, values: Mapping[str, Any]) -> int:
        """Insert one row and return its id, or -1 when SQLite rejects it."""
        try:
            columns = self._check_columns(table, list(values.keys()))
        except ValueError as exc:
            LOG.error(f"Error inserting into {table}: {exc}")
            return -1
        if columns:
            placeholders = ", ".join("?" for _ in columns)
            sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {table} DEFAULT VALUES"
        with self.connect() as conn:
            try:
                cur = conn.execute(sql, tuple(values[c] for c in columns))
                conn.commit()
            except (sqlite3.Error, OverflowError) as exc:
                conn.rollback()
                LOG.error(f"Error inserting {dict(values)} into {table}: {exc}")
                return -1
            return int(cur.lastrowid)

    def update(
        self,
        table: str,
        values: Mapping[str, Any],
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
    ) -> int:
        columns = self._check_columns(table, list(values.keys()))
        if not columns:
            return 0
        assignments = ", ".join(f"{c} = ?" for c in columns)
        params = tuple(values[c] for c in columns) + tuple(selection_args or ())
        with self.connect() as conn:
            try:
                cur = conn.execute(f"UPDATE {table} SET {assignments}{self._where(selection)}", params)
                conn.commit()
            except _UNSTORABLE as exc:
                conn.rollback()
                LOG.error(f"Error updating {table} with {dict(values)}: {exc}")
                return 0
            return int(cur.rowcount)

    def delete(
        self,
        table: str,
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
    ) -> int:
        self._columns_for(table)
        with self.connect() as conn:
            cur = conn.execute(f"DELETE FROM {table}{self._where(selection)}", tuple(selection_args or ()))
            conn.commit()
            return int(cur.rowcount)

    def count(self, table: str) -> int:
        self._columns_for(table)
        with self.connect() as conn:
            return int(conn.execute(f"SELECT COUNT(*) AS total FROM {table};").fetchone()["total"])
