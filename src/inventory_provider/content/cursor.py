from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from .resolver import ContentObserver, ContentResolver


class _CursorObserver(ContentObserver):
    def __init__(self, cursor: "Cursor") -> None:
        self._cursor = cursor

    def on_change(self, self_change: bool, uri: str) -> None:
        self._cursor._mark_stale(uri)


class Cursor:
    """Materialised query result that can watch its source URI for changes."""

    def __init__(self, columns: Sequence[str], rows: List[Dict[str, Any]]) -> None:
        self.columns: List[str] = list(columns)
        self.rows: List[Dict[str, Any]] = rows
        self.stale = False
        self.notification_uri: Optional[str] = None
        self._resolver: Optional[ContentResolver] = None
        self._observer: Optional[_CursorObserver] = None
        self._listeners: List[Callable[[str], None]] = []

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.rows)

    @property
    def count(self) -> int:
        return len(self.rows)

    def first(self) -> Optional[Dict[str, Any]]:
        return self.rows[0] if self.rows else None

    def get_column_index(self, name: str) -> int:
        try:
            return self.columns.index(name)
        except ValueError:
            raise ValueError(f"Unknown column: {name}") from None

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [dict(row) for row in self.rows]

    # ---------- change tracking ----------
    def set_notification_uri(self, resolver: ContentResolver, uri: str) -> None:
        self._unregister()
        self._resolver = resolver
        self.notification_uri = uri
        self._observer = _CursorObserver(self)
        resolver.register_content_observer(uri, True, self._observer)

    def add_change_listener(self, listener: Callable[[str], None]) -> None:
        self._listeners.append(listener)

    def close(self) -> None:
        self._unregister()
        self._listeners.clear()

    def _unregister(self) -> None:
        if self._resolver is not None and self._observer is not None:
            self._resolver.unregister_content_observer(self._observer)
        self._resolver = None
        self._observer = None

    def _mark_stale(self, uri: str) -> None:
        self.stale = True
        for listener in list(self._listeners):
            listener(uri)
