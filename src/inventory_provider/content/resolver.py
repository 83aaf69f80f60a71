"""Provider registry and change notification.

The resolver routes calls by URI authority to registered providers and fans
out ``notify_change`` calls to observers registered on related URIs.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..exceptions import UnknownUriError
from ..logging import get_logger
from .uris import is_descendant, parse_uri, same_uri


LOG = get_logger("resolver")


class ContentObserver:
    """Receives change notifications for a URI."""

    def on_change(self, self_change: bool, uri: str) -> None:
        pass


@dataclass
class _Registration:
    uri: str
    notify_for_descendants: bool
    observer: ContentObserver


class ContentResolver:
    def __init__(self) -> None:
        self._providers: Dict[str, Any] = {}
        self._observers: List[_Registration] = []
        self._lock = threading.Lock()

    # ---------- providers ----------
    def register_provider(self, authority: str, provider: Any) -> None:
        self._providers[authority] = provider
        LOG.debug(f"Registered provider for authority {authority}")

    def acquire_provider(self, uri: str) -> Any:
        _, authority, _ = parse_uri(uri)
        provider = self._providers.get(authority)
        if provider is None:
            raise UnknownUriError(f"No provider registered for {uri}")
        return provider

    def query(
        self,
        uri: str,
        projection: Optional[Sequence[str]] = None,
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
        sort_order: Optional[str] = None,
    ):
        return self.acquire_provider(uri).query(uri, projection, selection, selection_args, sort_order)

    def insert(self, uri: str, values: Dict[str, Any]) -> Optional[str]:
        return self.acquire_provider(uri).insert(uri, values)

    def bulk_insert(self, uri: str, values_list: Iterable[Dict[str, Any]]) -> int:
        return self.acquire_provider(uri).bulk_insert(uri, values_list)

    def update(
        self,
        uri: str,
        values: Dict[str, Any],
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
    ) -> int:
        return self.acquire_provider(uri).update(uri, values, selection, selection_args)

    def delete(
        self,
        uri: str,
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
    ) -> int:
        return self.acquire_provider(uri).delete(uri, selection, selection_args)

    def get_type(self, uri: str) -> str:
        return self.acquire_provider(uri).get_type(uri)

    # ---------- observers ----------
    def register_content_observer(
        self, uri: str, notify_for_descendants: bool, observer: ContentObserver
    ) -> None:
        with self._lock:
            self._observers.append(_Registration(uri, bool(notify_for_descendants), observer))

    def unregister_content_observer(self, observer: ContentObserver) -> None:
        with self._lock:
            self._observers = [r for r in self._observers if r.observer is not observer]

    def notify_change(self, uri: str, observer: Optional[ContentObserver] = None) -> None:
        """Deliver a change on ``uri`` to every interested observer.

        Interested means registered on ``uri`` itself, on a descendant of it,
        or on an ancestor with ``notify_for_descendants``. ``observer`` is the
        originator and is skipped.
        """
        with self._lock:
            targets = [r.observer for r in self._observers if _interested(r, uri)]
        LOG.debug(f"notify_change {uri} -> {len(targets)} observer(s)")
        for target in targets:
            if target is observer:
                continue
            try:
                target.on_change(False, uri)
            except Exception:
                LOG.exception(f"Content observer failed for {uri}")


def _interested(reg: _Registration, changed: str) -> bool:
    if same_uri(reg.uri, changed):
        return True
    if is_descendant(changed, reg.uri):
        return True
    return reg.notify_for_descendants and is_descendant(reg.uri, changed)
