"""Content-access primitives: URIs, values, cursors and the resolver."""

from .cursor import Cursor
from .resolver import ContentObserver, ContentResolver
from .uris import NO_MATCH, UriMatcher, build_uri, parse_id, with_appended_id
from .values import ContentValues

__all__ = [
    "ContentObserver",
    "ContentResolver",
    "ContentValues",
    "Cursor",
    "NO_MATCH",
    "UriMatcher",
    "build_uri",
    "parse_id",
    "with_appended_id",
]
