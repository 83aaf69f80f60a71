"""Content URI helpers and the route matcher used by providers.

Content URIs look like ``content://<authority>/<segment>/<segment>``.
"""

from __future__ import annotations

import re
from typing import List, Tuple
from urllib.parse import urlsplit

CONTENT_SCHEME = "content"
NO_MATCH = -1

_DIGITS = re.compile(r"^[0-9]+$")


def parse_uri(uri: str) -> Tuple[str, str, List[str]]:
    """Split a URI into (scheme, authority, path segments)."""
    parts = urlsplit(uri or "")
    segments = [s for s in parts.path.split("/") if s]
    return parts.scheme, parts.netloc, segments


def build_uri(authority: str, *segments: object) -> str:
    path = "/".join(str(s).strip("/") for s in segments if str(s).strip("/"))
    base = f"{CONTENT_SCHEME}://{authority}"
    return f"{base}/{path}" if path else base


def with_appended_id(uri: str, row_id: int) -> str:
    return f"{uri.rstrip('/')}/{int(row_id)}"


def parse_id(uri: str) -> int:
    """Return the trailing numeric id of ``uri``.

    Returns -1 when the URI has no path segments. A non-numeric last segment
    raises ValueError.
    """
    _, _, segments = parse_uri(uri)
    if not segments:
        return -1
    return int(segments[-1])


def is_descendant(parent: str, child: str) -> bool:
    """True when ``child`` lies strictly below ``parent`` in the same authority."""
    p_scheme, p_auth, p_segs = parse_uri(parent)
    c_scheme, c_auth, c_segs = parse_uri(child)
    if (p_scheme, p_auth) != (c_scheme, c_auth):
        return False
    return len(c_segs) > len(p_segs) and c_segs[: len(p_segs)] == p_segs


def same_uri(a: str, b: str) -> bool:
    return parse_uri(a) == parse_uri(b)


class UriMatcher:
    """Map content URIs to integer route codes.

    Pattern segments: ``#`` matches digits, ``*`` matches any segment,
    anything else must match literally.
    """

    def __init__(self, no_match: int = NO_MATCH) -> None:
        self.no_match = no_match
        self._routes: List[Tuple[str, List[str], int]] = []

    def add_uri(self, authority: str, path: str, code: int) -> None:
        if code < 0:
            raise ValueError(f"Route code must be >= 0: {code}")
        segments = [s for s in (path or "").split("/") if s]
        self._routes.append((authority, segments, code))

    def match(self, uri: str) -> int:
        scheme, authority, segments = parse_uri(uri)
        if scheme != CONTENT_SCHEME:
            return self.no_match
        for route_authority, pattern, code in self._routes:
            if route_authority != authority or len(pattern) != len(segments):
                continue
            if all(_segment_matches(p, s) for p, s in zip(pattern, segments)):
                return code
        return self.no_match


def _segment_matches(pattern: str, segment: str) -> bool:
    if pattern == "#":
        return bool(_DIGITS.match(segment))
    if pattern == "*":
        return bool(segment)
    return pattern == segment
