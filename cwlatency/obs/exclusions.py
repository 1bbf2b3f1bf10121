"""Paths the middleware lets through without instrumentation."""

import re
import threading
from typing import Iterable, List, Set
from urllib.parse import unquote, urlsplit

from cwlatency.errors import InvalidURLError


_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_CONTROL_OR_SPACE = re.compile(r"[\x00-\x20\x7f]")


def normalize_url(url: str) -> str:
    """Validate ``url`` and reduce it to the decoded path a request would carry.

    ``http://example.com/ping?x=1`` and ``/ping`` both normalize to ``/ping``;
    ``/with%20space`` normalizes to ``/with space``, matching the ASGI ``path``.
    Raises InvalidURLError for anything that does not parse as a URL.
    """
    if not url:
        raise InvalidURLError(url, "empty URL")
    if _CONTROL_OR_SPACE.search(url):
        raise InvalidURLError(url, "contains whitespace or control characters")
    if _BAD_ESCAPE.search(url):
        raise InvalidURLError(url, "malformed percent-escape")
    if url.startswith(":"):
        raise InvalidURLError(url, "missing protocol scheme")
    try:
        parts = urlsplit(url)
        parts.port  # raises on a non-numeric or out of range port
    except ValueError as e:
        raise InvalidURLError(url, str(e)) from e

    path = parts.path
    if not path and parts.netloc:
        path = "/"
    if not path:
        raise InvalidURLError(url, "no path component")
    if not path.startswith("/"):
        raise InvalidURLError(url, "path is not absolute")
    return unquote(path)


class ExclusionSet:
    """Thread-safe set of excluded request paths (exact match, no wildcards)."""

    def __init__(self, urls: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._paths: Set[str] = set()
        for u in urls:
            self.exclude(u)

    def exclude(self, url: str) -> None:
        path = normalize_url(url)
        with self._lock:
            self._paths.add(path)

    def is_excluded(self, path: str) -> bool:
        return path in self._paths

    def excluded(self) -> List[str]:
        with self._lock:
            return list(self._paths)

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __len__(self) -> int:
        return len(self._paths)
