"""Exceptions raised by the cwlatency package."""


class CWLatencyError(Exception):
    """Base class for all cwlatency errors."""


class InvalidURLError(CWLatencyError, ValueError):
    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"invalid URL {url!r}: {reason}")
