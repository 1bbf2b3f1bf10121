"""Structured JSON logging to stdout.

Low overhead, minimal dependencies, safe for production stdout collectors.
"""

from typing import Any, Dict
from datetime import datetime, timezone
import json

from cwlatency.config import settings


_LEVELS: Dict[str, int] = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


def _enabled(level: str) -> bool:
    threshold = _LEVELS.get(settings.LOG_LEVEL, 20)
    return _LEVELS.get(level, 20) >= threshold


def log_event(event: str, **fields: Any) -> None:
    level = str(fields.pop("level", "INFO")).upper()
    if not _enabled(level):
        return
    payload: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    payload.update(fields)

    try:
        print(json.dumps(payload, separators=(",", ":"), default=str))
    except (TypeError, ValueError, OSError):
        # Logging must never fail the request being instrumented
        pass
