"""Minimal in-process counters describing the emitter's own health.

No external dependencies. Thread-safe: hooks run in Starlette's threadpool.
"""

from typing import Dict, Any, Optional, Tuple, List
import threading


_COUNTERS_LOCK = threading.Lock()

# Internal store: (name, sorted label pairs) -> value
_COUNTERS: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], int] = {}


def _labels_key(labels: Optional[Dict[str, str]]) -> Tuple[Tuple[str, str], ...]:
    if not labels:
        return tuple()
    # Stable ordering
    return tuple(sorted((str(k), str(v)) for k, v in labels.items()))


def inc_counter(metric: str, labels: Optional[Dict[str, str]] = None, value: int = 1) -> None:
    key = (metric, _labels_key(labels))
    with _COUNTERS_LOCK:
        _COUNTERS[key] = _COUNTERS.get(key, 0) + value


def get_counter(metric: str, labels: Optional[Dict[str, str]] = None) -> int:
    with _COUNTERS_LOCK:
        return _COUNTERS.get((metric, _labels_key(labels)), 0)


def get_counters_snapshot() -> List[Dict[str, Any]]:
    counters: List[Dict[str, Any]] = []
    with _COUNTERS_LOCK:
        for (name, labels_tuple), value in _COUNTERS.items():
            counters.append(
                {
                    "name": name,
                    "labels": {k: v for k, v in labels_tuple},
                    "value": value,
                }
            )
    return counters


def reset_counters() -> None:
    with _COUNTERS_LOCK:
        _COUNTERS.clear()
