import os
import sys
import asyncio
import inspect
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

# Ensure project root is on sys.path so `import cwlatency` works in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from cwlatency.obs.clock import FixedClock
from cwlatency.obs.diagnostics import reset_counters
from cwlatency.obs.emitter import MetricEmitter
from cwlatency.obs.middleware import Middleware


NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def pytest_pyfunc_call(pyfuncitem):
    """Allow running async tests without pytest-asyncio.

    If the test function is a coroutine, run it in a fresh event loop.
    """
    testfunction = pyfuncitem.obj
    if inspect.iscoroutinefunction(testfunction):
        funcargs = pyfuncitem.funcargs
        sig = inspect.signature(testfunction)
        # Filter only the parameters that the test function expects
        allowed = {name: funcargs[name] for name in sig.parameters.keys() if name in funcargs}
        asyncio.run(testfunction(**allowed))
        return True
    return None


@pytest.fixture(autouse=True)
def _clean_counters():
    reset_counters()
    yield
    reset_counters()


@pytest.fixture
def aws_env(monkeypatch):
    """Fake credentials so boto3 clients never look for real ones."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


class RecordingEmit:
    """Stands in for MetricEmitter.emit and remembers every batch."""

    def __init__(self):
        self.batches = []

    def __call__(self, batch):
        self.batches.append(list(batch))

    @property
    def calls(self):
        return len(self.batches)


@pytest.fixture
def cw_client():
    return MagicMock(name="cloudwatch")


@pytest.fixture
def fixed_clock():
    return FixedClock(now=NOW, elapsed=timedelta(microseconds=10))


@pytest.fixture
def recorder():
    return RecordingEmit()


@pytest.fixture
def mw(cw_client, fixed_clock, recorder):
    m = Middleware(MetricEmitter("test", cw_client), clock=fixed_clock)
    m.emitter.emit = recorder
    m.exclude_url("/ping")
    return m
