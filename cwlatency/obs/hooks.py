"""Before/after hooks run around the wrapped handler.

Both hooks are plain callables held on the middleware and may be replaced
at any time. The defaults publish the emitter on the request state and
record one latency datum per request.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Callable, Optional

from starlette.datastructures import Headers
from starlette.requests import Request

from cwlatency.types import Dimension, Measurement, MetricBatch, MetricDatum

if TYPE_CHECKING:
    from cwlatency.obs.middleware import Middleware


# Well-known request.state attribute holding the emission handle
PUT_METRIC_KEY = "put_metric"

LATENCY_UNIT = "Microseconds"

# CloudWatch rejects dimension values longer than this
MAX_DIMENSION_VALUE = 1024

PutMetricFunc = Callable[[MetricBatch], None]
BeforeHook = Callable[["Middleware", Request, str], None]
AfterHook = Callable[["Middleware", Request, Optional["ResponseInfo"], timedelta, str], None]


class ResponseInfo:
    """Status and headers of the response, as seen on the ASGI send channel."""

    def __init__(self, status_code: int, headers: Optional[Headers] = None):
        self.status_code = status_code
        self.headers = headers if headers is not None else Headers()

    @classmethod
    def from_start_message(cls, message: dict) -> "ResponseInfo":
        return cls(int(message.get("status", 200)), Headers(raw=message.get("headers", [])))


def get_put_metric(request: Request) -> Optional[PutMetricFunc]:
    """Emission handle for the current request, or None outside instrumentation."""
    return getattr(request.state, PUT_METRIC_KEY, None)


def clear_put_metric(request: Request) -> None:
    if getattr(request.state, PUT_METRIC_KEY, None) is not None:
        delattr(request.state, PUT_METRIC_KEY)


def request_uri(request: Request) -> str:
    """The raw request target: path plus query string, as sent by the client."""
    raw = request.scope.get("raw_path")
    path = raw.decode("latin-1") if raw else request.url.path
    query = request.scope.get("query_string", b"")
    if query:
        return f"{path}?{query.decode('latin-1')}"
    return path


def build_measurement(
    request: Request, response: Optional[ResponseInfo], elapsed: timedelta, client_addr: str
) -> Measurement:
    return Measurement(
        elapsed=elapsed,
        method=request.method,
        request_uri=request_uri(request),
        client_addr=client_addr,
        status_code=response.status_code if response is not None else None,
    )


def default_before(mw: Middleware, request: Request, client_addr: str) -> None:
    setattr(request.state, PUT_METRIC_KEY, mw.emitter.emit)


def default_after(
    mw: Middleware,
    request: Request,
    response: Optional[ResponseInfo],
    elapsed: timedelta,
    client_addr: str,
) -> None:
    m = build_measurement(request, response, elapsed, client_addr)
    try:
        mw.emitter.emit([
            MetricDatum(
                metric_name=mw.latency_metric_name,
                value=m.elapsed_us,
                unit=LATENCY_UNIT,
                timestamp=mw.clock.now(),
                dimensions=[
                    Dimension(name="RequestURI", value=m.request_uri[:MAX_DIMENSION_VALUE]),
                    Dimension(name="RemoteAddr", value=m.client_addr[:MAX_DIMENSION_VALUE]),
                ],
            )
        ])
    finally:
        clear_put_metric(request)
