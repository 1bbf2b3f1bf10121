"""Request latency middleware for CloudWatch.

Usage::

    mw = new("us-east-1", "my-service")
    mw.exclude_url("/health")
    mw.install(app)   # or: app.add_middleware(LatencyMiddleware, middleware=mw)
"""

from typing import Any, Iterable, List, Optional

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from cwlatency.config import Settings
from cwlatency.obs.clock import Clock, RealClock
from cwlatency.obs.emitter import DEFAULT_MAX_RETRIES, MetricEmitter, create_cloudwatch_client
from cwlatency.obs.exclusions import ExclusionSet
from cwlatency.obs.hooks import AfterHook, BeforeHook, ResponseInfo, default_after, default_before


DEFAULT_LATENCY_METRIC_NAME = "Latency"
REAL_IP_HEADER = "X-Real-IP"
UNKNOWN_CLIENT = "unknown"


def client_address(request: Request) -> str:
    real_ip = request.headers.get(REAL_IP_HEADER)
    if real_ip:
        return real_ip
    if request.client is not None and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


class Middleware:
    def __init__(
        self,
        emitter: MetricEmitter,
        latency_metric_name: str = DEFAULT_LATENCY_METRIC_NAME,
        before: Optional[BeforeHook] = default_before,
        after: Optional[AfterHook] = default_after,
        clock: Optional[Clock] = None,
        excluded_urls: Iterable[str] = (),
    ):
        self.emitter = emitter
        self.latency_metric_name = latency_metric_name
        self.before = before
        self.after = after
        self.clock: Clock = clock or RealClock()
        self.exclusions = ExclusionSet(excluded_urls)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "Middleware":
        client = create_cloudwatch_client(
            settings.AWS_REGION,
            max_retries=settings.CLOUDWATCH_MAX_RETRIES,
            connect_timeout=settings.CLOUDWATCH_CONNECT_TIMEOUT,
            read_timeout=settings.CLOUDWATCH_READ_TIMEOUT,
        )
        return cls(
            MetricEmitter(settings.CLOUDWATCH_NAMESPACE, client),
            latency_metric_name=settings.LATENCY_METRIC_NAME,
            excluded_urls=settings.excluded_urls,
            **kwargs,
        )

    @property
    def namespace(self) -> str:
        return self.emitter.namespace

    @namespace.setter
    def namespace(self, value: str) -> None:
        self.emitter.namespace = value

    def exclude_url(self, url: str) -> None:
        """Skip instrumentation for ``url``'s path. Raises InvalidURLError."""
        self.exclusions.exclude(url)

    def excluded_urls(self) -> List[str]:
        return self.exclusions.excluded()

    def install(self, app: Starlette) -> None:
        app.add_middleware(LatencyMiddleware, middleware=self)

    def bind_default_hooks(self) -> None:
        if self.before is None:
            self.before = default_before
        if self.after is None:
            self.after = default_after


class LatencyMiddleware:
    """ASGI middleware timing the wrapped app until the last body chunk is sent."""

    def __init__(self, app: ASGIApp, middleware: Middleware):
        self.app = app
        self.middleware = middleware

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        mw = self.middleware
        mw.bind_default_hooks()

        request = Request(scope, receive)
        if mw.exclusions.is_excluded(request.url.path):
            return await self.app(scope, receive, send)

        client_addr = client_address(request)
        start = mw.clock.now()
        response: Optional[ResponseInfo] = None

        async def send_wrapper(message: Message) -> None:
            nonlocal response
            if message.get("type") == "http.response.start":
                response = ResponseInfo.from_start_message(message)
            await send(message)

        mw.before(mw, request, client_addr)

        await self.app(scope, receive, send_wrapper)

        elapsed = mw.clock.elapsed(start)
        # The emitter does blocking network I/O; keep it off the event loop
        await run_in_threadpool(mw.after, mw, request, response, elapsed, client_addr)


def new(
    region: str,
    namespace: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
    connect_timeout: float = 3.0,
    read_timeout: float = 10.0,
) -> Middleware:
    """Middleware bound to a CloudWatch client in ``region``, reporting under ``namespace``."""
    client = create_cloudwatch_client(
        region,
        max_retries=max_retries,
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
    )
    return Middleware(MetricEmitter(namespace, client))
