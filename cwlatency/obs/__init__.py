"""Request latency instrumentation.

Middleware, hooks, clock, exclusion set and CloudWatch emitter, plus the
structured logger and in-process counters they report through.
"""

__all__ = [
    "clock",
    "diagnostics",
    "emitter",
    "exclusions",
    "hooks",
    "logger",
    "middleware",
]
