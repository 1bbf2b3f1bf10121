"""Delivery of metric batches to CloudWatch.

Emission is best effort: a failed PutMetricData call is logged and counted,
never raised back into the request that produced the metrics.
"""

from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from cwlatency.obs.diagnostics import inc_counter
from cwlatency.obs.logger import log_event
from cwlatency.types import MetricBatch


DEFAULT_MAX_RETRIES = 5


def create_cloudwatch_client(
    region: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
    connect_timeout: float = 3.0,
    read_timeout: float = 10.0,
) -> Any:
    """Build a boto3 CloudWatch client with bounded retries and timeouts."""
    config = Config(
        retries={"max_attempts": max_retries, "mode": "standard"},
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
    )
    return boto3.client("cloudwatch", region_name=region, config=config)


class MetricEmitter:
    def __init__(self, namespace: str, client: Any):
        self.namespace = namespace
        self.client = client

    def __call__(self, batch: MetricBatch) -> None:
        self.emit(batch)

    def emit(self, batch: MetricBatch) -> None:
        data = [d.to_cloudwatch() for d in batch]
        if not data:
            log_event("metrics_skip_empty", level="DEBUG", namespace=self.namespace)
            return

        try:
            self.client.put_metric_data(Namespace=self.namespace, MetricData=data)
        except ClientError as e:
            err = e.response.get("Error", {})
            code = err.get("Code", "Unknown")
            log_event(
                "metrics_emit_failed",
                level="ERROR",
                namespace=self.namespace,
                kind="client_error",
                code=code,
                message=err.get("Message", str(e)),
                datums=len(data),
            )
            inc_counter("emit_failures_total", {"kind": "client_error", "code": code})
            return
        except Exception as e:
            log_event(
                "metrics_emit_failed",
                level="ERROR",
                namespace=self.namespace,
                kind="transport",
                error=type(e).__name__,
                message=str(e),
                datums=len(data),
            )
            inc_counter("emit_failures_total", {"kind": "transport"})
            return

        inc_counter("emit_batches_total", {"namespace": self.namespace})
        inc_counter("emit_datums_total", {"namespace": self.namespace}, value=len(data))
