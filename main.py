from datetime import datetime, timezone
from fastapi import FastAPI, Request
from dotenv import load_dotenv

from cwlatency.config import settings
from cwlatency.obs.diagnostics import get_counters_snapshot
from cwlatency.obs.hooks import get_put_metric
from cwlatency.obs.logger import log_event
from cwlatency.obs.middleware import Middleware
from cwlatency.types import Dimension, MetricDatum

load_dotenv()


app = FastAPI(title="cwlatency demo", version="0.1.0")

latency = Middleware.from_settings(settings)
latency.exclude_url("/health")
latency.exclude_url("/diagnostics")
latency.install(app)

log_event(
    "startup",
    namespace=latency.namespace,
    region=settings.AWS_REGION,
    excluded=sorted(latency.excluded_urls()),
)


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "cwlatency"}


@app.get("/diagnostics")
async def diagnostics():
    return {"counters": get_counters_snapshot()}


@app.get("/ping")
async def ping():
    return {"pong": True}


@app.get("/work/{units}")
def work(units: int, request: Request):
    # Custom metric tied to this request, emitted through the per-request handle
    put_metric = get_put_metric(request)
    if put_metric is not None:
        put_metric([
            MetricDatum(
                metric_name="WorkUnits",
                value=float(units),
                unit="Count",
                timestamp=datetime.now(timezone.utc),
                dimensions=[Dimension(name="Route", value="/work")],
            )
        ])
    return {"units": units}
