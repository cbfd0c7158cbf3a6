"""Prometheus metrics for the realip service.

Custom metrics that complement the auto-instrumented HTTP metrics
provided by ``prometheus-fastapi-instrumentator``.

All metrics use the ``realip_`` prefix.
"""

import logging

from fastapi import FastAPI
from prometheus_client import Counter, Gauge
from prometheus_fastapi_instrumentator import Instrumentator

from realip.configs.system import TracingConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Resolution metrics
# ---------------------------------------------------------------------------

RESOLUTIONS_TOTAL = Counter(
    "realip_resolutions_total",
    "Real-IP resolutions, by which branch produced the answer",
    ["source"],  # invalid_peer | untrusted_peer | cdn_header | forwarded_header | peer
)

HOOK_FAILURES_TOTAL = Counter(
    "realip_hook_failures_total",
    "Extension hook invocations that raised or returned garbage",
    ["hook"],
)

# ---------------------------------------------------------------------------
# CDN range cache metrics
# ---------------------------------------------------------------------------

CDN_REFRESHES_TOTAL = Counter(
    "realip_cdn_refreshes_total",
    "CDN range refresh attempts",
    ["result"],  # ok | failed
)

CDN_RANGES_CACHED = Gauge(
    "realip_cdn_ranges_cached",
    "Number of CDN ranges in the most recently stored cache entry",
)


def init_metrics(app: FastAPI, config: TracingConfig) -> None:
    """Attach HTTP instrumentation and the ``/metrics`` endpoint."""
    Instrumentator(
        should_instrument_requests_inprogress=True,
        excluded_handlers=config.excluded_urls,
    ).instrument(app).expose(app, endpoint="/metrics")

    logger.info("Prometheus metrics initialised")
