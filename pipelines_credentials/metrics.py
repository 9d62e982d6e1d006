"""
Prometheus metrics for a credential exchange run.

No HTTP server is started: the process is a short CI step. Set
METRICS_TEXTFILE to have the CLI dump the registry on exit in the
node-exporter textfile collector format.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Tuple, Type

from prometheus_client import REGISTRY, Counter, Histogram, write_to_textfile

_LOG = logging.getLogger(__name__)

# ----------------------------
# Registration helper (avoid duplicate collectors)
# ----------------------------
_METRICS: Dict[Tuple[Type[Any], str], Any] = {}


def get_metric(cls: Type[Any], name: str, *args, **kwargs):
    key = (cls, name)
    if key in _METRICS:
        return _METRICS[key]
    metric = cls(name, *args, **kwargs)
    _METRICS[key] = metric
    return metric


http_requests_total = get_metric(
    Counter,
    "pipelines_http_requests_total",
    "HTTP requests to the Pipelines API",
    ["endpoint", "method", "status"],
)

http_latency_seconds = get_metric(
    Histogram,
    "pipelines_http_latency_seconds",
    "Latency of Pipelines API requests in seconds",
    ["endpoint"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10),
)

login_retries_total = get_metric(
    Counter,
    "pipelines_login_retries_total",
    "Login attempts repeated after a retryable status",
)

runs_total = get_metric(
    Counter,
    "pipelines_credentials_runs_total",
    "Credential exchange runs by outcome",
    ["result"],
)


def maybe_write_textfile(path: Optional[str] = None) -> Optional[str]:
    """Write the default registry to *path* or ``$METRICS_TEXTFILE``, if set."""

    target = path or os.getenv("METRICS_TEXTFILE")
    if not target:
        return None
    write_to_textfile(target, REGISTRY)
    _LOG.debug("Wrote metrics to %s", target)
    return target
