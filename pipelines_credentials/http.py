"""HTTP client for the Pipelines token API.

Uses `httpx.AsyncClient` with:
* Base URL from `Settings.api_base_url`
* Redirects followed, as a browser fetch would
* Bearer-token injection per call (the caller picks which token)
* Prometheus counters + histogram (labels: endpoint, method, status)

Retrying is the caller's business: only the login call retries, and only on
some statuses. Tests swap the transport for an in-memory one.
"""
from __future__ import annotations

import logging
import time
from typing import Optional

import httpx

from .metrics import http_latency_seconds, http_requests_total

__all__ = ["PipelinesHTTP", "is_retryable"]

_LOG = logging.getLogger(__name__)


def is_retryable(resp: httpx.Response) -> bool:
    return resp.status_code >= 500 or resp.status_code == 429


class PipelinesHTTP:
    def __init__(
        self,
        *,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        kwargs = {"base_url": base_url, "transport": transport, "follow_redirects": True}
        if timeout is not None:
            kwargs["timeout"] = timeout
        self._client = httpx.AsyncClient(**kwargs)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        token: str,
        endpoint: Optional[str] = None,
        **kwargs,
    ) -> httpx.Response:
        """Send one request; never raises for HTTP error statuses."""
        headers = {**kwargs.pop("headers", {}), "Authorization": f"Bearer {token}"}
        endpoint_label = endpoint or url.split("?", 1)[0]

        start = time.perf_counter()
        resp = await self._client.request(method, url, headers=headers, **kwargs)
        http_latency_seconds.labels(endpoint_label).observe(time.perf_counter() - start)
        http_requests_total.labels(endpoint_label, method.lower(), resp.status_code).inc()
        _LOG.debug("%s %s -> %s", method, endpoint_label, resp.status_code)
        return resp

    async def get(self, url: str, **kw) -> httpx.Response:  # noqa: D401 – imperative
        return await self._request("GET", url, **kw)

    async def post(self, url: str, **kw) -> httpx.Response:  # noqa: D401 – imperative
        return await self._request("POST", url, **kw)

    async def aclose(self) -> None:
        await self._client.aclose()

    # context-manager sugar
    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
