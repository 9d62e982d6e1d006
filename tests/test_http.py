import httpx
import pytest
from prometheus_client import REGISTRY

from pipelines_credentials.http import PipelinesHTTP, is_retryable


class _Transport500(httpx.AsyncBaseTransport):
    def __init__(self):
        self.requests = []

    async def handle_async_request(self, request):  # type: ignore[override]
        self.requests.append(request)
        return httpx.Response(500)


@pytest.mark.parametrize(
    "status, expected",
    [(200, False), (400, False), (401, False), (403, False), (404, False), (429, True), (500, True), (502, True), (503, True), (599, True)],
)
def test_is_retryable(status, expected):
    assert is_retryable(httpx.Response(status)) is expected


@pytest.mark.anyio
async def test_request_injects_bearer_and_does_not_raise():
    transport = _Transport500()
    async with PipelinesHTTP(base_url="https://api.test", transport=transport) as http:
        resp = await http.get("/tokens/pat/x", token="abc", headers={"Accept": "application/json"})

    assert resp.status_code == 500
    req, = transport.requests
    assert req.headers["Authorization"] == "Bearer abc"
    assert req.headers["Accept"] == "application/json"


@pytest.mark.anyio
async def test_request_metrics_use_endpoint_label():
    labels = {"endpoint": "/tokens/pat/{path}", "method": "get", "status": "500"}
    before = REGISTRY.get_sample_value("pipelines_http_requests_total", labels) or 0

    async with PipelinesHTTP(base_url="https://api.test", transport=_Transport500()) as http:
        await http.get("/tokens/pat/secret-path", token="abc", endpoint="/tokens/pat/{path}")

    assert REGISTRY.get_sample_value("pipelines_http_requests_total", labels) == before + 1


@pytest.mark.anyio
async def test_timeout_is_passed_to_client():
    http = PipelinesHTTP(base_url="https://api.test", timeout=3.0, transport=_Transport500())
    try:
        assert http._client.timeout.connect == 3.0
    finally:
        await http.aclose()
