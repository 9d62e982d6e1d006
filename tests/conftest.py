import logging
from pathlib import Path

import httpx
import pytest

from pipelines_credentials.config import Settings

_ENV_KEYS = (
    "API_BASE_URL",
    "APERTURE_OIDC_TOKEN",
    "PIPELINES_TOKEN_PATH",
    "PIPELINES_CREDENTIALS_FILE",
    "HTTP_TIMEOUT_SECONDS",
    "LOG_FORMAT",
    "LOG_LEVEL",
    "METRICS_TEXTFILE",
)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    # set-then-delete so monkeypatch also undoes values written later by python-dotenv
    for key in _ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """Drop the stdout handler configure_logging() installs; pytest re-adds its own per phase."""
    root = logging.getLogger()
    level = root.level
    yield
    for h in list(root.handlers):
        if type(h) is logging.StreamHandler:
            root.removeHandler(h)
    root.setLevel(level)


# ---------------------------------------------------------------------------
# Fake token API
# ---------------------------------------------------------------------------


class ApiTransport(httpx.AsyncBaseTransport):
    """Scripted token API.

    ``login`` and ``pat`` are lists of ``(status, body)``; each call pops the
    next entry and the last one repeats. ``body`` may be a dict (JSON), a
    str/bytes (raw content) or None.
    """

    def __init__(self, login=(), pat=()):
        self.login = list(login) or [(200, {"token": "prov"})]
        self.pat = list(pat) or [(200, {"token": "pat"})]
        self.requests: list[httpx.Request] = []

    def calls(self, prefix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith(prefix)]

    @property
    def login_calls(self) -> list[httpx.Request]:
        return self.calls("/tokens/auth/login")

    @property
    def pat_calls(self) -> list[httpx.Request]:
        return self.calls("/tokens/pat/")

    async def handle_async_request(self, request):  # type: ignore[override]
        self.requests.append(request)
        if request.url.path == "/tokens/auth/login":
            script = self.login
        elif request.url.path.startswith("/tokens/pat/"):
            script = self.pat
        else:
            return httpx.Response(404)
        status, body = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(body, dict):
            return httpx.Response(status, json=body)
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, content=body)


class SleepRecorder:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def api():
    return ApiTransport


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def output_path(tmp_path) -> Path:
    return tmp_path / "credentials.sh"


@pytest.fixture
def settings(output_path) -> Settings:
    return Settings(
        api_base_url="https://api.test",
        id_token="idtok",
        pipelines_token_path="gruntwork",
        output_path=output_path,
    )
