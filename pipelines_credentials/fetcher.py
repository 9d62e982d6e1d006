"""Two-step token exchange: OIDC login, then Pipelines PAT lookup.

The login call is retried on 5xx / 429 with a flat random backoff. The PAT
call is never retried. The output file is only touched once both calls have
succeeded.
"""
from __future__ import annotations

import asyncio
import logging
import random
from pathlib import Path
from typing import Awaitable, Callable, Optional

import httpx

from . import (
    LOGIN_MAX_RETRIES,
    LOGIN_PATH,
    MAX_BACKOFF_MS,
    OUTPUT_KEY,
    PAT_PATH_TEMPLATE,
)
from .config import Settings
from .errors import ExchangeError, RetryableAuthError, TerminalAuthError
from .http import PipelinesHTTP, is_retryable
from .metrics import login_retries_total
from .models import TokenResponse

__all__ = ["CredentialFetcher", "backoff_delay"]

_LOG = logging.getLogger(__name__)


def backoff_delay() -> float:
    """Seconds to wait before the next login attempt, uniform over [0, 3)."""
    return random.randrange(MAX_BACKOFF_MS) / 1000


def _raise_for_login(resp: httpx.Response) -> None:
    if resp.is_success:
        return
    message = f"Failed to get provider token: {resp.status_code} {resp.reason_phrase}"
    if is_retryable(resp):
        raise RetryableAuthError(message, status_code=resp.status_code, reason=resp.reason_phrase)
    raise TerminalAuthError(message, status_code=resp.status_code, reason=resp.reason_phrase)


class CredentialFetcher:
    def __init__(
        self,
        settings: Settings,
        http: Optional[PipelinesHTTP] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        max_retries: int = LOGIN_MAX_RETRIES,
    ) -> None:
        self.settings = settings
        self._own = http is None
        self.http = http or PipelinesHTTP(
            base_url=settings.api_base_url,
            timeout=settings.http_timeout,
            transport=transport,
        )
        self._sleep = sleep or asyncio.sleep
        self._max_retries = max_retries

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self) -> None:
        if self._own:
            await self.http.aclose()

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def login(self) -> str:
        """Return the provider token, retrying retryable failures."""
        retries = self._max_retries
        attempt = 0
        while True:
            attempt += 1
            resp = await self.http.post(
                LOGIN_PATH, token=self.settings.id_token, endpoint=LOGIN_PATH
            )
            try:
                _raise_for_login(resp)
            except RetryableAuthError as exc:
                if retries <= 0:
                    raise TerminalAuthError(
                        str(exc),
                        status_code=exc.status_code,
                        reason=exc.reason,
                        attempts=attempt,
                    ) from exc
                retries -= 1
                _LOG.warning(
                    "%s. Retrying...",
                    exc,
                    extra={"step": "login", "attempt": attempt, "status": exc.status_code},
                )
                login_retries_total.inc()
                await self._sleep(backoff_delay())
                continue
            except TerminalAuthError as exc:
                exc.attempts = attempt
                raise
            return TokenResponse.from_response(resp).token

    async def exchange(self, provider_token: str) -> str:
        """Trade the provider token for the Pipelines read token. No retry."""
        url = PAT_PATH_TEMPLATE.format(path=self.settings.pipelines_token_path)
        resp = await self.http.get(url, token=provider_token, endpoint=PAT_PATH_TEMPLATE)
        if not resp.is_success:
            raise ExchangeError(
                f"Failed to get pipelines token: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
                reason=resp.reason_phrase,
            )
        return TokenResponse.from_response(resp).token

    def write(self, token: str, path: Optional[Path] = None) -> Path:
        """Append the ``KEY=token`` line; never truncates."""
        target = Path(path or self.settings.output_path)
        with target.open("a", encoding="utf-8") as fh:
            fh.write(f"{OUTPUT_KEY}={token}\n")
        return target

    async def run(self) -> Path:
        provider_token = await self.login()
        pipelines_token = await self.exchange(provider_token)
        target = self.write(pipelines_token)
        _LOG.info("Outputted pipelines token to %s", target, extra={"step": "write"})
        return target
