"""Failure modes of a credential exchange run."""
from __future__ import annotations

from typing import Optional

__all__ = [
    "CredentialsError",
    "ConfigError",
    "RetryableAuthError",
    "TerminalAuthError",
    "ExchangeError",
]


class CredentialsError(Exception):
    """Base class for every handled failure of a run."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        reason: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class ConfigError(CredentialsError):
    """Required configuration is missing or invalid."""

    def __init__(self, message: str, *, missing: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])


class RetryableAuthError(CredentialsError):
    """Login answered 5xx or 429; the request may be repeated."""


class TerminalAuthError(CredentialsError):
    """Login failed for good: non-retryable status or retries exhausted."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        reason: str = "",
        attempts: int = 1,
    ) -> None:
        super().__init__(message, status_code=status_code, reason=reason)
        self.attempts = attempts


class ExchangeError(CredentialsError):
    """Pipelines token endpoint answered with a non-success status."""
