"""Runtime configuration, read once from the environment.

Values come from the CI job environment. For local runs a ``.env.local`` or
``.env`` file in the working directory is loaded first, without overriding
anything that is already exported.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from . import DEFAULT_OUTPUT_FILE
from .errors import ConfigError

__all__ = ["Settings", "load_env_files"]

_LOG = logging.getLogger(__name__)

_REQUIRED = ("API_BASE_URL", "APERTURE_OIDC_TOKEN", "PIPELINES_TOKEN_PATH")
_ENV_FILES = (".env.local", ".env")


def load_env_files(root: str | Path | None = None) -> Optional[Path]:
    """Load the first env file found under *root* (cwd by default)."""

    base = Path(root) if root is not None else Path.cwd()
    for name in _ENV_FILES:
        f = base / name
        if f.exists():
            load_dotenv(dotenv_path=f, override=False)
            _LOG.debug("Loaded env file %s", f)
            return f
    return None


@dataclass(frozen=True)
class Settings:
    api_base_url: str
    id_token: str = field(repr=False)
    pipelines_token_path: str
    output_path: Path = Path(DEFAULT_OUTPUT_FILE)
    http_timeout: Optional[float] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from *environ* (``os.environ`` by default).

        Raises :class:`ConfigError` listing every missing required variable.
        """

        env = os.environ if environ is None else environ
        values = {key: (env.get(key) or "").strip() for key in _REQUIRED}
        missing = [key for key, value in values.items() if not value]
        if missing:
            raise ConfigError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing=missing,
            )

        timeout_raw = (env.get("HTTP_TIMEOUT_SECONDS") or "").strip()
        try:
            timeout = float(timeout_raw) if timeout_raw else None
        except ValueError:
            raise ConfigError(
                f"HTTP_TIMEOUT_SECONDS must be a number, got {timeout_raw!r}"
            ) from None

        output = (env.get("PIPELINES_CREDENTIALS_FILE") or "").strip() or DEFAULT_OUTPUT_FILE

        return cls(
            api_base_url=values["API_BASE_URL"].rstrip("/"),
            id_token=values["APERTURE_OIDC_TOKEN"],
            pipelines_token_path=values["PIPELINES_TOKEN_PATH"],
            output_path=Path(output),
            http_timeout=timeout,
        )
