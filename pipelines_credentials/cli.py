import argparse
import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from . import SERVICE_NAME, __version__
from .config import Settings, load_env_files
from .errors import CredentialsError
from .fetcher import CredentialFetcher
from .logging import configure_logging
from .metrics import maybe_write_textfile, runs_total

_LOG = logging.getLogger(__name__)


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=SERVICE_NAME,
        description="Fetch a Gruntwork Pipelines read token and append it to a dotenv file.",
    )
    parser.add_argument("--output", type=Path, default=None, help="file to append to (default: credentials.sh)")
    parser.add_argument("--log-format", choices=("text", "json"), default=None)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


async def _run(settings: Settings) -> Path:
    async with CredentialFetcher(settings) as fetcher:
        return await fetcher.run()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    configure_logging(args.log_format, service_name=SERVICE_NAME)

    try:
        load_env_files()
        settings = Settings.from_env()
        if args.output is not None:
            settings = replace(settings, output_path=args.output)
        asyncio.run(_run(settings))
    except CredentialsError as exc:
        _LOG.error("%s", exc, extra={"status": exc.status_code})
        code = 1
    except Exception as exc:  # noqa: BLE001
        _LOG.exception("Failed to get pipelines token: %s", exc)
        code = 1
    else:
        code = 0

    runs_total.labels("success" if code == 0 else "failure").inc()
    try:
        maybe_write_textfile()
    except OSError as exc:
        _LOG.warning("Could not write metrics textfile: %s", exc)
    return code


if __name__ == "__main__":
    raise SystemExit(main())
