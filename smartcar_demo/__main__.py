"""Command-line launcher: ``python -m smartcar_demo``."""
from __future__ import annotations

import argparse
import os
from typing import Optional, Sequence

import uvicorn

from .config import load_settings
from .errors import ConfigError

APP_FACTORY_PATH = "smartcar_demo.main:create_app"
LOG_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")


def _reload_from_env() -> bool:
    return os.getenv("APP_RELOAD", "").strip().lower() in {"1", "true", "yes", "on"}


def build_parser(default_host: str, default_port: int) -> argparse.ArgumentParser:
    log_level = os.getenv("UVICORN_LOG_LEVEL", "info")

    parser = argparse.ArgumentParser(
        prog="smartcar-demo",
        description=(
            "Serve the Smartcar connect demo. Credentials and mode are read "
            "from SMARTCAR_* environment variables."
        ),
    )
    parser.add_argument(
        "--host",
        default=default_host,
        help=f"Interface to listen on; APP_HOST in the environment (now {default_host}).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=default_port,
        help=(
            f"Port to listen on; PORT in the environment (now {default_port}). "
            "Also used for the default callback URL."
        ),
    )
    parser.add_argument(
        "--log-level",
        default=log_level,
        choices=LOG_LEVELS,
        help=f"Server log verbosity; UVICORN_LOG_LEVEL in the environment (now {log_level}).",
    )
    parser.add_argument(
        "--reload",
        dest="reload",
        action="store_true",
        help="Restart the server when source files change (also APP_RELOAD=1).",
    )
    parser.add_argument(
        "--no-reload",
        dest="reload",
        action="store_false",
        help="Never restart on file changes, even with APP_RELOAD=1.",
    )
    parser.set_defaults(reload=_reload_from_env())
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Check the configuration, then hand the app factory to uvicorn."""

    try:
        settings = load_settings()
    except ConfigError as exc:
        raise SystemExit(f"smartcar-demo: {exc}") from exc

    args = build_parser(settings.host, settings.port).parse_args(argv)

    # The factory reloads settings inside uvicorn; the default redirect URI
    # must point at the port actually bound.
    os.environ["PORT"] = str(args.port)

    uvicorn.run(
        APP_FACTORY_PATH,
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
