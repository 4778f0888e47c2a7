from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from cineresolver.infrastructure.config import load_config
from cineresolver.infrastructure.logging.setup import configure_logging
from cineresolver.interfaces.main import build_app

log = structlog.get_logger(__name__)

_DEFAULT_HOST = "0.0.0.0"
_DEFAULT_PORT = 7980

# argparse dests that double as flat config keys for load_config
_OVERRIDE_DESTS: tuple[str, ...] = (
    "browser_max_sessions",
    "browser_headless",
    "cache_ttl_seconds",
    "log_level",
    "log_format",
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cineresolver",
        description="Serve the stream resolution API.",
    )

    server = parser.add_argument_group("server")
    server.add_argument("--host", help="Bind host (default: $HOST or 0.0.0.0).")
    server.add_argument(
        "--port", type=int, help="Bind port (default: $PORT or 7980)."
    )

    sources = parser.add_argument_group("config sources")
    sources.add_argument("--config", type=Path, help="YAML config file.")
    sources.add_argument("--dotenv", type=Path, help=".env file to load first.")

    overrides = parser.add_argument_group("overrides (beat YAML and env)")
    overrides.add_argument(
        "--browser-max-sessions",
        type=int,
        help="Concurrent headless browser sessions.",
    )
    overrides.add_argument(
        "--headed",
        dest="browser_headless",
        action="store_false",
        default=None,
        help="Run Chromium with a visible window.",
    )
    overrides.add_argument(
        "--cache-ttl",
        dest="cache_ttl_seconds",
        type=int,
        help="Result cache TTL in seconds; 0 disables caching.",
    )
    overrides.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    overrides.add_argument("--log-format", choices=["json", "console"])
    return parser


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    return _build_parser().parse_args(list(argv) if argv is not None else None)


def build_cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Flags the user actually passed, as flat config keys."""
    return {
        dest: getattr(args, dest)
        for dest in _OVERRIDE_DESTS
        if getattr(args, dest) is not None
    }


def _bind_address(args: argparse.Namespace) -> tuple[str, int]:
    host = args.host or os.getenv("HOST") or _DEFAULT_HOST
    port = args.port or int(os.getenv("PORT") or _DEFAULT_PORT)
    return host, port


def start(argv: Iterable[str] | None = None) -> None:
    """Load config once, configure logging, then serve until interrupted."""
    args = _parse_args(sys.argv[1:] if argv is None else argv)

    config = load_config(
        config_path=args.config,
        dotenv_path=args.dotenv,
        cli_overrides=build_cli_overrides(args),
    )
    log_config = configure_logging(config)
    log.info("config_loaded", config=config.to_sectioned_dict())

    host, port = _bind_address(args)
    uvicorn.run(build_app(config), host=host, port=port, log_config=log_config)


if __name__ == "__main__":
    raise SystemExit(start())
