from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from streamchain.domain.entities import ContentRef
from streamchain.domain.exceptions import ResolutionError
from streamchain.infrastructure.config import AppConfig, load_config
from streamchain.infrastructure.logging.setup import configure_logging
from streamchain.interfaces.app import create_app
from streamchain.interfaces.composition import build_resolution_stack, create_http_client

log = structlog.get_logger(__name__)


def _common_options() -> argparse.ArgumentParser:
    # SUPPRESS keeps a subcommand from resetting options given before it.
    common = argparse.ArgumentParser(add_help=False, argument_default=argparse.SUPPRESS)

    # Config wiring flags (no business logic)
    common.add_argument(
        "--config",
        help="Path to YAML config file.",
    )
    common.add_argument(
        "--dotenv",
        help="Path to .env file.",
    )
    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    common.add_argument(
        "--log-format",
        choices=["json", "console"],
        help="Override log format.",
    )
    return common


def _parse_args(argv: Iterable[str]) -> argparse.Namespace:
    common = _common_options()
    parser = argparse.ArgumentParser(prog="streamchain", parents=[common])
    parser.set_defaults(
        command=None, config=None, dotenv=None, log_level=None, log_format=None
    )
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", parents=[common], help="Run the HTTP API (default).")
    serve.add_argument(
        "--host",
        default=None,
        help="Bind host (overrides HOST env).",
    )
    serve.add_argument(
        "--port",
        default=None,
        type=int,
        help="Bind port (overrides PORT env).",
    )

    resolve = sub.add_parser(
        "resolve", parents=[common], help="Resolve one title and print the outcome."
    )
    resolve.add_argument("provider", help="Provider id, e.g. vidsrc.")
    resolve.add_argument("tmdb_id", help="TMDB id of the movie or series.")
    resolve.add_argument("--season", type=int, default=None)
    resolve.add_argument("--episode", type=int, default=None)

    args = parser.parse_args(list(argv))
    if args.command is None:
        args.command = "serve"
    if args.command == "serve":
        args.host = getattr(args, "host", None)
        args.port = getattr(args, "port", None)
    return args


def _load(args: argparse.Namespace) -> AppConfig:
    cli_overrides: dict[str, Any] = {}
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format

    return load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=cli_overrides,
    )


def _content_ref(args: argparse.Namespace) -> ContentRef:
    if args.season is None and args.episode is None:
        return ContentRef(tmdb_id=args.tmdb_id)
    return ContentRef(
        tmdb_id=args.tmdb_id,
        media_type="tv",
        season=args.season,
        episode=args.episode,
    )


async def resolve_once(config: AppConfig, provider_id: str, ref: ContentRef) -> dict[str, Any]:
    """Resolve once with a throwaway client and return a JSON-ready outcome.

    Operator diagnostics: unlike the HTTP API, failures include the
    typed error and its trail.
    """
    async with create_http_client(config) as http_client:
        stack = build_resolution_stack(config, http_client)
        try:
            result = await stack.resolver.resolve(provider_id, ref)
        except ResolutionError as exc:
            return {
                "success": False,
                "error": type(exc).__name__,
                "detail": str(exc),
                "retryable": exc.retryable,
                "trail": exc.trail.as_dict() if exc.trail else None,
            }
    return {
        "success": True,
        "url": result.url,
        "fallbackUrls": list(result.fallback_urls),
        "provider": result.provider_id,
        "trail": result.trail.as_dict() if result.trail else None,
    }


def _serve(args: argparse.Namespace, config: AppConfig, log_config: dict[str, Any]) -> int:
    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = int(args.port or os.getenv("PORT", "8080"))

    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        log_config=log_config,
    )
    return 0


def _resolve(args: argparse.Namespace, config: AppConfig) -> int:
    try:
        ref = _content_ref(args)
    except ValueError as exc:
        print(f"invalid content reference: {exc}", file=sys.stderr)
        return 2

    outcome = asyncio.run(resolve_once(config, args.provider, ref))
    print(json.dumps(outcome, indent=2))
    return 0 if outcome["success"] else 1


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Config is loaded exactly once here, then handed to the selected command.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)
    config = _load(args)
    log_config = configure_logging(config)

    if args.command == "resolve":
        return _resolve(args, config)
    return _serve(args, config, log_config)


if __name__ == "__main__":
    raise SystemExit(start())
