"""CLI entrypoint for groqchat."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from dataclasses import replace
from importlib import metadata
import logging

from dotenv import load_dotenv

from .app import GroqChatApp
from .config import ProxySettings, ensure_config_dir, load_config
from .logging_utils import configure_logging
from .proxy import run_server


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="groqchat",
        description="groqchat - terminal chat client and Groq completion proxy",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    subparsers = parser.add_subparsers(dest="command")
    serve = subparsers.add_parser("serve", help="Run the completion proxy server")
    serve.add_argument("--host", default=None, help="Interface to bind")
    serve.add_argument("--port", type=int, default=None, help="Port to listen on")
    return parser


def _serve(args: argparse.Namespace) -> None:
    load_dotenv()
    config = load_config()
    configure_logging(config["logging"], console_min_level=logging.INFO)
    settings = ProxySettings.from_config(config)
    overrides: dict[str, object] = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if overrides:
        settings = replace(settings, **overrides)
    run_server(settings)


def main(argv: Sequence[str] | None = None) -> None:
    """Ensure configuration exists, handle CLI flags, and run the TUI or proxy."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("groqchat")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"groqchat {version}")
        return

    ensure_config_dir()
    if args.command == "serve":
        _serve(args)
        return

    app = GroqChatApp()
    app.run()


if __name__ == "__main__":
    main()
