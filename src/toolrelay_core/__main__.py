"""Run the relay REST API: python -m toolrelay_core [--config PATH] [--host H] [--port N]."""

import argparse
import asyncio
from typing import Any

from toolrelay_core.application import RelayApplication


def build_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Turn CLI flags into config overrides. Unset flags are left out."""
    overrides: dict[str, Any] = {}
    server = {key: value for key, value in (("host", args.host), ("port", args.port)) if value is not None}
    if server:
        overrides["server"] = server
    if args.log_level:
        overrides["logging"] = {"level": args.log_level}
    if args.no_subprocess:
        overrides["api"] = {"allow_subprocess": False}
    return overrides


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="toolrelay", description="MCP connection relay")
    parser.add_argument("--config", "-c", help="Path to config file")
    parser.add_argument("--host", help="Bind address (overrides server.host)")
    parser.add_argument("--port", "-p", type=int, help="Port (overrides server.port)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARN", "ERROR"],
        help="Log level (overrides logging.level)",
    )
    parser.add_argument(
        "--no-subprocess",
        action="store_true",
        help="Reject stdio connections",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    app = RelayApplication(config_path=args.config, config_overrides=build_overrides(args))
    asyncio.run(app.serve())


if __name__ == "__main__":
    main()
