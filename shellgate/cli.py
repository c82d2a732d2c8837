#!/usr/bin/env python3
"""Command-line entry point: parse flags, build the gateway, start a transport."""
import argparse
import asyncio
import dataclasses
import logging
import sys
from typing import List, Optional

from shellgate.base.config import GatewayConfig, set_config, setup_logging
from shellgate.errors import ErrorCode, GatewayError
from shellgate.gateway import CommandGateway

logger = logging.getLogger("shellgate")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shellgate",
        description="Policy-gated shell command execution server",
    )
    parser.add_argument(
        "--allowed-commands",
        help="Comma-separated list of allowed commands or '*' to allow all commands "
             "(default: $SHELLGATE_ALLOWED_COMMANDS)",
    )
    parser.add_argument(
        "--transport", choices=["stdio", "http"], default="stdio",
        help="How callers reach the tools (default: stdio)",
    )
    parser.add_argument("--host", help="HTTP bind address (default: $SHELLGATE_API_HOST or 127.0.0.1)")
    parser.add_argument("--port", type=int, help="HTTP port (default: $SHELLGATE_API_PORT or 8765)")
    parser.add_argument("--timeout", type=float, help="Per-command timeout in seconds (default: 30)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    return parser


def print_usage_error(prog: str) -> None:
    print("Error: The '--allowed-commands' flag is required.", file=sys.stderr)
    print(f"Usage: {prog} --allowed-commands=ls,cat,echo,find", file=sys.stderr)
    print(f"Or to allow all commands (use with caution): {prog} --allowed-commands=*", file=sys.stderr)


def apply_overrides(config: GatewayConfig, args: argparse.Namespace) -> GatewayConfig:
    """Layer CLI flags over the environment-derived config."""
    changes = {}
    if args.allowed_commands is not None:
        changes["allowed_commands"] = args.allowed_commands
    if args.host:
        changes["api_host"] = args.host
    if args.port:
        changes["api_port"] = args.port
    if args.timeout is not None:
        changes["execution"] = dataclasses.replace(config.execution, command_timeout=args.timeout)
    if args.log_level:
        changes["log"] = dataclasses.replace(config.log, level=args.log_level)
    return dataclasses.replace(config, **changes)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = apply_overrides(GatewayConfig.from_env(), args)
    except GatewayError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    if not (config.allowed_commands or "").strip():
        print_usage_error(parser.prog)
        return 1

    setup_logging(config)
    set_config(config)

    try:
        gateway = CommandGateway.from_config(config)
    except GatewayError as exc:
        logger.error(f"Failed to create server: {exc}")
        if exc.code == ErrorCode.CONFIG_MISSING_REQUIRED:
            print_usage_error(parser.prog)
        return 1

    if gateway.policy.allow_all:
        logger.warning("Starting shell server with all commands allowed ('*' mode)")
    else:
        logger.info(f"Starting shell server with {len(gateway.policy.commands)} allowed commands")

    try:
        if args.transport == "http":
            from shellgate.server.api import serve
            serve(gateway, host=config.api_host, port=config.api_port)
        else:
            from shellgate.server.stdio import serve_stdio
            asyncio.run(serve_stdio(gateway))
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
