from __future__ import annotations

import argparse
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog

from kvlink.domain.entities import CommandStatus
from kvlink.domain.ports import CacheClientPort
from kvlink.infrastructure.config import AppConfig, load_config
from kvlink.infrastructure.logging.setup import configure_logging
from kvlink.interfaces.composition import client_scope

log = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_MISS = 1
EXIT_UNAVAILABLE = 2

DEFAULT_MAX_BYTES = 1024 * 1024


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="kvlink",
        description="Store, fetch and probe keys on a Redis server.",
    )

    # Connection options
    parser.add_argument(
        "--host",
        default=None,
        help="Redis host (overrides KVLINK_REDIS_HOST).",
    )
    parser.add_argument(
        "--port",
        default=None,
        type=int,
        help="Redis port (overrides KVLINK_REDIS_PORT).",
    )
    parser.add_argument(
        "--password",
        default=None,
        help="Redis AUTH password (overrides KVLINK_REDIS_PASSWORD).",
    )

    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    set_cmd = commands.add_parser("set", help="Store VALUE under KEY.")
    set_cmd.add_argument("key")
    set_cmd.add_argument("value", help="Value to store; '-' reads raw bytes from stdin.")
    set_cmd.add_argument(
        "--ttl",
        default=None,
        type=int,
        help="Expiry in seconds (<= 0 = never). Defaults to cache.ttl_seconds.",
    )

    get_cmd = commands.add_parser("get", help="Write the value of KEY to stdout.")
    get_cmd.add_argument("key")
    get_cmd.add_argument(
        "--max-bytes",
        default=DEFAULT_MAX_BYTES,
        type=int,
        help="Largest value accepted; longer values count as a miss.",
    )

    exists_cmd = commands.add_parser("exists", help="Check whether KEY exists.")
    exists_cmd.add_argument("key")

    commands.add_parser("ping", help="Check that the server is reachable.")

    return parser.parse_args(argv)


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.host:
        overrides["redis_host"] = args.host
    if args.port is not None:
        overrides["redis_port"] = args.port
    if args.password is not None:
        overrides["redis_password"] = args.password
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.log_format:
        overrides["log_format"] = args.log_format
    return overrides


def _read_value(raw: str) -> bytes:
    if raw == "-":
        return sys.stdin.buffer.read()
    return raw.encode("utf-8")


def _run(args: argparse.Namespace, config: AppConfig, client: CacheClientPort) -> int:
    if args.command == "ping":
        ready = client.is_ready()
        print("ready" if ready else "not ready")
        return EXIT_OK if ready else EXIT_UNAVAILABLE

    if not client.is_ready():
        print(
            f"kvlink: cannot reach {config.redis.host}:{config.redis.port}",
            file=sys.stderr,
        )
        return EXIT_UNAVAILABLE

    if args.command == "set":
        ttl = config.default_ttl_seconds if args.ttl is None else args.ttl
        status = client.store(args.key, _read_value(args.value), ttl_seconds=ttl)
        if status is CommandStatus.OK:
            return EXIT_OK
        print(f"kvlink: set failed ({status.value})", file=sys.stderr)
        return EXIT_UNAVAILABLE if status is CommandStatus.NOT_CONNECTED else EXIT_MISS

    if args.command == "get":
        # +1: the client reserves one byte of capacity for a terminator.
        result = client.fetch(args.key, args.max_bytes + 1)
        if not result.found:
            return EXIT_MISS
        sys.stdout.buffer.write(result.value)
        sys.stdout.buffer.flush()
        return EXIT_OK

    # exists
    found = client.exists(args.key)
    print("1" if found else "0")
    return EXIT_OK if found else EXIT_MISS


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Loads config exactly once, builds the one shared client, runs a
    single command and releases the connection again.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    config = load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=_cli_overrides(args),
    )

    configure_logging(config)
    log.debug("cli_command", command=args.command)

    with client_scope(config) as client:
        return _run(args, config, client)


if __name__ == "__main__":
    raise SystemExit(start())
