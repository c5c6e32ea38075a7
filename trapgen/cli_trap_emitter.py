"""CLI for sending a burst of SNMP v2c coldStart traps at a fixed rate.

Flags use the single-dash spelling (``-target``, ``-count``, ...); the
double-dash forms are accepted too. Values not given on the command line
come from the ``emitter`` section of the settings file, then the defaults.

Exit status: 0 on completion (even if some sends failed), 1 if the session
could not be opened, 2 on a configuration error, 130 if interrupted.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any, Iterable

from trapgen.app_config import AppConfig
from trapgen.app_logger import AppLogger
from trapgen.emitter import TrapEmitter
from trapgen.emitter_config import EmitterConfig
from trapgen.errors import ConfigurationError, TrapConnectError

EXIT_OK = 0
EXIT_CONNECT_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130

RUN_OPTIONS = ("target", "source_ip", "port", "community", "count", "rate")


def _uint(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid unsigned integer: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trapgen",
        description="Send SNMP v2c coldStart traps to a receiver at a fixed rate",
        epilog="Example: %(prog)s -target 10.0.0.5 -count 100 -rate 10",
        allow_abbrev=False,
    )
    parser.add_argument(
        "-target",
        "--target",
        help="IP address or hostname of the trap receiver (default: 127.0.0.1)",
    )
    parser.add_argument(
        "-source-ip",
        "--source-ip",
        dest="source_ip",
        help="Agent address of the trap; any string (default: 127.0.0.1)",
    )
    parser.add_argument(
        "-port",
        "--port",
        type=_uint,
        help="UDP port of the trap receiver (default: 162)",
    )
    parser.add_argument(
        "-community",
        "--community",
        help="SNMP community string (default: public)",
    )
    parser.add_argument(
        "-count",
        "--count",
        type=_uint,
        help="Number of traps to send (default: 1)",
    )
    parser.add_argument(
        "-rate",
        "--rate",
        type=_uint,
        help="Traps per second, must be at least 1 (default: 1)",
    )
    agent_address = parser.add_mutually_exclusive_group()
    agent_address.add_argument(
        "--agent-address",
        dest="include_agent_address",
        action="store_const",
        const=True,
        help="Also send the source IP as snmpTrapAddress.0 (IPv4 only)",
    )
    agent_address.add_argument(
        "--no-agent-address",
        dest="include_agent_address",
        action="store_const",
        const=False,
        help="Send only the snmpTrapOID.0 binding (default)",
    )
    parser.add_argument(
        "--config",
        help="Settings file (default: trapgen.yaml or data/trapgen.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Override the configured log level",
    )
    return parser


def build_emitter_config(args: argparse.Namespace, app_config: AppConfig) -> EmitterConfig:
    """Merge settings-file values with command line flags; flags win."""
    values: dict[str, Any] = app_config.section("emitter")
    for name in RUN_OPTIONS + ("include_agent_address",):
        value = getattr(args, name, None)
        if value is not None:
            values[name] = value
    return EmitterConfig.from_mapping(values)


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        app_config = AppConfig(args.config)
    except FileNotFoundError:
        print(f"Error: Config file not found: {args.config}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    AppLogger.configure(app_config, level=args.log_level)

    try:
        config = build_emitter_config(args, app_config)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        TrapEmitter(config).run()
    except TrapConnectError as e:
        print(f"Connect() failed: {e}", file=sys.stderr)
        return EXIT_CONNECT_FAILED
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED

    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
