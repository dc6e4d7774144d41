"""Command-line entry point: ``openchirp-pubsub``.

Drops OpenChirp device transducer values into Redis until interrupted.
Every flag can also be set through the environment variable named in its
help text.
"""

from __future__ import annotations

import argparse
import dataclasses
import signal
import sys
import threading
from collections.abc import Sequence
from typing import Any

from openchirp_pubsub import __version__
from openchirp_pubsub._constants import (
    APP_NAME,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MQTT_SERVER,
    DEFAULT_REDIS_DB,
    DEFAULT_REDIS_SERVER,
)
from openchirp_pubsub._logging import configure_logging
from openchirp_pubsub._redact import redact_for_log
from openchirp_pubsub.bridge import Bridge
from openchirp_pubsub.config import BridgeConfig
from openchirp_pubsub.exceptions import BridgeConfigError, BridgeConnectionError

EXIT_OK = 0
EXIT_CONNECTION_ERROR = 1
EXIT_CONFIG_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    # Flags default to None so unset ones fall through to the environment.
    parser = argparse.ArgumentParser(
        prog="openchirp-pubsub",
        description="Mirror the latest OpenChirp device transducer values from MQTT into Redis.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--mqtt-server",
        help=(
            "MQTT server's URI (e.g. scheme://host:port where scheme is tcp or tls) "
            f"[$MQTT_SERVER, default {DEFAULT_MQTT_SERVER}]"
        ),
    )
    parser.add_argument(
        "--mqtt-user",
        help="Username to login to the MQTT server with [$MQTT_USER]",
    )
    parser.add_argument(
        "--mqtt-pass",
        help="Password to login to the MQTT server with [$MQTT_PASS]",
    )
    parser.add_argument(
        "--redis-server",
        help=(
            "The address of the Redis server, host:port or redis:// URL. A database in the URL is "
            "ignored (use --redis-db); --redis-pass, when set, replaces a URL password "
            f"[$REDIS_SERVER, default {DEFAULT_REDIS_SERVER}]"
        ),
    )
    parser.add_argument(
        "--redis-pass",
        help="Password to login to the Redis server with [$REDIS_PASS]",
    )
    parser.add_argument(
        "--redis-db",
        type=int,
        help=f"Selects which Redis DB to use [$REDIS_DB, default {DEFAULT_REDIS_DB}]",
    )
    parser.add_argument(
        "--log-level",
        type=int,
        help=f"debug=5, info=4, warning=3, error=2, fatal=1, panic=0 [$LOG_LEVEL, default {DEFAULT_LOG_LEVEL}]",
    )
    parser.add_argument(
        "--systemd",
        action="store_true",
        default=None,
        help="Indicates that this service can use systemd specific interfaces (log to syslog) [$SYSTEMD]",
    )
    return parser


_FLAG_FIELDS = (
    "mqtt_server",
    "mqtt_user",
    "mqtt_pass",
    "redis_server",
    "redis_pass",
    "redis_db",
    "log_level",
    "systemd",
)


def _config_from_args(args: argparse.Namespace) -> BridgeConfig:
    """Build the configuration from the environment, with given flags taking precedence."""
    overrides = {name: getattr(args, name) for name in _FLAG_FIELDS if getattr(args, name) is not None}
    return BridgeConfig.from_env(**overrides)


def _install_signal_handlers(shutdown: threading.Event) -> dict[int, Any]:
    def stop_handler(_signum: int, _frame: Any) -> None:
        shutdown.set()

    previous: dict[int, Any] = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, stop_handler)
    return previous


def _restore_signal_handlers(previous: dict[int, Any]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def main(argv: Sequence[str] | None = None, *, shutdown: threading.Event | None = None) -> int:
    """Run the bridge until SIGINT/SIGTERM; return the process exit status."""
    args = _build_parser().parse_args(argv)
    try:
        config = _config_from_args(args)
    except BridgeConfigError as exc:
        print(f"{APP_NAME}: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        logger = configure_logging(config.log_level, use_syslog=config.systemd)
    except BridgeConfigError as exc:
        print(f"{APP_NAME}: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    logger.debug("Effective configuration: %s", redact_for_log(dataclasses.asdict(config)))

    if shutdown is None:
        shutdown = threading.Event()
    previous = _install_signal_handlers(shutdown)
    try:
        with Bridge.from_config(config, logger=logger):
            # Wake periodically so signals are handled promptly on all platforms.
            while not shutdown.wait(1.0):
                pass
            logger.info("Shutdown requested")
    except BridgeConfigError as exc:
        logger.critical("Invalid configuration: %s", exc)
        return EXIT_CONFIG_ERROR
    except BridgeConnectionError as exc:
        logger.critical("%s", exc)
        return EXIT_CONNECTION_ERROR
    finally:
        _restore_signal_handlers(previous)

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
