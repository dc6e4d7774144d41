"""Logging setup for the bridge process."""

from __future__ import annotations

import logging
import logging.handlers

from openchirp_pubsub._constants import APP_NAME
from openchirp_pubsub.exceptions import BridgeConfigError

# debug=5, info=4, warning=3, error=2, fatal=1, panic=0
_VERBOSITY_LEVELS: dict[int, int] = {
    0: logging.CRITICAL,
    1: logging.CRITICAL,
    2: logging.ERROR,
    3: logging.WARNING,
    4: logging.INFO,
    5: logging.DEBUG,
}

_STREAM_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_SYSLOG_FORMAT = APP_NAME + "[%(process)d]: %(levelname)s %(name)s: %(message)s"
SYSLOG_ADDRESS = "/dev/log"


def level_from_verbosity(verbosity: int) -> int:
    """Translate a numeric verbosity (0-5, higher is chattier) to a logging level."""
    if verbosity < 0:
        raise BridgeConfigError(f"log level must be >= 0, got {verbosity}")
    return _VERBOSITY_LEVELS.get(verbosity, logging.DEBUG)


def configure_logging(
    verbosity: int,
    *,
    use_syslog: bool = False,
    syslog_address: str | tuple[str, int] = SYSLOG_ADDRESS,
) -> logging.Logger:
    """Install root handlers and return the application logger.

    With *use_syslog* records go only to the local syslog socket, which
    journald collects when running under systemd.
    """
    level = level_from_verbosity(verbosity)

    handler: logging.Handler
    if use_syslog:
        handler = logging.handlers.SysLogHandler(address=syslog_address)
        handler.setFormatter(logging.Formatter(_SYSLOG_FORMAT))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_STREAM_FORMAT))

    logging.basicConfig(level=level, handlers=[handler], force=True)
    # paho is chatty at DEBUG; only let it through when we are too.
    logging.getLogger("paho").setLevel(level)
    return logging.getLogger(APP_NAME)
