"""Bridge configuration for openchirp_pubsub."""

from __future__ import annotations

import dataclasses
import os
from datetime import timedelta
from typing import Any

from openchirp_pubsub._constants import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_MQTT_SERVER,
    DEFAULT_REDIS_DB,
    DEFAULT_REDIS_SERVER,
    LAST_VALUE_EXPIRATION,
)
from openchirp_pubsub.exceptions import BridgeConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, kind: type[int] | type[float]) -> int | float:
    try:
        return kind(value.strip())
    except ValueError as exc:
        raise BridgeConfigError(f"{env_key} must be a {kind.__name__}, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class BridgeConfig:
    """Bridge configuration.

    Parameters
    ----------
    mqtt_server : str
        MQTT broker URI, ``scheme://host:port`` where scheme is ``tcp``
        or ``tls``.
    mqtt_user : str
        Username for the broker. Empty disables authentication.
    mqtt_pass : str
        Password for the broker.
    mqtt_client_id : str
        Client identifier. Empty lets paho pick a random one.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    mqtt_connect_timeout : float
        Seconds to wait for the broker's CONNACK at startup.
    redis_server : str
        Redis address, ``host:port`` or a ``redis://`` URL.
    redis_pass : str
        Redis password. Empty disables AUTH.
    redis_db : int
        Redis logical database index.
    redis_socket_timeout : float
        Socket timeout for Redis commands in seconds.
    redis_socket_connect_timeout : float
        Socket connect timeout for Redis in seconds.
    value_expiration : timedelta
        Lifetime of each mirrored value. Refreshed on every write.
    log_level : int
        debug=5, info=4, warning=3, error=2, fatal=1, panic=0.
    systemd : bool
        Send logs to the local syslog socket instead of stderr.
    """

    mqtt_server: str = DEFAULT_MQTT_SERVER
    mqtt_user: str = ""
    mqtt_pass: str = ""
    mqtt_client_id: str = ""
    mqtt_keepalive: int = 60
    mqtt_connect_timeout: float = 10.0
    redis_server: str = DEFAULT_REDIS_SERVER
    redis_pass: str = ""
    redis_db: int = DEFAULT_REDIS_DB
    redis_socket_timeout: float = 5.0
    redis_socket_connect_timeout: float = 5.0
    value_expiration: timedelta = LAST_VALUE_EXPIRATION
    log_level: int = DEFAULT_LOG_LEVEL
    systemd: bool = False

    @classmethod
    def from_env(cls, **overrides: Any) -> BridgeConfig:
        """Create configuration from environment variables.

        Reads the service variables (``MQTT_SERVER``, ``REDIS_DB``,
        ``LOG_LEVEL``, ...) plus tuning knobs prefixed with
        ``OPENCHIRP_PUBSUB_``. Explicit keyword arguments override
        environment values.

        Raises
        ------
        BridgeConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "MQTT_SERVER": "mqtt_server",
            "MQTT_USER": "mqtt_user",
            "MQTT_PASS": "mqtt_pass",
            "OPENCHIRP_PUBSUB_MQTT_CLIENT_ID": "mqtt_client_id",
            "REDIS_SERVER": "redis_server",
            "REDIS_PASS": "redis_pass",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMBER_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "REDIS_DB": ("redis_db", int),
            "LOG_LEVEL": ("log_level", int),
            "OPENCHIRP_PUBSUB_MQTT_KEEPALIVE": ("mqtt_keepalive", int),
            "OPENCHIRP_PUBSUB_MQTT_CONNECT_TIMEOUT": ("mqtt_connect_timeout", float),
            "OPENCHIRP_PUBSUB_REDIS_SOCKET_TIMEOUT": ("redis_socket_timeout", float),
            "OPENCHIRP_PUBSUB_REDIS_CONNECT_TIMEOUT": ("redis_socket_connect_timeout", float),
        }
        for env_key, (field_name, kind) in _ENV_NUMBER_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, kind)

        # Expiration is given in hours, stored as a timedelta
        hours_env = env.get("OPENCHIRP_PUBSUB_VALUE_EXPIRATION_HOURS")
        if hours_env is not None and "value_expiration" not in overrides:
            hours = _env_number("OPENCHIRP_PUBSUB_VALUE_EXPIRATION_HOURS", hours_env, float)
            if hours <= 0:
                raise BridgeConfigError("OPENCHIRP_PUBSUB_VALUE_EXPIRATION_HOURS must be positive")
            config_kwargs["value_expiration"] = timedelta(hours=hours)

        if "systemd" not in overrides:
            config_kwargs["systemd"] = _env_bool(env.get("SYSTEMD"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
