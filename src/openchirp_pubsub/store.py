"""Redis-backed latest-value store.

Each key holds exactly one string: the most recent value written for it.
Every write replaces the value and restarts its expiration. Keys are never
deleted here; Redis drops them on expiry or eviction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import redis
from redis.connection import parse_url

from openchirp_pubsub.config import BridgeConfig
from openchirp_pubsub.exceptions import BridgeConfigError, BridgeConnectionError, StoreWriteError
from openchirp_pubsub.models import KeyWrite

_DEFAULT_REDIS_PORT = 6379


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _parse_redis_address(raw_address: str) -> tuple[str, int]:
    value = raw_address.strip()
    if not value:
        raise BridgeConfigError("Redis address is empty")

    host, sep, maybe_port = value.rpartition(":")
    if not sep:
        return value, _DEFAULT_REDIS_PORT
    if not host:
        raise BridgeConfigError(f"Redis address has no host: {raw_address!r}")
    if not maybe_port.isdigit():
        raise BridgeConfigError(f"Redis address has an invalid port: {raw_address!r}")
    return host, int(maybe_port)


def _parse_redis_url(config: BridgeConfig) -> dict[str, Any]:
    try:
        url_options = parse_url(config.redis_server)
    except ValueError as exc:
        raise BridgeConfigError(f"Invalid Redis URL {config.redis_server!r}: {exc}") from exc

    # redis_db always selects the database; redis_pass wins over URL userinfo when set.
    url_options.pop("db", None)
    if config.redis_pass:
        url_options.pop("password", None)
    return url_options


def build_redis_client(config: BridgeConfig) -> redis.Redis:
    """Create a (not yet connected) Redis client from *config*.

    Accepts either ``host:port`` or a ``redis://`` / ``rediss://`` /
    ``unix://`` URL. A database path in the URL is ignored in favour of
    ``config.redis_db``.
    """
    options: dict[str, Any] = {
        "db": config.redis_db,
        "password": config.redis_pass or None,
        "socket_timeout": config.redis_socket_timeout,
        "socket_connect_timeout": config.redis_socket_connect_timeout,
        "decode_responses": True,
    }
    if "://" in config.redis_server:
        options.update(_parse_redis_url(config))
        return redis.Redis(connection_pool=redis.ConnectionPool(**options))

    host, port = _parse_redis_address(config.redis_server)
    return redis.Redis(host=host, port=port, **options)


class LatestValueStore:
    """Thin wrapper around a Redis client exposing the latest-value write."""

    def __init__(
        self,
        client: redis.Redis,
        *,
        clock: Callable[[], datetime] = _utcnow,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: BridgeConfig, *, logger: logging.Logger | None = None) -> LatestValueStore:
        return cls(build_redis_client(config), logger=logger)

    def connect(self) -> None:
        """Verify the server is reachable.

        Raises
        ------
        BridgeConnectionError
            If the PING fails for any reason (refused, timeout, auth).
        """
        try:
            pong = self._client.ping()
        except redis.RedisError as exc:
            raise BridgeConnectionError(f"Failed to connect to Redis: {exc}", service="redis") from exc
        self._logger.debug("Redis pong: %s", pong)

    def set_latest(self, key: str, value: str, expiration: timedelta) -> KeyWrite:
        """Store *value* at *key*, replacing any previous value.

        Raises
        ------
        StoreWriteError
            If Redis rejects or fails the SET.
        """
        written_at = self._clock()
        try:
            response = self._client.set(key, value, ex=expiration)
        except redis.RedisError as exc:
            raise StoreWriteError(str(exc), key=key, value=value) from exc

        if not response:
            raise StoreWriteError("SET was not applied", key=key, value=value, response=response)

        return KeyWrite(key=key, value=value, expiration=expiration, written_at=written_at)

    def close(self) -> None:
        """Release pooled connections."""
        try:
            self._client.close()
        finally:
            self._logger.debug("Redis connection closed")
