from __future__ import annotations

from datetime import timedelta

import pytest
import redis

from openchirp_pubsub.config import BridgeConfig
from openchirp_pubsub.exceptions import BridgeConfigError, BridgeConnectionError, StoreWriteError
from openchirp_pubsub.store import LatestValueStore, _parse_redis_address, build_redis_client

from .conftest import FakeClock, FakeRedis


def test_set_latest_passes_expiration_to_redis(
    store: LatestValueStore, fake_redis: FakeRedis, clock: FakeClock
) -> None:
    write = store.set_latest("openchirp:device:a:b", "1", timedelta(hours=1))

    assert fake_redis.set_calls == [("openchirp:device:a:b", "1", timedelta(hours=1))]
    assert write.written_at == clock.now
    assert write.expires_at == clock.now + timedelta(hours=1)


def test_set_latest_wraps_redis_errors(store: LatestValueStore, fake_redis: FakeRedis) -> None:
    fake_redis.set_error = redis.AuthenticationError("invalid password")

    with pytest.raises(StoreWriteError) as exc_info:
        store.set_latest("k", "v", timedelta(seconds=5))

    exc = exc_info.value
    assert exc.key == "k"
    assert exc.value == "v"
    assert exc.response is None
    assert isinstance(exc.__cause__, redis.AuthenticationError)


def test_set_latest_reports_unapplied_response(store: LatestValueStore, fake_redis: FakeRedis) -> None:
    fake_redis.set_response = None

    with pytest.raises(StoreWriteError, match="not applied"):
        store.set_latest("k", "v", timedelta(seconds=5))


def test_connect_pings(store: LatestValueStore) -> None:
    store.connect()


def test_connect_failure_is_connection_error(store: LatestValueStore, fake_redis: FakeRedis) -> None:
    fake_redis.ping_error = redis.ConnectionError("Connection refused")

    with pytest.raises(BridgeConnectionError, match="Failed to connect to Redis") as exc_info:
        store.connect()
    assert exc_info.value.service == "redis"


def test_close_closes_client(store: LatestValueStore, fake_redis: FakeRedis) -> None:
    store.close()
    assert fake_redis.closed


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("localhost:6379", ("localhost", 6379)),
        ("redis.internal:6380", ("redis.internal", 6380)),
        ("  cache  ", ("cache", 6379)),
    ],
)
def test_parse_redis_address(raw: str, expected: tuple[str, int]) -> None:
    assert _parse_redis_address(raw) == expected


@pytest.mark.parametrize("raw", ["", ":6379", "localhost:port"])
def test_parse_redis_address_rejects_invalid(raw: str) -> None:
    with pytest.raises(BridgeConfigError):
        _parse_redis_address(raw)


def test_build_redis_client_from_host_port() -> None:
    config = BridgeConfig(redis_server="cache.example:6390", redis_pass="pw", redis_db=3)

    client = build_redis_client(config)

    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["host"] == "cache.example"
    assert kwargs["port"] == 6390
    assert kwargs["db"] == 3
    assert kwargs["password"] == "pw"


def test_build_redis_client_without_password() -> None:
    client = build_redis_client(BridgeConfig())

    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["host"] == "localhost"
    assert kwargs["port"] == 6379
    assert kwargs["db"] == 1
    assert kwargs["password"] is None


def test_build_redis_client_from_url() -> None:
    client = build_redis_client(BridgeConfig(redis_server="redis://cache.example:6391/0"))

    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["host"] == "cache.example"
    assert kwargs["port"] == 6391
    assert kwargs["db"] == 1


def test_build_redis_client_url_database_does_not_override_redis_db() -> None:
    client = build_redis_client(BridgeConfig(redis_server="redis://cache:6379/0", redis_db=5))

    assert client.connection_pool.connection_kwargs["db"] == 5


def test_build_redis_client_redis_pass_overrides_url_password() -> None:
    url_only = build_redis_client(BridgeConfig(redis_server="redis://:fromurl@cache:6379"))
    explicit = build_redis_client(BridgeConfig(redis_server="redis://:fromurl@cache:6379", redis_pass="flag"))

    assert url_only.connection_pool.connection_kwargs["password"] == "fromurl"
    assert explicit.connection_pool.connection_kwargs["password"] == "flag"


@pytest.mark.parametrize("url", ["http://cache:6379", "redis://cache:abc"])
def test_build_redis_client_rejects_invalid_url(url: str) -> None:
    with pytest.raises(BridgeConfigError, match="Invalid Redis URL"):
        build_redis_client(BridgeConfig(redis_server=url))
