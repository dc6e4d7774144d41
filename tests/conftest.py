from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from openchirp_pubsub.store import LatestValueStore


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@dataclass
class FakeRedis:
    """Records SETs the way Redis would apply them: last write wins, EX resets."""

    clock: FakeClock
    data: dict[str, tuple[str, datetime]] = field(default_factory=dict)
    set_calls: list[tuple[str, str, Any]] = field(default_factory=list)
    set_error: Exception | None = None
    set_response: Any = True
    ping_error: Exception | None = None
    closed: bool = False

    def ping(self) -> bool:
        if self.ping_error is not None:
            raise self.ping_error
        return True

    def set(self, key: str, value: str, ex: timedelta | None = None) -> Any:
        self.set_calls.append((key, value, ex))
        if self.set_error is not None:
            raise self.set_error
        if self.set_response:
            assert ex is not None
            self.data[key] = (value, self.clock() + ex)
        return self.set_response

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 1, tzinfo=UTC))


@pytest.fixture
def fake_redis(clock: FakeClock) -> FakeRedis:
    return FakeRedis(clock=clock)


@pytest.fixture
def store(fake_redis: FakeRedis, clock: FakeClock) -> LatestValueStore:
    return LatestValueStore(fake_redis, clock=clock)  # type: ignore[arg-type]


ENV_KEYS = (
    "MQTT_SERVER",
    "MQTT_USER",
    "MQTT_PASS",
    "REDIS_SERVER",
    "REDIS_PASS",
    "REDIS_DB",
    "LOG_LEVEL",
    "SYSTEMD",
    "OPENCHIRP_PUBSUB_MQTT_CLIENT_ID",
    "OPENCHIRP_PUBSUB_MQTT_KEEPALIVE",
    "OPENCHIRP_PUBSUB_MQTT_CONNECT_TIMEOUT",
    "OPENCHIRP_PUBSUB_REDIS_SOCKET_TIMEOUT",
    "OPENCHIRP_PUBSUB_REDIS_CONNECT_TIMEOUT",
    "OPENCHIRP_PUBSUB_VALUE_EXPIRATION_HOURS",
)
