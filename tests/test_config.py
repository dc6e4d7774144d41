from __future__ import annotations

from datetime import timedelta

import pytest

from openchirp_pubsub.config import BridgeConfig, _env_bool
from openchirp_pubsub.exceptions import BridgeConfigError

from .conftest import ENV_KEYS


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = BridgeConfig.from_env()

    assert config.mqtt_server == "tls://localhost:8883"
    assert config.mqtt_user == ""
    assert config.redis_server == "localhost:6379"
    assert config.redis_db == 1
    assert config.log_level == 4
    assert config.systemd is False
    assert config.value_expiration == timedelta(hours=3072)


def test_reads_service_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MQTT_SERVER", "tcp://mq:1883")
    monkeypatch.setenv("MQTT_USER", "bridge")
    monkeypatch.setenv("MQTT_PASS", "s3cret")
    monkeypatch.setenv("REDIS_SERVER", "cache:6380")
    monkeypatch.setenv("REDIS_PASS", "rpw")
    monkeypatch.setenv("REDIS_DB", "4")
    monkeypatch.setenv("LOG_LEVEL", "5")
    monkeypatch.setenv("SYSTEMD", "true")

    config = BridgeConfig.from_env()

    assert config.mqtt_server == "tcp://mq:1883"
    assert config.mqtt_user == "bridge"
    assert config.mqtt_pass == "s3cret"
    assert config.redis_server == "cache:6380"
    assert config.redis_pass == "rpw"
    assert config.redis_db == 4
    assert config.log_level == 5
    assert config.systemd is True


def test_reads_tuning_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENCHIRP_PUBSUB_MQTT_KEEPALIVE", "15")
    monkeypatch.setenv("OPENCHIRP_PUBSUB_MQTT_CONNECT_TIMEOUT", "2.5")
    monkeypatch.setenv("OPENCHIRP_PUBSUB_VALUE_EXPIRATION_HOURS", "1.5")

    config = BridgeConfig.from_env()

    assert config.mqtt_keepalive == 15
    assert config.mqtt_connect_timeout == 2.5
    assert config.value_expiration == timedelta(minutes=90)


def test_overrides_take_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REDIS_DB", "4")
    monkeypatch.setenv("SYSTEMD", "1")

    config = BridgeConfig.from_env(redis_db=7, systemd=False)

    assert config.redis_db == 7
    assert config.systemd is False


def test_invalid_number_is_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REDIS_DB", "one")

    with pytest.raises(BridgeConfigError, match="REDIS_DB"):
        BridgeConfig.from_env()


def test_non_positive_expiration_is_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENCHIRP_PUBSUB_VALUE_EXPIRATION_HOURS", "0")

    with pytest.raises(BridgeConfigError):
        BridgeConfig.from_env()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, False), ("yes", True), ("OFF", False), ("garbage", False)],
)
def test_env_bool(raw: str | None, expected: bool) -> None:
    assert _env_bool(raw, False) is expected
