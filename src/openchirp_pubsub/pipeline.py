"""Per-message bridge from MQTT topic/payload pairs to latest-value writes."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Protocol

from openchirp_pubsub._constants import LAST_VALUE_EXPIRATION
from openchirp_pubsub.exceptions import StoreWriteError
from openchirp_pubsub.keys import topic_to_key
from openchirp_pubsub.models import BusMessage, KeyWrite


class LatestValueWriter(Protocol):
    """Anything that can persist one latest value with an expiration."""

    def set_latest(self, key: str, value: str, expiration: timedelta) -> KeyWrite: ...


class BridgePipeline:
    """Stateless transformer: one message in, at most one store write out.

    Safe to call from any thread; it keeps no state between calls.
    """

    def __init__(
        self,
        store: LatestValueWriter,
        *,
        expiration: timedelta = LAST_VALUE_EXPIRATION,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._expiration = expiration
        self._logger = logger or logging.getLogger(__name__)

    @property
    def expiration(self) -> timedelta:
        return self._expiration

    def handle(self, topic: str, payload: bytes) -> KeyWrite | None:
        """Mirror one message into the store.

        Returns the completed write, or ``None`` when the store rejected it.
        Failed writes are logged and dropped; they are never retried.
        """
        return self.handle_message(BusMessage(topic=topic, payload=payload))

    def handle_message(self, message: BusMessage) -> KeyWrite | None:
        value = message.text
        self._logger.debug("MQTT message: %s = %s", message.topic, value)

        key = topic_to_key(message.topic)
        try:
            return self._store.set_latest(key, value, self._expiration)
        except StoreWriteError as exc:
            cause = exc.__cause__ if exc.__cause__ is not None else exc
            self._logger.error(
                "Failed to set %s with %s: response=%r | err=%s",
                key,
                value,
                exc.response,
                cause,
            )
            return None
