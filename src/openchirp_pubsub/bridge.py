"""Bridge lifecycle: owns the store, the MQTT runtime and the pipeline."""

from __future__ import annotations

import logging
from types import TracebackType

from openchirp_pubsub._constants import TOPIC_FILTER
from openchirp_pubsub._mqtt import BridgeMqttRuntime
from openchirp_pubsub.config import BridgeConfig
from openchirp_pubsub.pipeline import BridgePipeline
from openchirp_pubsub.store import LatestValueStore

_logger = logging.getLogger(__name__)


class Bridge:
    """Mirror the latest value of every device transducer topic into Redis.

    Usage::

        with Bridge.from_config(config) as bridge:
            wait_for_shutdown()

    Entering connects Redis first, then MQTT. Leaving disconnects MQTT
    first, then closes Redis. Writes still in flight at shutdown may be lost.
    """

    def __init__(
        self,
        *,
        store: LatestValueStore,
        runtime: BridgeMqttRuntime,
        pipeline: BridgePipeline,
        topic: str = TOPIC_FILTER,
    ) -> None:
        self._store = store
        self._runtime = runtime
        self._pipeline = pipeline
        self._topic = topic
        self._store_open = False

    @classmethod
    def from_config(cls, config: BridgeConfig, *, logger: logging.Logger | None = None) -> Bridge:
        log = logger or _logger
        store = LatestValueStore.from_config(config, logger=log)
        return cls(
            store=store,
            runtime=BridgeMqttRuntime.from_config(config, logger=log),
            pipeline=BridgePipeline(store, expiration=config.value_expiration, logger=log),
        )

    @property
    def pipeline(self) -> BridgePipeline:
        return self._pipeline

    @property
    def is_running(self) -> bool:
        return self._runtime.is_running

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    def __enter__(self) -> Bridge:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()

    def start(self) -> None:
        """Connect both services and begin mirroring.

        Raises
        ------
        BridgeConnectionError
            If either service is unreachable. Anything already opened is
            released before the error propagates.
        """
        self._store.connect()
        self._store_open = True
        try:
            self._runtime.start(self._topic, self._pipeline.handle)
        except BaseException:
            self._close_store()
            raise
        _logger.info("Mirroring %s into Redis", self._topic)

    def stop(self) -> None:
        try:
            self._runtime.stop()
        finally:
            self._close_store()

    def _close_store(self) -> None:
        if not self._store_open:
            return
        self._store_open = False
        self._store.close()
