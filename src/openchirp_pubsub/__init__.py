"""openchirp_pubsub - Mirror OpenChirp MQTT transducer values into Redis."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("openchirp-pubsub")
except PackageNotFoundError:
    __version__ = "0+local"
from openchirp_pubsub.bridge import Bridge
from openchirp_pubsub.config import BridgeConfig
from openchirp_pubsub.exceptions import (
    BridgeConfigError,
    BridgeConnectionError,
    BridgeError,
    StoreWriteError,
)
from openchirp_pubsub.keys import replace_first, topic_to_key
from openchirp_pubsub.models import BusMessage, KeyWrite
from openchirp_pubsub.pipeline import BridgePipeline
from openchirp_pubsub.store import LatestValueStore

__all__ = [
    "__version__",
    "Bridge",
    "BridgeConfig",
    "BridgeConfigError",
    "BridgeConnectionError",
    "BridgeError",
    "BridgePipeline",
    "BusMessage",
    "KeyWrite",
    "LatestValueStore",
    "StoreWriteError",
    "replace_first",
    "topic_to_key",
]
