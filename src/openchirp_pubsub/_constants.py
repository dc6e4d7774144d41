"""Internal constants shared across the bridge."""

from datetime import timedelta

APP_NAME = "openchirp_pubsub"

# ------------------------------------------------------------------
# MQTT subscription
# ------------------------------------------------------------------

TOPIC_NAMESPACE = "openchirp/device"
#: Any device, any transducer.
TOPIC_FILTER = f"{TOPIC_NAMESPACE}/+/+"
#: Exactly once.
MQTT_QOS = 2

# ------------------------------------------------------------------
# Topic -> key rules
# ------------------------------------------------------------------

TOPIC_SEPARATOR = "/"
KEY_SEPARATOR = ":"
#: Tied to the depth of TOPIC_FILTER (namespace/device/<id>/<transducer>).
#: Change both together.
KEY_REPLACE_COUNT = 3

# ------------------------------------------------------------------
# Redis
# ------------------------------------------------------------------

#: Roughly four months.
LAST_VALUE_EXPIRATION = timedelta(hours=24 * 32 * 4)

DEFAULT_MQTT_SERVER = "tls://localhost:8883"
DEFAULT_REDIS_SERVER = "localhost:6379"
DEFAULT_REDIS_DB = 1
DEFAULT_LOG_LEVEL = 4
