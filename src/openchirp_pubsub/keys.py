"""Topic to storage key rules.

MQTT topics are hierarchical (``openchirp/device/<id>/<transducer>``) while
Redis keys use a flat, colon separated namespace. The mapping only touches
the first few separators and spaces so that anything past the transducer
segment is left as received.
"""

from __future__ import annotations

from openchirp_pubsub._constants import KEY_REPLACE_COUNT, KEY_SEPARATOR, TOPIC_SEPARATOR


def replace_first(text: str, old: str, new: str, count: int) -> str:
    """Replace the first *count* occurrences of *old* in *text* with *new*.

    Scans left to right over the original string; replacements never feed
    back into the scan.
    """
    if not old:
        raise ValueError("old must be a non-empty string")
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")

    parts: list[str] = []
    start = 0
    for _ in range(count):
        index = text.find(old, start)
        if index < 0:
            break
        parts.append(text[start:index])
        parts.append(new)
        start = index + len(old)
    parts.append(text[start:])
    return "".join(parts)


def topic_to_key(topic: str, *, count: int = KEY_REPLACE_COUNT) -> str:
    """Derive the storage key for *topic*.

    Order matters: separators first, then spaces, then lowercase.

    >>> topic_to_key("openchirp/device/abc123/temperature")
    'openchirp:device:abc123:temperature'
    """
    key = replace_first(topic, TOPIC_SEPARATOR, KEY_SEPARATOR, count)
    key = replace_first(key, " ", "_", count)
    return key.lower()
