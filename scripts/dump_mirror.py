#!/usr/bin/env python3
"""Dump the latest values the bridge has mirrored into Redis.

Connects with the same settings as the bridge (``REDIS_SERVER``,
``REDIS_PASS``, ``REDIS_DB``), scans the device key namespace and prints
each key with its value and remaining lifetime.

Usage
-----
::

    export REDIS_SERVER="localhost:6379"
    python scripts/dump_mirror.py

Options::

    --match PATTERN     Key glob to scan (default: openchirp:device:*)
    --json              Output as machine-readable JSON
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import timedelta
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

import redis  # noqa: E402

from openchirp_pubsub import BridgeConfig, BridgeError  # noqa: E402
from openchirp_pubsub.keys import topic_to_key  # noqa: E402
from openchirp_pubsub.store import build_redis_client  # noqa: E402

_DEFAULT_MATCH = topic_to_key("openchirp/device/*")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dump mirrored device values from Redis.")
    parser.add_argument("--match", default=_DEFAULT_MATCH, help=f"Key glob (default: {_DEFAULT_MATCH}).")
    parser.add_argument("--json", action="store_true", help="Output as JSON.")
    return parser.parse_args()


def _collect(client: redis.Redis, match: str) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for key in sorted(client.scan_iter(match=match)):
        value = client.get(key)
        ttl = client.ttl(key)
        rows.append(
            {
                "key": key,
                "value": value,
                "ttl_seconds": ttl if ttl >= 0 else None,
            }
        )
    return rows


def _main() -> int:
    args = _parse_args()
    try:
        config = BridgeConfig.from_env()
        client = build_redis_client(config)
        rows = _collect(client, args.match)
    except (BridgeError, redis.RedisError) as exc:
        print(f"[dump] {exc}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(rows, indent=2, ensure_ascii=False))
        return 0

    for row in rows:
        ttl = row["ttl_seconds"]
        ttl_text = "no expiry" if ttl is None else str(timedelta(seconds=ttl))
        print(f"{row['key']} = {row['value']}  (expires in {ttl_text})")
    print(f"[dump] {len(rows)} key(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
