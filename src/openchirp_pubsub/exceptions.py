"""Custom exception hierarchy for openchirp_pubsub."""

from __future__ import annotations

from typing import Any


class BridgeError(Exception):
    """Base exception for all openchirp_pubsub errors."""


class BridgeConfigError(BridgeError):
    """Invalid or missing configuration."""


class BridgeConnectionError(BridgeError):
    """A backing service could not be reached at startup.

    Startup connection failures are treated as misconfiguration: the
    process exits instead of retrying.
    """

    def __init__(self, message: str, *, service: str = "") -> None:
        self.service = service
        super().__init__(message)


class StoreWriteError(BridgeError):
    """A single value write to the store failed."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: str,
        response: Any = None,
    ) -> None:
        self.key = key
        self.value = value
        self.response = response
        super().__init__(message)
