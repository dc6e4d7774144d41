"""Immutable records passed between the bus, the pipeline and the store."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BusMessage(BaseModel):
    """A single message as delivered by the MQTT subscription."""

    model_config = ConfigDict(frozen=True)

    topic: str = Field(..., description="Topic the message was published on")
    payload: bytes = Field(default=b"", description="Raw payload bytes")

    @field_validator("topic")
    @classmethod
    def _require_topic(cls, value: str) -> str:
        if not value:
            raise ValueError("topic must be non-empty")
        return value

    @property
    def text(self) -> str:
        """Payload as a string; undecodable bytes become U+FFFD."""
        return self.payload.decode("utf-8", errors="replace")


class KeyWrite(BaseModel):
    """A completed latest-value write."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str
    expiration: timedelta
    written_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("written_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def expires_at(self) -> datetime:
        """Absolute deadline after which the store drops the value."""
        return self.written_at + self.expiration
