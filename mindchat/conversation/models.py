"""
Domain models (Pydantic v2) for conversation messages.

Messages are immutable once created. Message text is hashed in repr so that
transcripts never end up in logs or tracebacks.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from hashlib import sha256
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _hash_value(value: str) -> str:
    digest = sha256(value.encode("utf-8")).hexdigest()
    return f"hash:{digest[:12]}"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Sentiment(str, Enum):
    CRISIS = "crisis"
    NEGATIVE = "negative"
    POSITIVE = "positive"
    NEUTRAL = "neutral"


class RedactedModel(BaseModel):
    """Base model that redacts sensitive fields in repr/dumps."""

    model_config = ConfigDict(frozen=True)
    _redact_fields = {"text"}

    def _redacted_dump(self) -> dict[str, Any]:
        data = self.model_dump(exclude_none=True)
        for field in self._redact_fields:
            if field in data and isinstance(data[field], str) and data[field]:
                data[field] = _hash_value(data[field])
        return data

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._redacted_dump()})"

    def redacted(self) -> dict[str, Any]:
        """Public helper for telemetry-safe dumps."""
        return self._redacted_dump()


class Message(RedactedModel):
    """One conversation turn as seen by the client."""

    id: str = Field(min_length=1)
    role: Role
    text: str = ""
    timestamp: datetime
    safety_flag: bool = False
    sentiment: Sentiment | None = None
    topics: tuple[str, ...] | None = None
    language: str | None = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> Any:
        # Backend timestamps arrive as epoch milliseconds
        if isinstance(value, bool):
            raise ValueError("timestamp must be a datetime or epoch milliseconds")
        if isinstance(value, int | float):
            return datetime.fromtimestamp(value / 1000.0, tz=UTC)
        return value

    @field_validator("timestamp")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def timestamp_ms(self) -> int:
        return int(self.timestamp.timestamp() * 1000)

    def to_context_entry(self) -> dict[str, Any]:
        """Project onto the three fields that cross the generation boundary."""
        return {
            "role": self.role.value,
            "content": self.text,
            "timestamp": self.timestamp_ms,
        }


class MessagePage(BaseModel):
    """One delivery of the conversation history query."""

    model_config = ConfigDict(frozen=True)

    messages: tuple[Message, ...] = ()
    next_cursor: str | None = None
    has_more: bool = False
