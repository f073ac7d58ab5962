"""
Wire models for the backend generation call and history query.

Field names are snake_case in Python and camelCase on the wire
(``model_dump(by_alias=True)``), matching the backend action's arguments.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mindchat.conversation.models import Message, MessagePage, Role, Sentiment

_SENTIMENTS = {s.value for s in Sentiment}


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ContextEntry(WireModel):
    """The only three message fields that cross the generation boundary."""

    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: int  # epoch milliseconds


class GenerationRequest(WireModel):
    conversation_id: str
    user_id: str
    content: str = Field(min_length=1)
    language: str
    chat_mode: str
    recent_messages: list[ContextEntry] = Field(default_factory=list)
    user_info: dict[str, Any] = Field(default_factory=dict)


class GenerationResult(WireModel):
    """Acknowledgement from the backend. The reply itself arrives via the live query."""

    content: str | None = None
    sentiment: str | None = None
    message_id: str | None = None


class WireMessage(WireModel):
    """History entry as returned by the backend query (``content`` holds the text)."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    role: Literal["user", "assistant", "system"]
    content: str = ""
    timestamp: int  # epoch milliseconds
    safety_flag: bool = False
    sentiment: str | None = None
    topics: list[str] | None = None
    language: str | None = None

    def to_message(self) -> Message:
        return Message(
            id=self.id,
            role=Role(self.role),
            text=self.content,
            timestamp=self.timestamp,
            safety_flag=self.safety_flag,
            sentiment=Sentiment(self.sentiment) if self.sentiment in _SENTIMENTS else None,
            topics=tuple(self.topics) if self.topics is not None else None,
            language=self.language,
        )


class HistoryPageResponse(WireModel):
    model_config = ConfigDict(extra="ignore")

    messages: list[WireMessage] = Field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False

    def to_page(self) -> MessagePage:
        return MessagePage(
            messages=tuple(m.to_message() for m in self.messages),
            next_cursor=self.next_cursor,
            has_more=self.has_more,
        )
