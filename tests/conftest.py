"""
Shared fixtures for mindchat tests.

Provides a fixed clock, a message factory and an in-memory history source.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from mindchat.conversation.models import Message, MessagePage, Role
from mindchat.observability.telemetry import reset_counters

NOW = datetime(2025, 3, 14, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def now():
    """Fixed 'now' for deterministic recency scoring."""
    return NOW


@pytest.fixture(autouse=True)
def _clean_counters():
    reset_counters()
    yield
    reset_counters()


def _make_message(
    message_id: str,
    text: str = "hello there, how are you",
    *,
    role: Role = Role.USER,
    minutes_ago: float = 0,
    **fields,
) -> Message:
    return Message(
        id=message_id,
        role=role,
        text=text,
        timestamp=NOW - timedelta(minutes=minutes_ago),
        **fields,
    )


def _make_history(count: int, *, prefix: str = "m", start_minutes_ago: int = 1000) -> list[Message]:
    """``count`` messages one minute apart, oldest first."""
    return [
        _make_message(f"{prefix}{i}", f"message number {i}", minutes_ago=start_minutes_ago - i)
        for i in range(count)
    ]


@pytest.fixture
def make_message():
    """Factory: make_message(id, text, role=..., minutes_ago=..., **fields)."""
    return _make_message


@pytest.fixture
def make_history():
    return _make_history


class FakeMessageSource:
    """
    In-memory MessageSource.

    Pages are served from ``pages`` keyed by cursor. Set ``gate`` to an
    asyncio.Event to hold fetches until the test releases them, or ``error``
    to make the next fetch fail.
    """

    def __init__(self, pages: dict[str | None, MessagePage] | None = None):
        self.pages = pages or {}
        self.calls: list[tuple[str, str | None, int]] = []
        self.gate: asyncio.Event | None = None
        self.error: Exception | None = None

    async def fetch_page(self, conversation_id: str, cursor: str | None, limit: int) -> MessagePage:
        self.calls.append((conversation_id, cursor, limit))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            error, self.error = self.error, None
            raise error
        return self.pages.get(cursor, MessagePage())


@pytest.fixture
def source():
    return FakeMessageSource()
