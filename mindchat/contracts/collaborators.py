"""
External Collaborator Protocols

Interfaces for the backend history query, the generation service and the
telemetry sink.

Design Principles:
- Operations that perform I/O are coroutines and say so in their signature
- Implementations raise their own error types; callers never see transport details
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from mindchat.backend.models import GenerationRequest, GenerationResult
    from mindchat.conversation.models import MessagePage
    from mindchat.observability.metrics import ChatMetric


class MessageSource(Protocol):
    """Protocol for the conversation history query."""

    async def fetch_page(
        self, conversation_id: str, cursor: str | None, limit: int
    ) -> MessagePage:
        """Fetch one page of history, oldest first within the page.

        Args:
            conversation_id: Conversation to read
            cursor: Opaque marker of the oldest loaded boundary (None = newest page)
            limit: Maximum number of messages

        Returns:
            MessagePage with next_cursor pointing further back in time

        Side Effects:
            Network I/O
        """
        ...


class GenerationService(Protocol):
    """Protocol for the backend action that stores the user turn and generates a reply."""

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Dispatch one send.

        Side Effects:
            Network I/O; the backend persists both turns and pushes them
            through the live history query
        """
        ...


class TelemetrySink(Protocol):
    """Protocol for fire-and-forget chat metric emission."""

    def __call__(self, metric: ChatMetric) -> None: ...
