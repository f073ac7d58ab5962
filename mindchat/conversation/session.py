"""
Chat session facade for the display layer.

Owns the active conversation, its sync buffer, the draft text, the typing
indicator and the last user-facing error. Deliveries from the reactive
backend query are tagged with the conversation they belong to; anything
tagged with a conversation other than the active one is dropped.
"""

from __future__ import annotations

from typing import Any

from mindchat.config import DEFAULT_LANGUAGE, HISTORY_PAGE_SIZE
from mindchat.contracts import MessageSource
from mindchat.conversation.models import Message, MessagePage
from mindchat.conversation.sync_buffer import (
    ConversationSyncBuffer,
    PaginationError,
    ReconcileResult,
)
from mindchat.observability.logging import get_logger
from mindchat.observability.telemetry import counter
from mindchat.pipeline.send import SendCoordinator, SendRequest, SendResult
from mindchat.utils.error_sanitizer import classify_error, user_error_notice

logger = get_logger(__name__)


class ChatSession:
    """
    State behind one chat screen.

    Side Effects:
        - Network I/O through the MessageSource (load_older) and the
          SendCoordinator's generation service (send)
    """

    def __init__(
        self,
        user_id: str,
        coordinator: SendCoordinator,
        source: MessageSource | None = None,
        *,
        conversation_id: str | None = None,
        default_language: str = DEFAULT_LANGUAGE,
        user_info: dict[str, Any] | None = None,
        page_size: int = HISTORY_PAGE_SIZE,
    ):
        self.user_id = user_id
        self.coordinator = coordinator
        self.default_language = default_language
        self.user_info = user_info or {}
        self.page_size = page_size
        self._source = source
        self._conversation_id: str | None = None
        self._buffer: ConversationSyncBuffer | None = None
        self.draft_text = ""
        self.is_typing = False
        self.last_error: str | None = None

        if conversation_id is not None:
            self._open(conversation_id)

    # ----------------- display-layer state -----------------

    @property
    def conversation_id(self) -> str | None:
        return self._conversation_id

    @property
    def buffer(self) -> ConversationSyncBuffer | None:
        return self._buffer

    @property
    def messages(self) -> list[Message]:
        return self._buffer.messages if self._buffer is not None else []

    @property
    def is_loading_more(self) -> bool:
        return self._buffer is not None and self._buffer.is_loading_more

    @property
    def has_more_older(self) -> bool:
        return self._buffer is not None and self._buffer.has_more_older

    # ----------------- conversation lifecycle -----------------

    def _open(self, conversation_id: str) -> None:
        if self._buffer is not None:
            self._buffer.reset()
        self._conversation_id = conversation_id
        self._buffer = ConversationSyncBuffer(conversation_id, self._source, self.page_size)
        self.draft_text = ""
        self.is_typing = False
        self.last_error = None

    def switch_conversation(self, conversation_id: str) -> None:
        """Make another conversation active. Switching to the active one is a no-op."""
        if conversation_id == self._conversation_id:
            return
        logger.info("Switching conversation %s -> %s", self._conversation_id, conversation_id)
        counter("session.switch")
        self._open(conversation_id)

    def start_new_conversation(self, conversation_id: str) -> None:
        """Activate a conversation the backend has just created."""
        logger.info("Starting new conversation %s", conversation_id)
        counter("session.new_conversation")
        self._open(conversation_id)

    def reset(self) -> None:
        """Clear the active buffer; the next delivery acts as an initial load."""
        if self._buffer is not None:
            self._buffer.reset()
        self.is_typing = False
        self.last_error = None

    # ----------------- deliveries from the history query -----------------

    def _accepts(self, conversation_id: str) -> bool:
        if self._buffer is None or conversation_id != self._conversation_id:
            counter("session.delivery_dropped")
            logger.debug(
                "Dropping delivery for %s (active=%s)", conversation_id, self._conversation_id
            )
            return False
        return True

    def deliver_initial(self, conversation_id: str, page: MessagePage) -> ReconcileResult | None:
        if not self._accepts(conversation_id):
            return None
        return self._buffer.load_initial(page)

    def deliver_live(self, conversation_id: str, page: MessagePage) -> ReconcileResult | None:
        if not self._accepts(conversation_id):
            return None
        return self._buffer.reconcile_live(page)

    async def load_older(self) -> bool:
        """
        Load the next older page into the active buffer.

        A failed fetch sets ``last_error`` and returns False; calling again
        retries from the same cursor.
        """
        if self._buffer is None:
            return False
        try:
            loaded = await self._buffer.load_older()
        except PaginationError as e:
            self.last_error = user_error_notice(classify_error(e.cause))
            return False
        if loaded:
            self.last_error = None
        return loaded

    # ----------------- sending -----------------

    async def send(self, text: str | None = None) -> SendResult:
        """
        Send ``text`` (or the current draft) in the active conversation.

        The draft is cleared only when the send succeeds. If the user switches
        conversations before the send resolves, the result is returned but
        the new conversation's indicators are left alone.
        """
        from_draft = text is None
        content = self.draft_text if from_draft else text
        buffer = self._buffer
        if buffer is None or self._conversation_id is None:
            return SendResult.skipped_empty()
        if not isinstance(content, str) or not content.strip():
            return SendResult.skipped_empty()

        epoch = buffer.epoch
        self.is_typing = True
        self.last_error = None

        result = await self.coordinator.send(
            SendRequest(
                conversation_id=self._conversation_id,
                user_id=self.user_id,
                text=content,
                history=buffer.messages,
                default_language=self.default_language,
                user_info=self.user_info,
            )
        )

        if self._buffer is not buffer or buffer.epoch != epoch:
            logger.info("Send resolved after conversation change; leaving indicators untouched")
            return result

        self.is_typing = False
        if result.success:
            if from_draft and self.draft_text == content:
                self.draft_text = ""
        else:
            self.last_error = result.notice
            if not self.draft_text:
                self.draft_text = content
        return result
