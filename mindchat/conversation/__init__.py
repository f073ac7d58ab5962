"""Conversation models and the client-side sync buffer."""

from mindchat.conversation.models import Message, MessagePage, Role, Sentiment
from mindchat.conversation.sync_buffer import (
    ConversationSyncBuffer,
    PaginationError,
    ReconcileAction,
    ReconcileResult,
    SyncState,
)

__all__ = [
    "ConversationSyncBuffer",
    "Message",
    "MessagePage",
    "PaginationError",
    "ReconcileAction",
    "ReconcileResult",
    "Role",
    "Sentiment",
    "SyncState",
]
