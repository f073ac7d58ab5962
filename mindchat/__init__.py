"""mindchat - conversation context management for a supportive chat client"""

from __future__ import annotations

__version__ = "0.1.0"

# Lazy imports so lightweight modules (classification, tokens) load without httpx
def __getattr__(name: str):
    """
    Lazy imports to avoid loading the HTTP stack when only importing pure modules.
    """
    if name in ("ChatSession",):
        from mindchat.conversation.session import ChatSession
        return ChatSession

    if name in ("ConversationSyncBuffer", "Message", "MessagePage"):
        from mindchat import conversation
        return getattr(conversation, name)

    if name in ("SelectionConfig", "optimize_context"):
        from mindchat import context
        return getattr(context, name)

    if name in ("SendCoordinator", "SendRequest", "SendResult"):
        from mindchat import pipeline
        return getattr(pipeline, name)

    if name in ("HttpGenerationService", "HttpMessageSource"):
        from mindchat.backend import http_client
        return getattr(http_client, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "ChatSession",
    "ConversationSyncBuffer",
    "HttpGenerationService",
    "HttpMessageSource",
    "Message",
    "MessagePage",
    "SelectionConfig",
    "SendCoordinator",
    "SendRequest",
    "SendResult",
    "optimize_context",
]
