"""
Type Contracts for mindchat

Protocol-based contracts for the two external collaborators this library
consumes: the paginated/live history query and the generation service.

Purpose:
- Keep the sync buffer and send pipeline independent of any transport
- Let tests substitute in-memory fakes without monkeypatching
- Concrete HTTP implementations live in mindchat.backend.http_client

Re-exports for convenience:
"""

from mindchat.contracts.collaborators import GenerationService, MessageSource, TelemetrySink

__all__ = [
    "GenerationService",
    "MessageSource",
    "TelemetrySink",
]
