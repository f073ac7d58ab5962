"""Backend wire models and HTTP adapters."""

from mindchat.backend.http_client import (
    BackendError,
    GenerationServiceError,
    HttpGenerationService,
    HttpMessageSource,
    MessageSourceError,
)
from mindchat.backend.models import ContextEntry, GenerationRequest, GenerationResult

__all__ = [
    "BackendError",
    "ContextEntry",
    "GenerationRequest",
    "GenerationResult",
    "GenerationServiceError",
    "HttpGenerationService",
    "HttpMessageSource",
    "MessageSourceError",
]
