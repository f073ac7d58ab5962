"""
Async httpx adapters for the backend generation action and history query.

Both adapters satisfy the Protocols in mindchat.contracts and translate
transport failures into GenerationServiceError / MessageSourceError so callers
never handle httpx exceptions directly.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from mindchat.backend.models import GenerationRequest, GenerationResult, HistoryPageResponse
from mindchat.config import (
    BACKEND_API_KEY,
    BACKEND_TIMEOUT_SECONDS,
    BACKEND_URL,
    HISTORY_PAGE_SIZE_MAX,
)
from mindchat.conversation.models import MessagePage
from mindchat.observability.logging import get_logger

logger = get_logger(__name__)


class BackendError(Exception):
    """Base error for backend adapter failures.

    ``status_code`` is None when no HTTP response was received.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GenerationServiceError(BackendError):
    pass


class MessageSourceError(BackendError):
    pass


class _BackendClient:
    def __init__(
        self,
        base_url: str = BACKEND_URL,
        api_key: str = BACKEND_API_KEY,
        timeout: float = BACKEND_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.timeout,
            transport=self._transport,
        )


class HttpGenerationService(_BackendClient):
    """GenerationService over HTTP: POST {base_url}/chat/send."""

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Dispatch one send to the backend.

        Raises:
            GenerationServiceError: On HTTP error status, transport failure or
                an unparseable response
        """
        payload = request.model_dump(by_alias=True)
        logger.info(
            "Dispatching send: conversation=%s context_size=%d",
            request.conversation_id,
            len(request.recent_messages),
        )

        try:
            async with self._client() as client:
                response = await client.post("/chat/send", json=payload)
                response.raise_for_status()
                data: dict[str, Any] = response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("Generation service returned %d", status)
            raise GenerationServiceError(f"generation service returned {status}", status) from e
        except httpx.HTTPError as e:
            logger.warning("Generation service unreachable: %s", type(e).__name__)
            raise GenerationServiceError(f"generation service unreachable: {e}") from e
        except ValueError as e:
            raise GenerationServiceError("generation service returned invalid JSON", 502) from e

        try:
            return GenerationResult.model_validate(data)
        except ValidationError as e:
            raise GenerationServiceError("generation service returned invalid payload", 502) from e


class HttpMessageSource(_BackendClient):
    """MessageSource over HTTP: GET {base_url}/conversations/{id}/messages."""

    async def fetch_page(
        self, conversation_id: str, cursor: str | None, limit: int
    ) -> MessagePage:
        """
        Fetch one page of history.

        Raises:
            MessageSourceError: On HTTP error status, transport failure or
                an unparseable response
        """
        params: dict[str, Any] = {"limit": max(1, min(limit, HISTORY_PAGE_SIZE_MAX))}
        if cursor is not None:
            params["cursor"] = cursor

        try:
            async with self._client() as client:
                response = await client.get(
                    f"/conversations/{conversation_id}/messages", params=params
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("History query returned %d for %s", status, conversation_id)
            raise MessageSourceError(f"history query returned {status}", status) from e
        except httpx.HTTPError as e:
            logger.warning("History query unreachable: %s", type(e).__name__)
            raise MessageSourceError(f"history query unreachable: {e}") from e
        except ValueError as e:
            raise MessageSourceError("history query returned invalid JSON", 502) from e

        try:
            page = HistoryPageResponse.model_validate(data).to_page()
        except ValidationError as e:
            raise MessageSourceError("history query returned invalid payload", 502) from e

        logger.debug(
            "Fetched %d messages for %s (has_more=%s)",
            len(page.messages),
            conversation_id,
            page.has_more,
        )
        return page
