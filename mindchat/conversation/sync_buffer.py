"""
Client-side sync buffer for one conversation.

Three inputs compete to mutate the visible history:

    load_initial   first page replaces the buffer wholesale
    load_older     older pages are prepended (one fetch in flight at most)
    reconcile_live live redeliveries append only messages with unseen ids

reset() clears everything and bumps the epoch. A wholesale replace starts a new
window. A pagination response that resolves after either one is discarded
instead of being applied to the new state.

Invariant: ``messages`` is sorted by (timestamp, arrival sequence) and ids are
unique. Older pages get sequence numbers below everything already loaded,
live arrivals get numbers above.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from mindchat.config import HISTORY_PAGE_SIZE
from mindchat.contracts import MessageSource
from mindchat.conversation.models import Message, MessagePage
from mindchat.observability.logging import get_logger
from mindchat.observability.telemetry import counter

logger = get_logger(__name__)


class PaginationError(RuntimeError):
    """Fetching older history failed. The buffer is unchanged; retry is safe."""

    def __init__(self, conversation_id: str, cause: BaseException):
        super().__init__(f"failed to load older messages for {conversation_id}: {cause}")
        self.conversation_id = conversation_id
        self.cause = cause


class SyncState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"
    PAGINATING = "paginating"


class ReconcileAction(str, Enum):
    INITIAL = "initial"
    APPENDED = "appended"
    REPLACED = "replaced"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class ReconcileResult:
    action: ReconcileAction
    added: int = 0


def _dedupe(messages: Iterable[Message], known: set[str] | None = None) -> list[Message]:
    """Keep the first occurrence of each id, skipping ids already in ``known``."""
    seen = set(known or ())
    unique: list[Message] = []
    for message in messages:
        if message.id in seen:
            continue
        seen.add(message.id)
        unique.append(message)
    return unique


class ConversationSyncBuffer:
    """
    Reconciled, deduplicated, ordered message cache for one conversation.

    Construct one per active conversation; discard it (after reset()) when the
    user switches away.

    Side Effects:
        - load_older() performs network I/O through the MessageSource
        - Increments telemetry counters on appends, replacements and failures
    """

    def __init__(
        self,
        conversation_id: str,
        source: MessageSource | None = None,
        page_size: int = HISTORY_PAGE_SIZE,
    ):
        self.conversation_id = conversation_id
        self.page_size = page_size
        self._source = source
        self._lock = threading.RLock()
        self._epoch = 0
        self._window = 0
        self._clear()

    def _clear(self) -> None:
        self._messages: list[Message] = []
        self._sequence: dict[str, int] = {}
        self._next_sequence = 0
        self._min_sequence = 0
        self._cursor: str | None = None
        self._has_more_older = False
        self._loaded_initial = False
        self._loading_more = False

    # ----------------- accessors -----------------

    @property
    def messages(self) -> list[Message]:
        with self._lock:
            return list(self._messages)

    @property
    def message_ids(self) -> list[str]:
        with self._lock:
            return [m.id for m in self._messages]

    @property
    def cursor(self) -> str | None:
        return self._cursor

    @property
    def has_more_older(self) -> bool:
        return self._has_more_older

    @property
    def is_loading_more(self) -> bool:
        return self._loading_more

    @property
    def loaded_initial(self) -> bool:
        return self._loaded_initial

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def state(self) -> SyncState:
        if not self._loaded_initial:
            return SyncState.UNINITIALIZED
        if self._loading_more:
            return SyncState.PAGINATING
        return SyncState.LOADED

    def __len__(self) -> int:
        return len(self._messages)

    # ----------------- internals (call with lock held) -----------------

    def _sort(self) -> None:
        self._messages.sort(key=lambda m: (m.timestamp, self._sequence[m.id]))

    def _replace(self, page: MessagePage) -> int:
        unique = _dedupe(page.messages)
        self._messages = unique
        self._sequence = {m.id: i for i, m in enumerate(unique)}
        self._next_sequence = len(unique)
        self._min_sequence = 0
        self._cursor = page.next_cursor
        self._has_more_older = page.has_more
        self._loaded_initial = True
        self._loading_more = False
        self._window += 1
        self._sort()
        return len(unique)

    def _append(self, new_messages: list[Message]) -> None:
        for message in new_messages:
            self._sequence[message.id] = self._next_sequence
            self._next_sequence += 1
            self._messages.append(message)
        self._sort()

    def _prepend(self, older: list[Message]) -> None:
        start = self._min_sequence - len(older)
        for offset, message in enumerate(older):
            self._sequence[message.id] = start + offset
        self._min_sequence = start
        self._messages = older + self._messages
        self._sort()

    # ----------------- write paths -----------------

    def load_initial(self, page: MessagePage) -> ReconcileResult:
        """Replace the buffer wholesale with the first delivered page."""
        with self._lock:
            count = self._replace(page)
        logger.info(
            "Loaded %d messages for conversation %s (has_more=%s)",
            count,
            self.conversation_id,
            page.has_more,
        )
        return ReconcileResult(ReconcileAction.INITIAL, added=count)

    def reconcile_live(self, page: MessagePage) -> ReconcileResult:
        """
        Merge a live redelivery of the newest window.

        New messages are found by id membership, never by comparing lengths,
        so overlapping or reordered redeliveries cannot duplicate anything.
        When nothing is new but the delivered window and the buffer differ in
        size, the buffer is replaced wholesale (backend reordering/eviction).
        Note that this can drop older pages loaded through load_older(), and
        an older page still in flight is discarded when it resolves.

        Returns:
            ReconcileResult describing what changed
        """
        with self._lock:
            if not self._loaded_initial:
                return self.load_initial(page)

            new_messages = _dedupe(page.messages, known=set(self._sequence))
            if new_messages:
                self._append(new_messages)
                counter("sync.live.appended", len(new_messages))
                logger.debug(
                    "Appended %d live messages to %s", len(new_messages), self.conversation_id
                )
                return ReconcileResult(ReconcileAction.APPENDED, added=len(new_messages))

            delivered = len(_dedupe(page.messages))
            if delivered != len(self._messages):
                logger.warning(
                    "Live window size %d != buffer size %d for %s; replacing buffer",
                    delivered,
                    len(self._messages),
                    self.conversation_id,
                )
                counter("sync.live.replaced")
                self._replace(page)
                return ReconcileResult(ReconcileAction.REPLACED, added=0)

            return ReconcileResult(ReconcileAction.UNCHANGED)

    async def load_older(self) -> bool:
        """
        Fetch and prepend the next older page.

        No-op (no fetch, returns False) when not loaded yet, when there is no
        older data, or when a fetch is already in flight.
        A page that resolves after reset() or a wholesale replace is dropped
        and False is returned.

        Returns:
            True if a page was applied, False otherwise

        Raises:
            PaginationError: If the fetch fails; buffer contents are unchanged
        """
        with self._lock:
            if (
                not self._loaded_initial
                or not self._has_more_older
                or self._loading_more
                or self._cursor is None
                or self._source is None
            ):
                return False
            self._loading_more = True
            generation = (self._epoch, self._window)
            cursor = self._cursor

        try:
            page = await self._source.fetch_page(self.conversation_id, cursor, self.page_size)
        except Exception as e:
            with self._lock:
                if generation != (self._epoch, self._window):
                    logger.info(
                        "Discarding failed page for replaced buffer %s", self.conversation_id
                    )
                    return False
                self._loading_more = False
            counter("sync.paginate.error")
            logger.warning("Loading older messages failed for %s: %s", self.conversation_id, e)
            raise PaginationError(self.conversation_id, e) from e

        with self._lock:
            if generation != (self._epoch, self._window):
                counter("sync.paginate.stale")
                logger.info("Discarding stale page for replaced buffer %s", self.conversation_id)
                return False

            older = _dedupe(page.messages, known=set(self._sequence))
            self._prepend(older)
            self._cursor = page.next_cursor
            self._has_more_older = page.has_more
            self._loading_more = False

        logger.debug("Prepended %d older messages to %s", len(older), self.conversation_id)
        return True

    def reset(self) -> None:
        """
        Clear messages, cursor, flags and the id set, and start a new epoch.

        Side Effects:
            - In-flight load_older() calls will discard their results
        """
        with self._lock:
            self._clear()
            self._epoch += 1
        logger.debug("Reset sync buffer for %s (epoch=%d)", self.conversation_id, self._epoch)
