"""
Context selection under a token budget.

Packs prior conversation turns into a ContextBundle for one send:

    enrich → safety floor → greedy by score → continuity tail → original order

Safety-flagged messages are a hard floor: they are always included, are
counted against the budget first, and may push the bundle over max_tokens.
The continuity tail may do the same. Every other message is either included
whole or skipped; nothing is truncated mid-message.

Pure computation - never raises for content, never reorders the conversation.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from mindchat.classification.classifier import Classification, classify, extract_topics
from mindchat.config import DEFAULT_LANGUAGE
from mindchat.context.scoring import is_safety_message, score_message
from mindchat.context.tokens import estimate_tokens
from mindchat.context.types import (
    ContextBundle,
    ContextEfficiency,
    ScoredMessage,
    SelectionConfig,
)
from mindchat.conversation.models import Message, Role
from mindchat.observability.logging import get_logger
from mindchat.observability.telemetry import counter

logger = get_logger(__name__)


def current_topics_for(messages: Sequence[Message], window: int) -> frozenset[str]:
    """Topics of the last ``window`` messages, used only for the overlap bonus."""
    if window <= 0 or not messages:
        return frozenset()
    return extract_topics(" ".join(m.text for m in messages[-window:]))


def enrich_messages(
    messages: Sequence[Message],
    config: SelectionConfig,
    *,
    now: datetime | None = None,
) -> list[ScoredMessage]:
    """Attach derived language, topics, safety flag, score and cost to each message."""
    now = now or datetime.now(UTC)
    current = current_topics_for(messages, config.topic_window)

    enriched: list[ScoredMessage] = []
    for position, message in enumerate(messages):
        classification = classify(message.text, message.language or DEFAULT_LANGUAGE)
        if message.topics:
            classification = Classification(
                language=classification.language,
                topics=classification.topics | frozenset(message.topics),
            )
        enriched.append(
            ScoredMessage(
                message=message,
                position=position,
                language=classification.language,
                topics=classification.topics,
                is_safety=is_safety_message(message, classification.topics),
                relevance_score=score_message(
                    message, config, current, now=now, classification=classification
                ),
                token_cost=estimate_tokens(message.text),
            )
        )
    return enriched


def optimize_context(
    messages: Sequence[Message],
    config: SelectionConfig | None = None,
    *,
    now: datetime | None = None,
) -> ContextBundle:
    """
    Select the subset of messages to forward, in original chronological order.

    Args:
        messages: Candidate history, oldest first
        config: Selection configuration (defaults to SelectionConfig())
        now: Reference time for recency scoring

    Returns:
        ContextBundle; empty when there are no candidates
    """
    config = config or SelectionConfig()
    if not messages:
        return ContextBundle.empty(config.max_tokens)

    candidates = list(messages)
    if config.hard_filter_system and not config.include_system_messages:
        candidates = [m for m in candidates if m.role != Role.SYSTEM]
        if not candidates:
            return ContextBundle.empty(config.max_tokens)

    enriched = enrich_messages(candidates, config, now=now)

    if config.prioritize_safety:
        floor = [s for s in enriched if s.is_safety]
    else:
        floor = []
    floor_positions = {s.position for s in floor}

    # sorted() is stable: equal scores keep arrival order
    ranked = sorted(
        (s for s in enriched if s.position not in floor_positions),
        key=lambda s: s.relevance_score,
        reverse=True,
    )

    selected = list(floor)
    total = sum(s.token_cost for s in floor)
    for scored in ranked:
        if total + scored.token_cost <= config.max_tokens:
            selected.append(scored)
            total += scored.token_cost

    continuity_count = 0
    if config.preserve_continuity and selected and len(selected) < len(enriched):
        last_position = max(s.position for s in selected)
        tail = enriched[last_position + 1 :]
        selected.extend(tail)
        total += sum(s.token_cost for s in tail)
        continuity_count = len(tail)

    selected.sort(key=lambda s: s.position)

    bundle = ContextBundle(
        scored=tuple(selected),
        estimated_tokens=total,
        max_tokens=config.max_tokens,
        truncated=len(selected) < len(messages),
        safety_count=len(floor),
        continuity_count=continuity_count,
    )

    if bundle.over_budget:
        counter("context.over_budget")
        logger.info(
            "Context bundle over budget: %d/%d tokens (safety=%d, continuity=%d)",
            bundle.estimated_tokens,
            bundle.max_tokens,
            bundle.safety_count,
            bundle.continuity_count,
        )
    logger.debug(
        "Selected %d/%d messages (%d tokens)", len(bundle), len(messages), bundle.estimated_tokens
    )
    return bundle


def build_context_bundle(
    history: Sequence[Message],
    pending: Message,
    config: SelectionConfig | None = None,
    *,
    now: datetime | None = None,
) -> ContextBundle:
    """Select context over the history plus the message being sent right now."""
    return optimize_context([*history, pending], config, now=now)


def analyze_context_efficiency(
    original: Sequence[Message], bundle: ContextBundle
) -> ContextEfficiency:
    """Summarize how much a bundle compressed the original history."""
    original_tokens = sum(estimate_tokens(m.text) for m in original)
    optimized_tokens = sum(s.token_cost for s in bundle.scored)
    return ContextEfficiency(
        original_tokens=original_tokens,
        optimized_tokens=optimized_tokens,
        compression_ratio=optimized_tokens / original_tokens if original_tokens > 0 else 1.0,
        messages_kept=len(bundle),
        messages_removed=len(original) - len(bundle),
        safety_messages_preserved=sum(1 for s in bundle.scored if s.is_safety),
    )
