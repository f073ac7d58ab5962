"""
Relevance scoring for conversation history.

Each message gets an additive, position-independent score. Every term is a
separate pure function so it can be tuned and tested on its own; the
constants come from ScoringWeights (see types.py), never from literals here.

Score = base + recency + safety + role + language + topic overlap
        + sentiment + length, clamped to >= 0.
"""

from __future__ import annotations

from collections.abc import Collection
from datetime import UTC, datetime

from mindchat.classification.classifier import Classification, classify
from mindchat.classification.keywords import TOPIC_CRISIS
from mindchat.context.types import ScoringWeights, SelectionConfig
from mindchat.conversation.models import Message, Role, Sentiment


def is_safety_message(message: Message, topics: Collection[str]) -> bool:
    """A message is safety-flagged if marked upstream or it mentions crisis keywords."""
    return message.safety_flag or TOPIC_CRISIS in topics


def recency_term(message: Message, now: datetime, weights: ScoringWeights) -> float:
    # Timestamps in the future (clock skew) count as brand new
    age_hours = max(0.0, (now - message.timestamp).total_seconds() / 3600.0)
    return max(0.0, weights.recency_max - age_hours / weights.recency_decay_hours)


def safety_term(is_safety: bool, config: SelectionConfig) -> float:
    if is_safety and config.prioritize_safety:
        return config.weights.safety_bonus
    return 0.0


def role_term(role: Role, config: SelectionConfig) -> float:
    weights = config.weights
    if role == Role.SYSTEM:
        return weights.system_included if config.include_system_messages else weights.system_excluded
    if role == Role.ASSISTANT:
        return weights.assistant_bonus
    return 0.0


def language_term(language: str, config: SelectionConfig) -> float:
    if not config.preferred_language:
        return 0.0
    if language == config.preferred_language:
        return config.weights.language_match
    return config.weights.language_mismatch


def topic_overlap(topics: Collection[str], current_topics: Collection[str]) -> float:
    """Fraction of the current topics that this message shares."""
    if not topics or not current_topics:
        return 0.0
    shared = len(set(topics) & set(current_topics))
    return shared / max(len(current_topics), 1)


def topic_term(
    topics: Collection[str], current_topics: Collection[str], config: SelectionConfig
) -> float:
    if not topics or not current_topics:
        return 0.0
    fraction = topic_overlap(topics, current_topics)
    if fraction >= config.topic_overlap_threshold:
        return config.weights.topic_overlap_multiplier * fraction
    return 0.0


def sentiment_term(sentiment: Sentiment | None, config: SelectionConfig) -> float:
    weights = config.weights
    if sentiment in (Sentiment.CRISIS, Sentiment.NEGATIVE):
        if config.prioritize_safety:
            return weights.sentiment_urgent_prioritized
        return weights.sentiment_urgent
    if sentiment == Sentiment.POSITIVE:
        return weights.sentiment_positive
    if sentiment == Sentiment.NEUTRAL:
        return weights.sentiment_neutral
    return 0.0


def length_term(text: str, weights: ScoringWeights) -> float:
    if len(text) < weights.short_message_chars:
        return weights.short_message_penalty
    if len(text) > weights.long_message_chars:
        return weights.long_message_bonus
    return 0.0


def score_message(
    message: Message,
    config: SelectionConfig,
    current_topics: Collection[str],
    *,
    now: datetime | None = None,
    classification: Classification | None = None,
) -> float:
    """
    Score one message for inclusion in the context bundle.

    Args:
        message: Message to score
        config: Selection configuration (flags + weights)
        current_topics: Topics of the most recent turns
        now: Reference time for recency (defaults to current UTC time)
        classification: Precomputed classification of message.text, if any

    Returns:
        Non-negative relevance score
    """
    now = now or datetime.now(UTC)
    weights = config.weights
    if classification is None:
        classification = classify(message.text)

    score = weights.base
    score += recency_term(message, now, weights)
    score += safety_term(is_safety_message(message, classification.topics), config)
    score += role_term(message.role, config)
    score += language_term(classification.language, config)
    score += topic_term(classification.topics, current_topics, config)
    score += sentiment_term(message.sentiment, config)
    score += length_term(message.text, weights)
    return max(0.0, score)
