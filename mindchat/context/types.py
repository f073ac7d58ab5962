"""
Module: types
Purpose: Shared types for context scoring and selection.
Dependencies: mindchat.conversation.models (Message only)

Stable import boundary - used by scoring, selector and the send pipeline.
Keeping them in a leaf module prevents circular imports between scoring.py
and selector.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from mindchat.config import (
    DEFAULT_MAX_CONTEXT_TOKENS,
    DEFAULT_TOPIC_OVERLAP_THRESHOLD,
    SCORING_WEIGHTS_PATH,
    TOPIC_WINDOW_MESSAGES,
)
from mindchat.conversation.models import Message

# ---------------------------------------------------------------------------
# Scoring weights
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoringWeights:
    """Hand-tuned relevance constants, one field per scoring term."""

    base: float = 1.0

    # Recency: recency_max - age_hours / recency_decay_hours, floored at 0
    recency_max: float = 2.0
    recency_decay_hours: float = 24.0

    safety_bonus: float = 10.0

    system_included: float = 3.0
    system_excluded: float = -5.0
    assistant_bonus: float = 0.5

    language_match: float = 1.0
    language_mismatch: float = -0.5

    topic_overlap_multiplier: float = 2.0

    sentiment_urgent_prioritized: float = 2.0
    sentiment_urgent: float = 0.5
    sentiment_positive: float = 0.5
    sentiment_neutral: float = 0.1

    short_message_chars: int = 10
    short_message_penalty: float = -0.5
    long_message_chars: int = 500
    long_message_bonus: float = 0.5

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> ScoringWeights:
        """Build weights from a mapping; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown scoring weights: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> ScoringWeights:
        """
        Load weights from a YAML file with a top-level ``weights`` mapping.

        Missing keys keep their defaults.

        Raises:
            FileNotFoundError: If path does not exist
            ValueError: If the file has unknown keys or the wrong shape
        """
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        weights = raw.get("weights", {}) if isinstance(raw, dict) else None
        if not isinstance(weights, dict):
            raise ValueError(f"{path}: expected a 'weights' mapping")
        return cls.from_mapping(weights)


@lru_cache(maxsize=1)
def default_weights() -> ScoringWeights:
    """Weights from MINDCHAT_SCORING_WEIGHTS_PATH if set, otherwise built-in defaults."""
    if SCORING_WEIGHTS_PATH:
        return ScoringWeights.from_yaml(SCORING_WEIGHTS_PATH)
    return ScoringWeights()


# ---------------------------------------------------------------------------
# Selection configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SelectionConfig:
    max_tokens: int = DEFAULT_MAX_CONTEXT_TOKENS
    prioritize_safety: bool = True
    preserve_continuity: bool = True
    include_system_messages: bool = False
    preferred_language: str | None = None
    topic_overlap_threshold: float = DEFAULT_TOPIC_OVERLAP_THRESHOLD
    topic_window: int = TOPIC_WINDOW_MESSAGES
    # Drop system messages outright instead of relying on the score penalty
    hard_filter_system: bool = False
    weights: ScoringWeights = field(default_factory=default_weights)


# ---------------------------------------------------------------------------
# Selection results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoredMessage:
    """A message enriched with derived language, topics, safety and score."""

    message: Message
    position: int
    language: str
    topics: frozenset[str]
    is_safety: bool
    relevance_score: float
    token_cost: int


@dataclass(frozen=True)
class ContextBundle:
    """The prior turns chosen for one send, in original order."""

    scored: tuple[ScoredMessage, ...] = ()
    estimated_tokens: int = 0
    max_tokens: int = 0
    truncated: bool = False
    safety_count: int = 0
    continuity_count: int = 0

    @property
    def messages(self) -> list[Message]:
        return [s.message for s in self.scored]

    @property
    def over_budget(self) -> bool:
        return self.estimated_tokens > self.max_tokens

    def __len__(self) -> int:
        return len(self.scored)

    def to_context_entries(self) -> list[dict[str, Any]]:
        return [s.message.to_context_entry() for s in self.scored]

    @classmethod
    def empty(cls, max_tokens: int) -> ContextBundle:
        return cls(max_tokens=max_tokens)


@dataclass(frozen=True)
class ContextEfficiency:
    original_tokens: int
    optimized_tokens: int
    compression_ratio: float
    messages_kept: int
    messages_removed: int
    safety_messages_preserved: int
