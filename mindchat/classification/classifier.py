"""
Heuristic message classifier.

Detects the language of a message (English or Arabic), the topics it touches,
a coarse sentiment, and crisis indicators. Everything here is keyword based:
no model calls and no I/O.

Pure classification - no side effects. Malformed input (None, non-strings,
empty text) degrades to the caller's default language and an empty topic set;
nothing in this module raises for bad input.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from mindchat.classification.keywords import (
    AFFECT_TOPICS,
    ARABIC_SCRIPT_RE,
    CRISIS_KEYWORDS,
    LANGUAGE_KEYWORDS,
    NEGATIVE_WORDS,
    POSITIVE_WORDS,
    TOPIC_CRISIS,
    TOPIC_KEYWORDS,
)
from mindchat.config import DEFAULT_LANGUAGE

_WORD_RE = re.compile(r"[^\W\d_]+(?:'[^\W\d_]+)?")

SENTIMENT_STEP = 0.2
SENTIMENT_LABEL_THRESHOLD = 0.3


class CrisisLevel(str, Enum):
    """Crisis urgency, ordered from most to least urgent."""

    IMMEDIATE = "immediate"
    HIGH = "high"
    MODERATE = "moderate"
    NONE = "none"


@dataclass(frozen=True)
class Classification:
    """Language tag and topic set for one piece of text."""

    language: str
    topics: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_crisis_topic(self) -> bool:
        return TOPIC_CRISIS in self.topics

    @property
    def has_affect(self) -> bool:
        return bool(self.topics & AFFECT_TOPICS)


@dataclass(frozen=True)
class SentimentResult:
    score: float
    label: str  # "positive" | "negative" | "neutral"


@dataclass(frozen=True)
class CrisisAssessment:
    """Crisis urgency for a message plus the indicators that matched."""

    level: CrisisLevel
    indicators: tuple[str, ...] = ()

    @property
    def is_crisis(self) -> bool:
        return self.level in (CrisisLevel.IMMEDIATE, CrisisLevel.HIGH)


def _as_text(text: Any) -> str:
    return text if isinstance(text, str) else ""


def detect_language(text: Any, default: str = DEFAULT_LANGUAGE) -> str:
    """
    Detect whether text is Arabic or English.

    Arabic script anywhere in the text wins outright. Without it, the language
    with more distinct keyword hits wins; ties (including no hits at all) fall
    back to ``default``.
    """
    content = _as_text(text)
    if not content.strip():
        return default

    if ARABIC_SCRIPT_RE.search(content):
        return "ar"

    words = set(_WORD_RE.findall(content.lower()))
    hits = {lang: len(words & keywords) for lang, keywords in LANGUAGE_KEYWORDS.items()}
    best = max(hits.values())
    if best == 0:
        return default

    leaders = [lang for lang, count in hits.items() if count == best]
    if len(leaders) > 1:
        return default
    return leaders[0]


def extract_topics(text: Any) -> frozenset[str]:
    """Return every taxonomy topic whose keywords appear in text (case-insensitive)."""
    content = _as_text(text).lower()
    if not content:
        return frozenset()

    return frozenset(
        topic
        for topic, keywords in TOPIC_KEYWORDS.items()
        if any(keyword in content for keyword in keywords)
    )


def classify(text: Any, default_language: str = DEFAULT_LANGUAGE) -> Classification:
    """
    Classify text into a language tag and a topic set.

    Args:
        text: Raw message text (anything that is not a string is treated as empty)
        default_language: Returned when the language cannot be decided

    Returns:
        Classification with language and topics
    """
    return Classification(
        language=detect_language(text, default_language),
        topics=extract_topics(text),
    )


def analyze_sentiment(text: Any) -> SentimentResult:
    """Very light-weight sentiment heuristic: +/-0.2 per keyword, clamped to [-1, 1]."""
    content = _as_text(text).lower()
    score = 0.0
    for word in POSITIVE_WORDS:
        if word in content:
            score += SENTIMENT_STEP
    for word in NEGATIVE_WORDS:
        if word in content:
            score -= SENTIMENT_STEP
    score = max(-1.0, min(1.0, round(score, 6)))

    if score > SENTIMENT_LABEL_THRESHOLD:
        label = "positive"
    elif score < -SENTIMENT_LABEL_THRESHOLD:
        label = "negative"
    else:
        label = "neutral"
    return SentimentResult(score=score, label=label)


def assess_crisis(text: Any, language: str = DEFAULT_LANGUAGE) -> CrisisAssessment:
    """
    Assess crisis urgency using tiered keyword lists.

    Tiers are checked from most to least urgent; the first tier with any
    match decides the level. Unknown languages use the English lists.
    """
    content = _as_text(text).lower()
    if not content:
        return CrisisAssessment(level=CrisisLevel.NONE)

    tiers = CRISIS_KEYWORDS.get(language, CRISIS_KEYWORDS["en"])
    for level in (CrisisLevel.IMMEDIATE, CrisisLevel.HIGH, CrisisLevel.MODERATE):
        matched = tuple(k for k in tiers[level.value] if k.lower() in content)
        if matched:
            return CrisisAssessment(level=level, indicators=matched)
    return CrisisAssessment(level=CrisisLevel.NONE)
