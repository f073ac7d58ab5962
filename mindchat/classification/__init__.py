"""Keyword-based language, topic, sentiment and crisis classification."""

from mindchat.classification.classifier import (
    Classification,
    CrisisAssessment,
    CrisisLevel,
    SentimentResult,
    analyze_sentiment,
    assess_crisis,
    classify,
    detect_language,
    extract_topics,
)

__all__ = [
    "Classification",
    "CrisisAssessment",
    "CrisisLevel",
    "SentimentResult",
    "analyze_sentiment",
    "assess_crisis",
    "classify",
    "detect_language",
    "extract_topics",
]
