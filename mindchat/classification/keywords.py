"""
Module: keywords
Purpose: Keyword lists and script ranges used by the message classifier.
Dependencies: re (script range pattern only)

Separates classification policy data from classification logic. Edit this
file to add/remove keywords without touching the matching code in
classifier.py. Every list is bilingual (English + Arabic).
"""

import re

# ---------------------------------------------------------------------------
# Script detection
# Arabic, Arabic Supplement, Arabic Extended-A, Presentation Forms A/B
# ---------------------------------------------------------------------------

ARABIC_SCRIPT_RE = re.compile(r"[\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB50-\uFDFF\uFE70-\uFEFF]")

# ---------------------------------------------------------------------------
# Language keywords (function words; matched as whole words)
# ---------------------------------------------------------------------------

LANGUAGE_KEYWORDS: dict[str, frozenset[str]] = {
    "en": frozenset(
        {
            "i", "am", "is", "are", "was", "were", "have", "has", "had",
            "do", "does", "did", "will", "would", "could", "should", "can",
            "may", "might", "must", "the", "a", "an", "and", "or", "but",
            "in", "on", "at", "to", "for", "of", "with", "by",
        }
    ),
    "ar": frozenset(
        {
            "انا", "هذا", "هل", "ماذا", "كيف", "متى", "اين", "لماذا",
            "من", "الى", "في", "على", "مع", "بعد", "قبل",
        }
    ),
}

# ---------------------------------------------------------------------------
# Topic taxonomy (case-insensitive substring match)
# ---------------------------------------------------------------------------

TOPIC_CRISIS = "crisis"
TOPIC_MENTAL_HEALTH = "mental_health"
TOPIC_EMOTIONS = "emotions"
TOPIC_RELATIONSHIPS = "relationships"
TOPIC_WORK = "work"
TOPIC_HEALTH = "health"

TOPIC_KEYWORDS: dict[str, tuple[str, ...]] = {
    TOPIC_MENTAL_HEALTH: (
        "anxiety", "anxious", "depression", "depressed", "stress", "panic",
        "قلق", "اكتئاب", "ضغط",
    ),
    TOPIC_RELATIONSHIPS: (
        "family", "friends", "partner", "love",
        "عائلة", "أصدقاء", "حب",
    ),
    TOPIC_WORK: (
        "job", "career", "boss", "workplace",
        "عمل", "وظيفة", "مهنة",
    ),
    TOPIC_HEALTH: (
        "pain", "sick", "doctor", "hospital",
        "ألم", "مريض", "طبيب",
    ),
    TOPIC_CRISIS: (
        "suicide", "death", "hurt", "kill",
        "انتحار", "موت", "أذى",
    ),
    TOPIC_EMOTIONS: (
        "happy", "sad", "angry", "fear", "feel",
        "سعيد", "حزين", "غاضب", "خوف",
    ),
}

# Topics describing the user's emotional state
AFFECT_TOPICS: frozenset[str] = frozenset({TOPIC_MENTAL_HEALTH, TOPIC_EMOTIONS})

# ---------------------------------------------------------------------------
# Crisis indicators, tiered by urgency
# ---------------------------------------------------------------------------

CRISIS_KEYWORDS: dict[str, dict[str, tuple[str, ...]]] = {
    "en": {
        "immediate": (
            "suicide", "kill myself", "end my life", "want to die", "better off dead",
            "going to hurt myself", "planning to", "tonight", "right now",
        ),
        "high": (
            "self-harm", "hurt myself", "cut myself", "overdose", "can't go on",
            "no point", "hopeless", "worthless", "burden", "everyone hates me",
        ),
        "moderate": (
            "depressed", "anxious", "panic", "scared", "alone", "sad", "worried",
            "stressed", "overwhelmed", "can't cope", "struggling",
        ),
    },
    "ar": {
        "immediate": (
            "انتحار", "أقتل نفسي", "أنهي حياتي", "أريد أن أموت", "الأفضل أن أموت",
            "سأؤذي نفسي", "أخطط", "الليلة", "الآن",
        ),
        "high": (
            "أؤذي نفسي", "أجرح نفسي", "أقطع نفسي", "جرعة زائدة", "لا أستطيع المتابعة",
            "لا معنى", "يائس", "بلا قيمة", "عبء", "الجميع يكرهني",
        ),
        "moderate": (
            "مكتئب", "قلق", "خوف", "خائف", "وحيد", "حزين",
            "مضغوط", "مرهق", "لا أستطيع التأقلم", "أكافح",
        ),
    },
}

# ---------------------------------------------------------------------------
# Sentiment words
# ---------------------------------------------------------------------------

POSITIVE_WORDS: tuple[str, ...] = (
    "happy", "great", "wonderful", "excellent", "proud", "joy",
    "سعيد", "رائع", "ممتاز", "فخور", "فرح",
)

NEGATIVE_WORDS: tuple[str, ...] = (
    "sad", "difficult", "hard", "struggle", "pain",
    "حزين", "صعب", "ألم", "معاناة",
)
