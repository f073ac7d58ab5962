"""Rough token-cost estimation (no tokenizer; character ratios per script)."""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any

from mindchat.classification.keywords import ARABIC_SCRIPT_RE
from mindchat.config import CHARS_PER_TOKEN_ARABIC, CHARS_PER_TOKEN_LATIN


def chars_per_token(text: str) -> float:
    """Arabic tokenizes more finely, so any Arabic script selects the denser ratio."""
    if ARABIC_SCRIPT_RE.search(text):
        return CHARS_PER_TOKEN_ARABIC
    return CHARS_PER_TOKEN_LATIN


def estimate_tokens(text: Any) -> int:
    """Estimate the generation cost of text; 0 for empty or non-string input."""
    if not isinstance(text, str) or not text:
        return 0
    return math.ceil(len(text) / chars_per_token(text))


def estimate_total(texts: Iterable[Any]) -> int:
    return sum(estimate_tokens(t) for t in texts)
