"""Token-budgeted selection of conversation context for the generation service."""

from mindchat.context.selector import (
    analyze_context_efficiency,
    build_context_bundle,
    optimize_context,
)
from mindchat.context.tokens import estimate_tokens
from mindchat.context.types import (
    ContextBundle,
    ContextEfficiency,
    ScoredMessage,
    ScoringWeights,
    SelectionConfig,
)

__all__ = [
    "ContextBundle",
    "ContextEfficiency",
    "ScoredMessage",
    "ScoringWeights",
    "SelectionConfig",
    "analyze_context_efficiency",
    "build_context_bundle",
    "estimate_tokens",
    "optimize_context",
]
