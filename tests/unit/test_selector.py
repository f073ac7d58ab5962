"""
Tests for token-budgeted context selection.

Covers the safety floor, greedy packing, the continuity tail and
chronological output order.
"""

from mindchat.context import (
    SelectionConfig,
    analyze_context_efficiency,
    build_context_bundle,
    optimize_context,
)
from mindchat.conversation.models import Role, Sentiment
from mindchat.observability.telemetry import get_counter

TEN_TOKENS = "x" * 40


def _ids(bundle):
    return [m.id for m in bundle.messages]


class TestSafetyFloor:
    def test_safety_message_beats_budget(self, make_message, now):
        """10 candidates, one safety message costing 50 with a budget of 40."""
        history = [
            make_message(f"m{i}", "hello there friend", minutes_ago=100 - i) for i in range(9)
        ]
        history.append(make_message("danger", "x" * 200, safety_flag=True, minutes_ago=1))

        bundle = optimize_context(history, SelectionConfig(max_tokens=40), now=now)

        assert _ids(bundle) == ["danger"]
        assert bundle.estimated_tokens == 50
        assert bundle.over_budget
        assert bundle.safety_count == 1
        assert bundle.truncated
        assert get_counter("context.over_budget") == 1

    def test_crisis_topic_counts_as_safety(self, make_message, now):
        history = [
            make_message("a", TEN_TOKENS, minutes_ago=10),
            make_message("b", "I keep thinking about suicide", minutes_ago=200),
            make_message("c", TEN_TOKENS, minutes_ago=5),
        ]
        config = SelectionConfig(max_tokens=1, preserve_continuity=False)
        bundle = optimize_context(history, config, now=now)
        assert _ids(bundle) == ["b"]

    def test_all_safety_messages_always_included(self, make_message, now):
        history = [
            make_message(f"s{i}", TEN_TOKENS, safety_flag=True, minutes_ago=50 - i)
            for i in range(5)
        ]
        bundle = optimize_context(history, SelectionConfig(max_tokens=5), now=now)
        assert len(bundle) == 5
        assert bundle.estimated_tokens == 50

    def test_floor_disabled_without_prioritize_safety(self, make_message, now):
        history = [make_message("danger", "x" * 200, safety_flag=True)]
        config = SelectionConfig(max_tokens=40, prioritize_safety=False)
        bundle = optimize_context(history, config, now=now)
        assert len(bundle) == 0
        assert bundle.safety_count == 0


class TestGreedyPacking:
    def test_highest_scores_fit_budget(self, make_message, now):
        history = [make_message(f"m{i}", TEN_TOKENS, minutes_ago=500 - i * 100) for i in range(5)]
        bundle = optimize_context(history, SelectionConfig(max_tokens=25), now=now)
        # Newer messages score higher on recency
        assert _ids(bundle) == ["m3", "m4"]
        assert bundle.estimated_tokens == 20
        assert not bundle.over_budget

    def test_overflowing_message_skipped_whole(self, make_message, now):
        history = [
            make_message("big", "y" * 400, sentiment=Sentiment.NEGATIVE, minutes_ago=1),
            make_message("small", TEN_TOKENS, minutes_ago=2),
        ]
        config = SelectionConfig(max_tokens=50, preserve_continuity=False)
        bundle = optimize_context(history, config, now=now)
        assert _ids(bundle) == ["small"]

    def test_everything_fits(self, make_message, now, make_history):
        history = make_history(6)
        bundle = optimize_context(history, SelectionConfig(max_tokens=4000), now=now)
        assert _ids(bundle) == [m.id for m in history]
        assert not bundle.truncated


class TestContinuity:
    def _history(self, make_message):
        return [
            make_message("m0", TEN_TOKENS, sentiment=Sentiment.CRISIS, minutes_ago=4),
            make_message("m1", TEN_TOKENS, minutes_ago=3),
            make_message("m2", TEN_TOKENS, minutes_ago=2),
            make_message("m3", TEN_TOKENS, minutes_ago=1),
        ]

    def test_tail_after_last_selected_is_appended(self, make_message, now):
        bundle = optimize_context(
            self._history(make_message), SelectionConfig(max_tokens=10), now=now
        )
        assert _ids(bundle) == ["m0", "m1", "m2", "m3"]
        assert bundle.continuity_count == 3
        assert bundle.estimated_tokens == 40
        assert bundle.over_budget

    def test_no_tail_when_disabled(self, make_message, now):
        config = SelectionConfig(max_tokens=10, preserve_continuity=False)
        bundle = optimize_context(self._history(make_message), config, now=now)
        assert _ids(bundle) == ["m0"]
        assert bundle.continuity_count == 0


class TestOrderingAndEdges:
    def test_output_preserves_original_order(self, make_message, now):
        history = [
            make_message("a", TEN_TOKENS, role=Role.ASSISTANT, minutes_ago=30),
            make_message("b", TEN_TOKENS, sentiment=Sentiment.NEGATIVE, minutes_ago=20),
            make_message("c", "hi", minutes_ago=10),
            make_message("d", TEN_TOKENS, safety_flag=True, minutes_ago=5),
        ]
        bundle = optimize_context(history, SelectionConfig(max_tokens=25), now=now)
        positions = [s.position for s in bundle.scored]
        assert positions == sorted(positions)

    def test_empty_input(self):
        bundle = optimize_context([], SelectionConfig(max_tokens=100))
        assert len(bundle) == 0
        assert bundle.estimated_tokens == 0
        assert bundle.messages == []

    def test_system_messages_penalized_not_dropped_by_default(self, make_message, now):
        history = [
            make_message("sys", "You are a kind assistant", role=Role.SYSTEM, minutes_ago=1),
            make_message("u", "hello there friend", minutes_ago=0),
        ]
        bundle = optimize_context(history, SelectionConfig(), now=now)
        assert "sys" in _ids(bundle)

    def test_hard_filter_drops_system_messages(self, make_message, now):
        history = [
            make_message("sys", "You are a kind assistant", role=Role.SYSTEM, minutes_ago=1),
            make_message("u", "hello there friend", minutes_ago=0),
        ]
        bundle = optimize_context(history, SelectionConfig(hard_filter_system=True), now=now)
        assert _ids(bundle) == ["u"]

    def test_context_entries_carry_three_fields(self, make_message, now):
        bundle = optimize_context([make_message("a", "hello there friend")], now=now)
        entry = bundle.to_context_entries()[0]
        assert set(entry) == {"role", "content", "timestamp"}
        assert entry["timestamp"] == int(now.timestamp() * 1000)


class TestBundleHelpers:
    def test_build_context_bundle_includes_pending_input(self, make_message, make_history, now):
        history = make_history(3)
        pending = make_message("pending", "I feel anxious today")
        bundle = build_context_bundle(history, pending, SelectionConfig(), now=now)
        assert _ids(bundle)[-1] == "pending"
        assert len(bundle) == 4

    def test_efficiency_summary(self, make_message, now):
        history = [make_message(f"m{i}", TEN_TOKENS, minutes_ago=100 - i) for i in range(4)]
        history.append(make_message("s", TEN_TOKENS, safety_flag=True, minutes_ago=200))
        config = SelectionConfig(max_tokens=20, preserve_continuity=False)
        bundle = optimize_context(history, config, now=now)

        efficiency = analyze_context_efficiency(history, bundle)
        assert efficiency.original_tokens == 50
        assert efficiency.optimized_tokens == 20
        assert efficiency.compression_ratio == 0.4
        assert efficiency.messages_kept == 2
        assert efficiency.messages_removed == 3
        assert efficiency.safety_messages_preserved == 1

    def test_efficiency_of_empty_history(self):
        efficiency = analyze_context_efficiency([], optimize_context([]))
        assert efficiency.compression_ratio == 1.0
