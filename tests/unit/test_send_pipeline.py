"""
Tests for SendCoordinator: classification, context building, dispatch,
telemetry and failure handling.
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from mindchat.backend.http_client import GenerationServiceError
from mindchat.backend.models import GenerationResult
from mindchat.classification import CrisisLevel
from mindchat.context import SelectionConfig
from mindchat.observability.metrics import MetricsCollector
from mindchat.observability.telemetry import get_counter
from mindchat.pipeline import SendCoordinator, SendRequest, SendStage
from mindchat.utils.error_sanitizer import ErrorClass


@pytest.fixture
def service():
    mock = AsyncMock()
    mock.generate.return_value = GenerationResult(message_id="reply-1")
    return mock


@pytest.fixture
def collector():
    return MetricsCollector()


@pytest.fixture
def coordinator(service, collector):
    return SendCoordinator(service, telemetry_sink=collector, chat_mode="floating")


def _request(text, history=(), **overrides):
    return SendRequest(
        conversation_id="conv-a",
        user_id="user-1",
        text=text,
        history=tuple(history),
        user_info={"name": "Sam"},
        **overrides,
    )


class TestDispatch:
    @pytest.mark.asyncio
    async def test_successful_send(self, coordinator, service, make_history, now):
        history = make_history(4)

        result = await coordinator.send(_request("  I feel anxious  ", history), now=now)

        assert result.success
        assert result.stage_reached == SendStage.COMPLETE
        assert result.reply.message_id == "reply-1"
        assert result.classification.language == "en"
        assert "mental_health" in result.classification.topics

        request = service.generate.await_args.args[0]
        assert request.content == "I feel anxious"
        assert request.language == "en"
        assert request.chat_mode == "floating"
        assert request.user_info == {"name": "Sam"}
        # History plus the pending input, in order, as {role, content, timestamp}
        assert [e.content for e in request.recent_messages][-1] == "I feel anxious"
        assert len(request.recent_messages) == 5

        wire = request.model_dump(by_alias=True)
        assert {"conversationId", "userId", "chatMode", "recentMessages", "userInfo"} <= set(wire)

    @pytest.mark.asyncio
    async def test_records_phase_timings(self, coordinator):
        result = await coordinator.send(_request("hello there"))
        assert set(result.phase_durations) == {
            "classification",
            "context_building",
            "dispatch",
            "total",
        }
        assert result.phase_durations["total"] >= result.phase_durations["dispatch"]

    @pytest.mark.asyncio
    async def test_arabic_input_uses_arabic_language(self, coordinator, service):
        await coordinator.send(_request("أشعر بالقلق"))
        assert service.generate.await_args.args[0].language == "ar"

    @pytest.mark.asyncio
    async def test_default_language_used_when_undecided(self, coordinator, service):
        await coordinator.send(_request("xyzzy plugh", default_language="ar"))
        assert service.generate.await_args.args[0].language == "ar"

    @pytest.mark.asyncio
    async def test_crisis_input_is_safety_flagged(self, coordinator, make_history, now):
        history = make_history(20)
        config = SelectionConfig(max_tokens=1)
        coordinator.config = config

        result = await coordinator.send(_request("I want to die", history), now=now)

        assert result.crisis.level == CrisisLevel.IMMEDIATE
        pending = result.bundle.scored[-1]
        assert pending.message.text == "I want to die"
        assert pending.is_safety
        assert pending.message.safety_flag

    @pytest.mark.asyncio
    async def test_empty_input_skipped(self, coordinator, service, collector):
        result = await coordinator.send(_request("   "))
        assert result.skipped
        assert not result.success
        service.generate.assert_not_awaited()
        assert len(collector) == 0
        assert get_counter("send.skipped_empty") == 1


class TestFailures:
    @pytest.mark.asyncio
    async def test_dispatch_failure_returned_not_raised(self, coordinator, service):
        service.generate.side_effect = GenerationServiceError("generation service returned 503", 503)

        result = await coordinator.send(_request("hello there"))

        assert not result.success
        assert result.stage_reached == SendStage.DISPATCH
        assert result.error_class == ErrorClass.API
        assert result.notice
        assert result.bundle is not None
        assert get_counter("send.failed") == 1

    @pytest.mark.asyncio
    async def test_network_failure_classified(self, coordinator, service):
        service.generate.side_effect = httpx.ConnectError("refused")
        result = await coordinator.send(_request("hello there"))
        assert result.error_class == ErrorClass.NETWORK

    @pytest.mark.asyncio
    async def test_sensitive_error_text_not_leaked(self, coordinator, service):
        service.generate.side_effect = RuntimeError(
            'Traceback (most recent call last): File "/srv/app/mindchat/pipeline/send.py"'
        )
        result = await coordinator.send(_request("hello there"))
        assert "Traceback" not in result.notice
        assert "/srv" not in result.notice


class TestTelemetry:
    @pytest.mark.asyncio
    async def test_metric_recorded_per_send(self, coordinator, collector):
        await coordinator.send(_request("I want to die"))

        [metric] = collector.metrics
        assert metric.success
        assert metric.chat_mode == "floating"
        assert metric.message_length == len("I want to die")
        assert metric.crisis_detected
        assert metric.crisis_severity == "immediate"
        assert metric.context_size == 1
        assert "total" in metric.phase_durations

    @pytest.mark.asyncio
    async def test_metric_records_failure_class(self, coordinator, service, collector):
        service.generate.side_effect = GenerationServiceError("down")
        await coordinator.send(_request("hello there"))
        [metric] = collector.metrics
        assert not metric.success
        assert metric.error_class == "network"

    @pytest.mark.asyncio
    async def test_sink_failure_never_fails_send(self, service):
        sink = MagicMock(side_effect=RuntimeError("sink down"))
        coordinator = SendCoordinator(service, telemetry_sink=sink)

        result = await coordinator.send(_request("hello there"))

        assert result.success
        sink.assert_called_once()
        assert get_counter("send.telemetry_error") == 1
