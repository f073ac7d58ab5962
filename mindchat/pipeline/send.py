"""
Send pipeline coordinator.

One send runs four stages:

    classification   language of the input, crisis tier, sentiment
    context          token-budgeted selection over history + input
    dispatch         GenerationRequest to the generation service
    telemetry        one ChatMetric to the sink (fire-and-forget)

The reply is never appended locally; it arrives through the live history
query like every other message. Dispatch failures are returned as a failed
SendResult rather than raised.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from mindchat.backend.models import ContextEntry, GenerationRequest, GenerationResult
from mindchat.classification import (
    Classification,
    CrisisAssessment,
    SentimentResult,
    analyze_sentiment,
    assess_crisis,
    classify,
)
from mindchat.config import DEFAULT_LANGUAGE
from mindchat.context import ContextBundle, SelectionConfig, build_context_bundle
from mindchat.contracts import GenerationService, TelemetrySink
from mindchat.conversation.models import Message, Role, Sentiment
from mindchat.observability.logging import get_logger
from mindchat.observability.metrics import ChatMetric
from mindchat.observability.telemetry import PhaseTiming, counter, log_event, time_block
from mindchat.utils.error_sanitizer import (
    ErrorClass,
    classify_error,
    sanitize_error_message,
)

logger = get_logger(__name__)


class SendStage(str, Enum):
    """Last pipeline stage a send reached."""

    NONE = "none"
    SKIPPED = "skipped"
    CLASSIFICATION = "classification"
    CONTEXT = "context_building"
    DISPATCH = "dispatch"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SendRequest:
    conversation_id: str
    user_id: str
    text: str
    history: Sequence[Message] = ()
    default_language: str = DEFAULT_LANGUAGE
    user_info: dict[str, Any] = field(default_factory=dict)
    message_id: str | None = None


@dataclass
class SendResult:
    """Outcome of one send. ``notice`` is safe to show to the user."""

    success: bool
    stage_reached: SendStage = SendStage.NONE
    classification: Classification | None = None
    crisis: CrisisAssessment | None = None
    sentiment: SentimentResult | None = None
    bundle: ContextBundle | None = None
    reply: GenerationResult | None = None
    error_class: ErrorClass | None = None
    notice: str | None = None
    phase_durations: dict[str, float] = field(default_factory=dict)

    @property
    def skipped(self) -> bool:
        return self.stage_reached is SendStage.SKIPPED

    @classmethod
    def skipped_empty(cls) -> SendResult:
        return cls(success=False, stage_reached=SendStage.SKIPPED)

    @classmethod
    def failed(
        cls,
        stage: SendStage,
        error: Exception,
        *,
        classification: Classification | None = None,
        crisis: CrisisAssessment | None = None,
        sentiment: SentimentResult | None = None,
        bundle: ContextBundle | None = None,
    ) -> SendResult:
        error_class = classify_error(error)
        return cls(
            success=False,
            stage_reached=stage,
            classification=classification,
            crisis=crisis,
            sentiment=sentiment,
            bundle=bundle,
            error_class=error_class,
            notice=sanitize_error_message(str(error), error_class),
        )

    @classmethod
    def completed(
        cls,
        classification: Classification,
        crisis: CrisisAssessment,
        sentiment: SentimentResult,
        bundle: ContextBundle,
        reply: GenerationResult,
    ) -> SendResult:
        return cls(
            success=True,
            stage_reached=SendStage.COMPLETE,
            classification=classification,
            crisis=crisis,
            sentiment=sentiment,
            bundle=bundle,
            reply=reply,
        )


def _message_sentiment(crisis: CrisisAssessment, sentiment: SentimentResult) -> Sentiment:
    if crisis.is_crisis:
        return Sentiment.CRISIS
    return Sentiment(sentiment.label)


class SendCoordinator:
    """
    Orchestrates classification, context selection and dispatch for a send.

    Side Effects:
        - Network I/O through the GenerationService
        - One ChatMetric per dispatched send to the telemetry sink
        - Telemetry counters and structured log events
    """

    def __init__(
        self,
        service: GenerationService,
        *,
        config: SelectionConfig | None = None,
        telemetry_sink: TelemetrySink | None = None,
        chat_mode: str = "full",
    ):
        self.service = service
        self.config = config or SelectionConfig()
        self.telemetry_sink = telemetry_sink
        self.chat_mode = chat_mode

    def _selection_config(self, language: str) -> SelectionConfig:
        if self.config.preferred_language is not None:
            return self.config
        return replace(self.config, preferred_language=language)

    async def send(self, request: SendRequest, *, now: datetime | None = None) -> SendResult:
        """
        Run the send pipeline for one user input.

        Args:
            request: Input text plus the currently visible history
            now: Reference time for recency scoring and the pending timestamp

        Returns:
            SendResult; failures are reported in it, never raised
        """
        text = request.text.strip() if isinstance(request.text, str) else ""
        if not text:
            counter("send.skipped_empty")
            return SendResult.skipped_empty()

        now = now or datetime.now(UTC)
        counter("send.started")

        stage = SendStage.NONE
        classification: Classification | None = None
        crisis: CrisisAssessment | None = None
        sentiment: SentimentResult | None = None
        bundle: ContextBundle | None = None
        timings: list[PhaseTiming] = []

        with time_block("total") as total:
            try:
                stage = SendStage.CLASSIFICATION
                with time_block("classification") as timing:
                    timings.append(timing)
                    classification = classify(text, request.default_language)
                    crisis = assess_crisis(text, classification.language)
                    sentiment = analyze_sentiment(text)

                stage = SendStage.CONTEXT
                with time_block("context_building") as timing:
                    timings.append(timing)
                    pending = Message(
                        id=request.message_id or f"pending-{uuid4().hex}",
                        role=Role.USER,
                        text=text,
                        timestamp=now,
                        safety_flag=crisis.is_crisis,
                        sentiment=_message_sentiment(crisis, sentiment),
                        topics=tuple(sorted(classification.topics)),
                        language=classification.language,
                    )
                    bundle = build_context_bundle(
                        request.history,
                        pending,
                        self._selection_config(classification.language),
                        now=now,
                    )

                stage = SendStage.DISPATCH
                generation_request = GenerationRequest(
                    conversation_id=request.conversation_id,
                    user_id=request.user_id,
                    content=text,
                    language=classification.language,
                    chat_mode=self.chat_mode,
                    recent_messages=[
                        ContextEntry(**entry) for entry in bundle.to_context_entries()
                    ],
                    user_info=request.user_info,
                )
                with time_block("dispatch") as timing:
                    timings.append(timing)
                    reply = await self.service.generate(generation_request)

                result = SendResult.completed(classification, crisis, sentiment, bundle, reply)
            except Exception as e:
                logger.warning(
                    "Send failed at %s for conversation %s: %s",
                    stage.value,
                    request.conversation_id,
                    type(e).__name__,
                )
                result = SendResult.failed(
                    stage,
                    e,
                    classification=classification,
                    crisis=crisis,
                    sentiment=sentiment,
                    bundle=bundle,
                )

        result.phase_durations = {t.name: t.elapsed_ms for t in timings}
        result.phase_durations["total"] = total.elapsed_ms

        counter("send.completed" if result.success else "send.failed")
        log_event(
            "send.finished",
            conversation_id=request.conversation_id,
            success=result.success,
            stage=result.stage_reached.value,
            context_size=len(bundle) if bundle is not None else 0,
            total_ms=round(total.elapsed_ms, 3),
        )
        self._emit_metric(request, text, result)
        return result

    def _emit_metric(self, request: SendRequest, text: str, result: SendResult) -> None:
        if self.telemetry_sink is None:
            return

        crisis = result.crisis
        metric = ChatMetric(
            message_length=len(text),
            language=(
                result.classification.language
                if result.classification is not None
                else request.default_language
            ),
            chat_mode=self.chat_mode,
            context_size=len(result.bundle) if result.bundle is not None else 0,
            phase_durations=dict(result.phase_durations),
            success=result.success,
            error_class=result.error_class.value if result.error_class is not None else None,
            crisis_detected=crisis is not None and crisis.is_crisis,
            crisis_severity=(
                crisis.level.value if crisis is not None and crisis.is_crisis else None
            ),
            crisis_indicators=list(crisis.indicators) if crisis is not None else [],
            conversation_id=request.conversation_id,
        )
        try:
            self.telemetry_sink(metric)
        except Exception as e:
            counter("send.telemetry_error")
            logger.warning("Telemetry sink failed: %s", e)
