"""
Chat send metrics.

One ChatMetric is recorded per send by the pipeline coordinator. The
collector keeps the most recent records in memory, aggregates them for
dashboards and logs threshold breaches as they arrive.
"""

from __future__ import annotations

import json
from collections import Counter, deque
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

from mindchat.config import APP_VERSION, METRICS_MAX_STORED, SLOW_SEND_THRESHOLD_MS
from mindchat.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ChatMetric:
    """
    Telemetry record for one send.

    Carries sizes, timings and classification results only. Message text is
    never stored here.
    """

    message_length: int
    language: str
    chat_mode: str
    context_size: int
    phase_durations: dict[str, float] = field(default_factory=dict)
    success: bool = True
    error_class: str | None = None
    crisis_detected: bool = False
    crisis_severity: str | None = None
    crisis_indicators: list[str] = field(default_factory=list)
    conversation_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    version: str = APP_VERSION

    @property
    def total_ms(self) -> float:
        return self.phase_durations.get("total", 0.0)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass
class AggregatedMetrics:
    total_sends: int = 0
    average_total_ms: float = 0.0
    error_rate: float = 0.0
    crisis_detection_rate: float = 0.0
    language_distribution: dict[str, int] = field(default_factory=dict)
    chat_mode_usage: dict[str, int] = field(default_factory=dict)
    p95_total_ms: float = 0.0


def _p95(samples: list[float]) -> float:
    if not samples:
        return 0.0
    ordered = sorted(samples)
    idx = int(len(ordered) * 0.95)
    return ordered[idx] if idx < len(ordered) else ordered[-1]


class MetricsCollector:
    """In-memory ring of recent ChatMetric records."""

    def __init__(
        self,
        max_stored: int = METRICS_MAX_STORED,
        slow_threshold_ms: float = SLOW_SEND_THRESHOLD_MS,
    ):
        self._metrics: deque[ChatMetric] = deque(maxlen=max_stored)
        self.slow_threshold_ms = slow_threshold_ms

    def __call__(self, metric: ChatMetric) -> None:
        self.record(metric)

    def __len__(self) -> int:
        return len(self._metrics)

    @property
    def metrics(self) -> list[ChatMetric]:
        return list(self._metrics)

    def record(self, metric: ChatMetric) -> None:
        """
        Store a metric, evicting the oldest beyond capacity.

        Side Effects:
            - Writes warnings/errors to logger when thresholds are crossed
        """
        self._metrics.append(metric)
        self._check_thresholds(metric)
        logger.debug(
            "Recorded chat metric: success=%s total_ms=%.1f context_size=%d",
            metric.success,
            metric.total_ms,
            metric.context_size,
        )

    def _check_thresholds(self, metric: ChatMetric) -> None:
        if metric.total_ms > self.slow_threshold_ms:
            logger.warning(
                "Slow send: %.0fms (message_length=%d, context_size=%d, chat_mode=%s)",
                metric.total_ms,
                metric.message_length,
                metric.context_size,
                metric.chat_mode,
            )
        if not metric.success:
            logger.error(
                "Send failed: error_class=%s language=%s message_length=%d",
                metric.error_class,
                metric.language,
                metric.message_length,
            )
        if metric.crisis_detected and metric.crisis_severity == "immediate":
            logger.warning(
                "Immediate crisis detected: indicators=%d language=%s",
                len(metric.crisis_indicators),
                metric.language,
            )

    def aggregate(self) -> AggregatedMetrics:
        if not self._metrics:
            return AggregatedMetrics()

        total = len(self._metrics)
        durations = [m.total_ms for m in self._metrics if m.total_ms > 0]
        failures = sum(1 for m in self._metrics if not m.success)
        crises = sum(1 for m in self._metrics if m.crisis_detected)

        return AggregatedMetrics(
            total_sends=total,
            average_total_ms=sum(durations) / len(durations) if durations else 0.0,
            error_rate=failures / total,
            crisis_detection_rate=crises / total,
            language_distribution=dict(Counter(m.language for m in self._metrics)),
            chat_mode_usage=dict(Counter(m.chat_mode for m in self._metrics)),
            p95_total_ms=_p95(durations),
        )

    def in_range(self, start: datetime, end: datetime) -> list[ChatMetric]:
        """Metrics recorded in [start, end], inclusive."""
        return [m for m in self._metrics if start <= m.timestamp <= end]

    def export_json(self) -> str:
        payload = {
            "export_time": datetime.now(UTC).isoformat(),
            "aggregated": asdict(self.aggregate()),
            "detailed": [m.to_dict() for m in self._metrics],
        }
        return json.dumps(payload, indent=2)

    def clear(self) -> None:
        self._metrics.clear()
