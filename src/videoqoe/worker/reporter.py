from __future__ import annotations

import logging
from typing import Any

import inject

from src.videoqoe.domain.events.video_event import VideoMeasurementEvent
from src.videoqoe.domain.models.telemetry import QoETelemetry, QoETelemetryUpdate
from src.videoqoe.infrastructure.streams.publisher import VideoMeasurementPublisher

logger = logging.getLogger(__name__)


class QoEReporter:
    """Publish QoE telemetry from the playback worker to the measurement task."""

    def __init__(
        self,
        task_key: str | None = None,
        publisher: VideoMeasurementPublisher | None = None,
    ) -> None:
        self._task_key = task_key
        self._publisher = publisher or inject.instance(VideoMeasurementPublisher)

    def report_progress(self, **fields: Any) -> dict[str, Any]:
        """
        Publish a partial update.

        Keyword arguments use the telemetry field names (``is_succeed``,
        ``rebuffer_time``, ...) or their wire names; ``None`` values are dropped.
        """
        update = QoETelemetryUpdate.model_validate(fields)
        payload = update.model_dump(by_alias=True, exclude_none=True)
        self._publish(payload)
        return payload

    def report_completed(self, telemetry: QoETelemetry) -> dict[str, Any]:
        payload = telemetry.metrics()
        self._publish(payload)
        return payload

    def _publish(self, payload: dict[str, Any]) -> None:
        event = VideoMeasurementEvent.update(self._task_key, payload)
        self._publisher.publish(event)
        logger.debug(
            "Published video measurement update",
            extra={"task_key": self._task_key, "event_id": event.event_id, "fields": sorted(payload)},
        )
