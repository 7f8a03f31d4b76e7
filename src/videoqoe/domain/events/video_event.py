from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class EventType(str, Enum):
    VIDEO_MEASUREMENT_UPDATE = "video_measurement_update"


class VideoMeasurementEvent(BaseModel):
    """Notification emitted by the video player while it measures."""

    event_id: str = Field(default_factory=lambda: uuid4().hex)
    type: EventType = Field(description="Category the event is dispatched under.")
    task_key: str | None = Field(default=None, description="Key of the measured task.")
    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    payload: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def update(cls, task_key: str | None, payload: dict[str, Any]) -> VideoMeasurementEvent:
        return cls(type=EventType.VIDEO_MEASUREMENT_UPDATE, task_key=task_key, payload=payload)
