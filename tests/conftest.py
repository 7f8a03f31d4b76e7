from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from src.setup.measurement_config import MeasurementSettings
from src.videoqoe.domain.models.measurement_desc import VideoQoEDescriptor
from src.videoqoe.domain.models.task_state import ContentType
from src.videoqoe.domain.repositories import Subscription
from src.videoqoe.infrastructure.notifications.local import LocalNotificationChannel

MANIFEST_URL = "http://example/manifest.mpd"


class StubWorkerHandle:
    """Records start requests; optionally runs a hook to emulate the player."""

    def __init__(self, on_start=None) -> None:
        self.start_calls: list[dict[str, Any]] = []
        self.stop_calls = 0
        self._on_start = on_start

    def start(
        self,
        manifest_url: str,
        content_id: str | None,
        content_type: ContentType,
        *,
        abr_type: int = 0,
        task_key: str | None = None,
    ) -> None:
        self.start_calls.append(
            {
                "manifest_url": manifest_url,
                "content_id": content_id,
                "content_type": content_type,
                "abr_type": abr_type,
                "task_key": task_key,
            }
        )
        if self._on_start is not None:
            self._on_start()

    def stop(self) -> bool:
        self.stop_calls += 1
        return False


class RecordingChannel(LocalNotificationChannel):
    """In-process channel that counts subscribe/unsubscribe calls."""

    def __init__(self) -> None:
        super().__init__()
        self.subscribed: list[Subscription] = []
        self.unsubscribed: list[Subscription] = []

    def subscribe(self, category, callback, *, task_key=None) -> Subscription:
        subscription = super().subscribe(category, callback, task_key=task_key)
        self.subscribed.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        self.unsubscribed.append(subscription)
        super().unsubscribe(subscription)


class StubDeviceInfo:
    def device_id(self) -> str:
        return "device-1"

    def device_properties(self, task_key: str | None) -> dict[str, Any]:
        return {"task_key": task_key, "os": "test"}


@pytest.fixture
def video_params() -> dict[str, str]:
    return {"manifestURL": MANIFEST_URL, "contentId": "abc123"}


@pytest.fixture
def descriptor(video_params: dict[str, str]) -> VideoQoEDescriptor:
    return VideoQoEDescriptor.create(
        "video-key",
        datetime(2024, 1, 1, tzinfo=timezone.utc),
        datetime(2024, 1, 2, tzinfo=timezone.utc),
        60.0,
        1,
        10,
        5,
        video_params,
    )


@pytest.fixture
def fast_settings() -> MeasurementSettings:
    """Wait loop of 20 polls x 0.05s so timeouts resolve in about a second."""
    return MeasurementSettings(POLL_INTERVAL_SEC=0.05, MAX_POLLS=20, DEVICE_ID="settings-device")


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def worker() -> StubWorkerHandle:
    return StubWorkerHandle()


@pytest.fixture
def device_info() -> StubDeviceInfo:
    return StubDeviceInfo()
