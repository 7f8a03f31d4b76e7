import asyncio
import threading
import time

import pytest

from src.setup.measurement_config import MeasurementSettings
from src.videoqoe.application.coordinator import VideoQoETask
from src.videoqoe.domain.events.video_event import EventType
from src.videoqoe.domain.exceptions import InvalidConfigurationError, MeasurementInterruptedError
from src.videoqoe.domain.models.measurement_desc import (
    VIDEO_QOE_TYPE,
    MeasurementDescriptor,
    VideoQoEDescriptor,
)
from src.videoqoe.domain.models.task_state import ContentType, TaskProgress, TaskState
from src.videoqoe.domain.repositories import (
    DeviceInfoProvider,
    ExternalWorkerHandle,
    NotificationChannel,
)

UPDATE = EventType.VIDEO_MEASUREMENT_UPDATE


def publish_when_subscribed(channel, payload: dict, timeout: float = 5.0) -> threading.Thread:
    """Emulate the player: publish once the task has subscribed."""

    def _run() -> None:
        deadline = time.monotonic() + timeout
        while channel.subscriber_count(UPDATE) == 0 and time.monotonic() < deadline:
            time.sleep(0.005)
        channel.publish(UPDATE, payload)

    thread = threading.Thread(target=_run, daemon=True)
    thread.start()
    return thread


@pytest.fixture
def roomy_settings() -> MeasurementSettings:
    return MeasurementSettings(POLL_INTERVAL_SEC=0.05, MAX_POLLS=200)


def _task(descriptor, worker, channel, device_info, settings) -> VideoQoETask:
    return VideoQoETask(
        descriptor,
        worker=worker,
        channel=channel,
        device_info=device_info,
        settings=settings,
    )


def test_notification_completes_measurement(descriptor, worker, channel, device_info, roomy_settings) -> None:
    task = _task(descriptor, worker, channel, device_info, roomy_settings)
    publisher = publish_when_subscribed(
        channel, {"isSucceed": True, "numFrameDropped": 3, "initialLoadingTime": 1.25}
    )

    results = task.run()
    publisher.join()

    assert len(results) == 1
    result = results[0]
    assert result.task_progress is TaskProgress.COMPLETED
    assert result.type == VIDEO_QOE_TYPE
    assert result.device_id == "device-1"
    assert result.device_properties == {"task_key": "video-key", "os": "test"}
    assert result.parameters == descriptor
    assert result.values == {
        "isSucceed": True,
        "numFrameDropped": 3,
        "initialLoadingTime": 1.25,
        "rebufferTime": [],
        "goodputTimestamp": [],
        "goodputValue": [],
        "bitrateTimestamp": [],
        "bitrateValue": [],
    }


def test_single_partial_notification_ends_wait_early(descriptor, worker, channel, device_info, roomy_settings) -> None:
    task = _task(descriptor, worker, channel, device_info, roomy_settings)
    publish_when_subscribed(channel, {"isSucceed": True})

    started = time.monotonic()
    results = task.run()
    elapsed = time.monotonic() - started

    assert elapsed < roomy_settings.timeout_sec
    assert results[0].task_progress is TaskProgress.COMPLETED
    assert results[0].values["isSucceed"] is True
    assert results[0].values["numFrameDropped"] == 0
    assert results[0].values["bitrateValue"] == []


def test_no_notification_times_out(descriptor, worker, channel, device_info, fast_settings) -> None:
    task = _task(descriptor, worker, channel, device_info, fast_settings)

    started = time.monotonic()
    results = task.run()
    elapsed = time.monotonic() - started

    assert len(results) == 1
    assert results[0].task_progress is TaskProgress.FAILED
    assert results[0].values == {"error": "measurement timeout"}
    assert elapsed >= fast_settings.timeout_sec - 0.05
    assert len(channel.subscribed) == 1
    assert channel.unsubscribed == channel.subscribed
    assert channel.subscriber_count() == 0


def test_worker_started_with_descriptor_values(worker, channel, device_info, roomy_settings) -> None:
    desc = VideoQoEDescriptor.create(
        "abr-key", None, None, 1.0, 1, 0, 0,
        {"manifestURL": "http://example/m.mpd", "contentId": "cid", "ABRType": "2"},
    )
    task = _task(desc, worker, channel, device_info, roomy_settings)
    publish_when_subscribed(channel, {})

    task.run()

    assert worker.start_calls == [
        {
            "manifest_url": "http://example/m.mpd",
            "content_id": "cid",
            "content_type": ContentType.DASH_VOD,
            "abr_type": 2,
            "task_key": "abr-key",
        }
    ]


def test_listener_released_after_completion(descriptor, worker, channel, device_info, roomy_settings) -> None:
    task = _task(descriptor, worker, channel, device_info, roomy_settings)
    publish_when_subscribed(channel, {"isSucceed": True})

    task.run()

    assert len(channel.unsubscribed) == 1
    assert channel.publish(UPDATE, {"numFrameDropped": 1}) == 0


def test_cancel_event_interrupts_and_unsubscribes(descriptor, worker, channel, device_info, fast_settings) -> None:
    task = _task(descriptor, worker, channel, device_info, fast_settings)
    cancel_event = threading.Event()
    cancel_event.set()

    with pytest.raises(MeasurementInterruptedError):
        task.run(cancel_event)

    assert channel.unsubscribed == channel.subscribed
    assert len(channel.unsubscribed) == 1
    assert task.state is TaskState.DONE


def test_state_transitions(descriptor, worker, channel, device_info, fast_settings) -> None:
    seen: list[TaskState] = []
    task = _task(descriptor, worker, channel, device_info, fast_settings)
    worker._on_start = lambda: seen.append(task.state)

    assert task.state is TaskState.CREATED
    task.run()

    assert seen == [TaskState.RUNNING]
    assert task.state is TaskState.DONE


def test_each_run_starts_from_fresh_telemetry(descriptor, worker, channel, device_info, fast_settings) -> None:
    task = _task(descriptor, worker, channel, device_info, fast_settings)
    publish_when_subscribed(channel, {"numFrameDropped": 7})

    first = task.run()
    second = task.run()

    assert first[0].values["numFrameDropped"] == 7
    assert second[0].task_progress is TaskProgress.FAILED
    assert len(worker.start_calls) == 2
    assert len(channel.unsubscribed) == 2


def test_generic_descriptor_is_converted(worker, channel, device_info, fast_settings) -> None:
    generic = MeasurementDescriptor(
        type=VIDEO_QOE_TYPE, key="generic", parameters={"manifestURL": "http://example/m.mpd"}
    )

    task = _task(generic, worker, channel, device_info, fast_settings)

    assert task.descriptor.manifest_url == "http://example/m.mpd"


def test_generic_descriptor_without_manifest_is_rejected(worker, channel, device_info, fast_settings) -> None:
    generic = MeasurementDescriptor(type=VIDEO_QOE_TYPE, key="generic", parameters={})

    with pytest.raises(InvalidConfigurationError):
        _task(generic, worker, channel, device_info, fast_settings)


def test_duration_is_clamped(descriptor, worker, channel, device_info, fast_settings) -> None:
    task = _task(descriptor, worker, channel, device_info, fast_settings)

    task.set_duration(-5)
    assert task.get_duration() == 0

    task.set_duration(42)
    assert task.get_duration() == 42


def test_task_metadata(descriptor, worker, channel, device_info, fast_settings) -> None:
    task = _task(descriptor, worker, channel, device_info, fast_settings)

    assert task.stop() is False
    assert worker.stop_calls == 0
    assert task.get_type() == "video_qoe"
    assert task.get_descriptor() == "VIDEOQOE"
    assert task.get_data_consumed() == 0
    assert task.key == "video-key"


def test_clone_shares_collaborators_not_descriptor(descriptor, worker, channel, device_info, fast_settings) -> None:
    task = _task(descriptor, worker, channel, device_info, fast_settings)

    clone = task.clone()
    clone.descriptor.parameters["contentId"] = "other"

    assert clone.descriptor is not task.descriptor
    assert task.descriptor.parameters["contentId"] == "abc123"
    assert clone.state is TaskState.CREATED


def test_collaborators_resolved_through_inject(
    descriptor, worker, channel, device_info, fast_settings, monkeypatch: pytest.MonkeyPatch
) -> None:
    import inject

    def fake_instance(interface: object) -> object:
        if interface is ExternalWorkerHandle:
            return worker
        if interface is NotificationChannel:
            return channel
        if interface is DeviceInfoProvider:
            return device_info
        raise RuntimeError(f"Unexpected dependency request: {interface}")

    monkeypatch.setattr(inject, "instance", fake_instance)
    task = VideoQoETask(descriptor, settings=fast_settings)
    publish_when_subscribed(channel, {"isSucceed": True})

    results = task.run()

    assert results[0].task_progress is TaskProgress.COMPLETED
    assert len(worker.start_calls) == 1


@pytest.mark.asyncio
async def test_run_async_returns_result(descriptor, worker, channel, device_info, roomy_settings) -> None:
    task = _task(descriptor, worker, channel, device_info, roomy_settings)
    publish_when_subscribed(channel, {"isSucceed": True, "rebufferTime": [0.5]})

    results = await task.run_async()

    assert results[0].task_progress is TaskProgress.COMPLETED
    assert results[0].values["rebufferTime"] == [0.5]


@pytest.mark.asyncio
async def test_run_async_cancellation_releases_listener(descriptor, worker, channel, device_info, roomy_settings) -> None:
    task = _task(descriptor, worker, channel, device_info, roomy_settings)
    pending = asyncio.create_task(task.run_async())

    for _ in range(100):
        if channel.subscribed:
            break
        await asyncio.sleep(0.01)
    pending.cancel()

    with pytest.raises(asyncio.CancelledError):
        await pending

    for _ in range(100):
        if channel.unsubscribed:
            break
        await asyncio.sleep(0.01)

    assert channel.unsubscribed == channel.subscribed
    assert len(channel.unsubscribed) == 1


class BrokenWorker:
    def __init__(self) -> None:
        self.attempts = 0

    def start(self, manifest_url, content_id, content_type, *, abr_type=0, task_key=None) -> None:
        self.attempts += 1
        raise ConnectionError("broker unreachable")

    def stop(self) -> bool:
        return False


def test_worker_start_failure_resolves_to_timeout(descriptor, channel, device_info, fast_settings) -> None:
    worker = BrokenWorker()
    task = _task(descriptor, worker, channel, device_info, fast_settings)

    results = task.run()

    assert worker.attempts == 1
    assert len(results) == 1
    assert results[0].task_progress is TaskProgress.FAILED
    assert results[0].values == {"error": "measurement timeout"}
    assert channel.unsubscribed == channel.subscribed
    assert len(channel.unsubscribed) == 1
    assert task.state is TaskState.DONE


def test_worker_start_failure_still_accepts_telemetry(descriptor, channel, device_info, roomy_settings) -> None:
    task = _task(descriptor, BrokenWorker(), channel, device_info, roomy_settings)
    publish_when_subscribed(channel, {"isSucceed": True})

    results = task.run()

    assert results[0].task_progress is TaskProgress.COMPLETED


def test_subscription_is_scoped_to_task_key(descriptor, worker, channel, device_info, fast_settings) -> None:
    task = _task(descriptor, worker, channel, device_info, fast_settings)

    def _stale_report() -> None:
        deadline = time.monotonic() + 5.0
        while channel.subscriber_count(UPDATE) == 0 and time.monotonic() < deadline:
            time.sleep(0.005)
        channel.publish(UPDATE, {"isSucceed": True}, task_key="earlier-run")

    threading.Thread(target=_stale_report, daemon=True).start()
    results = task.run()

    assert channel.subscribed[0].task_key == "video-key"
    assert results[0].task_progress is TaskProgress.FAILED


def test_report_for_own_task_key_completes(descriptor, worker, channel, device_info, roomy_settings) -> None:
    task = _task(descriptor, worker, channel, device_info, roomy_settings)

    def _report() -> None:
        deadline = time.monotonic() + 5.0
        while channel.subscriber_count(UPDATE) == 0 and time.monotonic() < deadline:
            time.sleep(0.005)
        channel.publish(UPDATE, {"numFrameDropped": 2}, task_key="video-key")

    threading.Thread(target=_report, daemon=True).start()
    results = task.run()

    assert results[0].task_progress is TaskProgress.COMPLETED
    assert results[0].values["numFrameDropped"] == 2
