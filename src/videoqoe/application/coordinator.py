from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager

import inject

from src.setup.measurement_config import MeasurementSettings, get_measurement_settings
from src.videoqoe.application.result_builder import ResultBuilder
from src.videoqoe.domain.events.video_event import EventType
from src.videoqoe.domain.exceptions import MeasurementInterruptedError
from src.videoqoe.domain.models.measurement_desc import (
    VIDEO_QOE_DESCRIPTOR,
    VIDEO_QOE_TYPE,
    MeasurementDescriptor,
    VideoQoEDescriptor,
)
from src.videoqoe.domain.models.measurement_result import MeasurementResult
from src.videoqoe.domain.models.task_state import ContentType, TaskProgress, TaskState
from src.videoqoe.domain.models.telemetry import TelemetryAccumulator
from src.videoqoe.domain.repositories import (
    DeviceInfoProvider,
    ExternalWorkerHandle,
    NotificationCallback,
    NotificationChannel,
    Subscription,
)

logger = logging.getLogger(__name__)


@contextmanager
def subscribed(
    channel: NotificationChannel,
    category: EventType,
    callback: NotificationCallback,
    *,
    task_key: str | None = None,
) -> Iterator[Subscription]:
    """Subscribe for the duration of the ``with`` block."""
    subscription = channel.subscribe(category, callback, task_key=task_key)
    try:
        yield subscription
    finally:
        channel.unsubscribe(subscription)


def _now_micros() -> int:
    return time.time_ns() // 1_000


class VideoQoETask:
    """
    Measure user-perceived video QoE by driving a background video player.

    A run starts the player, listens for its telemetry notifications and
    resolves to a single result: COMPLETED once any notification arrives, or
    FAILED when ``MAX_POLLS * POLL_INTERVAL_SEC`` elapse without one.
    """

    TYPE = VIDEO_QOE_TYPE
    DESCRIPTOR = VIDEO_QOE_DESCRIPTOR

    def __init__(
        self,
        descriptor: MeasurementDescriptor,
        *,
        worker: ExternalWorkerHandle | None = None,
        channel: NotificationChannel | None = None,
        device_info: DeviceInfoProvider | None = None,
        settings: MeasurementSettings | None = None,
        result_builder: ResultBuilder | None = None,
    ) -> None:
        if not isinstance(descriptor, VideoQoEDescriptor):
            descriptor = VideoQoEDescriptor.from_descriptor(descriptor)
        self._descriptor: MeasurementDescriptor = descriptor
        self._worker = worker or inject.instance(ExternalWorkerHandle)
        self._channel = channel or inject.instance(NotificationChannel)
        self._device_info = device_info or inject.instance(DeviceInfoProvider)
        self._settings = settings or get_measurement_settings()
        self._builder = result_builder or ResultBuilder(self.TYPE)
        self._state = TaskState.CREATED
        self._state_lock = threading.Lock()
        self._duration = 0

    @property
    def descriptor(self) -> MeasurementDescriptor:
        return self._descriptor

    @property
    def key(self) -> str | None:
        return self._descriptor.key

    @property
    def state(self) -> TaskState:
        with self._state_lock:
            return self._state

    def run(self, cancel_event: threading.Event | None = None) -> list[MeasurementResult]:
        """
        Execute one measurement and return exactly one result.

        Raises ``MeasurementInterruptedError`` when ``cancel_event`` is set
        before the wait resolves. The notification subscription is released
        on every exit path.
        """
        descriptor = self._descriptor
        if not isinstance(descriptor, VideoQoEDescriptor):
            raise TypeError(f"{self.DESCRIPTOR} task requires a VideoQoEDescriptor")

        self._begin()
        logger.info("Video QoE: measurement started", extra={"task_key": descriptor.key})
        accumulator = TelemetryAccumulator()
        try:
            self._start_worker(descriptor)
            with subscribed(
                self._channel,
                EventType.VIDEO_MEASUREMENT_UPDATE,
                accumulator.apply,
                task_key=descriptor.key,
            ):
                received = self._wait_for_result(accumulator, cancel_event)

            self._set_state(TaskState.COMPLETED if received else TaskState.TIMED_OUT)
            result = self._build_result(descriptor, accumulator, received)
        except BaseException:
            self._set_state(TaskState.DONE)
            raise

        self._set_state(TaskState.DONE)
        return [result]

    async def run_async(self) -> list[MeasurementResult]:
        """Run in a worker thread; cancelling the awaiting task interrupts the wait."""
        cancel_event = threading.Event()
        try:
            return await asyncio.to_thread(self.run, cancel_event)
        except asyncio.CancelledError:
            cancel_event.set()
            raise

    def stop(self) -> bool:
        # The player cannot be interrupted safely once it has started.
        return False

    def get_duration(self) -> int:
        return self._duration

    def set_duration(self, new_duration: int) -> None:
        self._duration = max(new_duration, 0)

    def get_type(self) -> str:
        return self.TYPE

    def get_descriptor(self) -> str:
        return self.DESCRIPTOR

    def get_data_consumed(self) -> int:
        return 0

    def clone(self) -> VideoQoETask:
        return VideoQoETask(
            self._descriptor.clone(),
            worker=self._worker,
            channel=self._channel,
            device_info=self._device_info,
            settings=self._settings,
            result_builder=self._builder,
        )

    def _begin(self) -> None:
        with self._state_lock:
            if self._state is TaskState.RUNNING:
                raise RuntimeError(f"Task '{self._descriptor.key}' is already running.")
            self._state = TaskState.RUNNING

    def _set_state(self, state: TaskState) -> None:
        with self._state_lock:
            self._state = state

    def _start_worker(self, descriptor: VideoQoEDescriptor) -> None:
        # Start failures are not observable as an outcome; the deadline is the backstop.
        try:
            self._worker.start(
                descriptor.manifest_url,
                descriptor.content_id,
                ContentType.DASH_VOD,
                abr_type=descriptor.abr_type,
                task_key=descriptor.key,
            )
        except Exception:
            logger.exception(
                "Video QoE: failed to start video player",
                extra={"task_key": descriptor.key},
            )

    def _wait_for_result(
        self,
        accumulator: TelemetryAccumulator,
        cancel_event: threading.Event | None,
    ) -> bool:
        for _ in range(self._settings.MAX_POLLS):
            if accumulator.wait_for_result(self._settings.POLL_INTERVAL_SEC):
                return True
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(
                    "Video QoE: measurement interrupted",
                    extra={"task_key": self._descriptor.key},
                )
                raise MeasurementInterruptedError(self._descriptor.key)
        return accumulator.result_received

    def _build_result(
        self,
        descriptor: VideoQoEDescriptor,
        accumulator: TelemetryAccumulator,
        received: bool,
    ) -> MeasurementResult:
        if received:
            logger.info("Video QoE: successfully measured QoE data", extra={"task_key": descriptor.key})
            outcome = TaskProgress.COMPLETED
        else:
            logger.info(
                "Video QoE: video measurement not finished",
                extra={"task_key": descriptor.key, "timeout_sec": self._settings.timeout_sec},
            )
            outcome = TaskProgress.FAILED

        result = self._builder.build(
            outcome,
            descriptor,
            accumulator.snapshot(),
            self._device_info.device_id(),
            self._device_info.device_properties(descriptor.key),
            _now_micros(),
        )
        logger.info(result.to_json())
        return result
