import inject

from src.setup.measurement_config import get_measurement_settings
from src.setup.stream_config import configure_stream_channel, configure_stream_publisher
from src.videoqoe.domain.repositories import (
    DeviceInfoProvider,
    ExternalWorkerHandle,
    NotificationChannel,
)
from src.videoqoe.infrastructure.celery.worker_handle import CeleryVideoPlayerHandle
from src.videoqoe.infrastructure.device import StaticDeviceInfoProvider
from src.videoqoe.infrastructure.streams.publisher import VideoMeasurementPublisher


def _bindings(binder: inject.Binder) -> None:
    binder.bind_to_provider(NotificationChannel, configure_stream_channel)
    binder.bind_to_provider(VideoMeasurementPublisher, configure_stream_publisher)
    binder.bind_to_constructor(ExternalWorkerHandle, CeleryVideoPlayerHandle)
    binder.bind_to_constructor(
        DeviceInfoProvider, lambda: StaticDeviceInfoProvider(get_measurement_settings())
    )


def configure_di() -> None:
    """Configure the injector once; later calls keep the existing bindings."""
    inject.configure(_bindings, once=True)
