from src.videoqoe.infrastructure.streams.channel import StreamsNotificationChannel
from src.videoqoe.infrastructure.streams.client import StreamsClient
from src.videoqoe.infrastructure.streams.publisher import VideoMeasurementPublisher

__all__ = [
    "StreamsClient",
    "StreamsNotificationChannel",
    "VideoMeasurementPublisher",
]
