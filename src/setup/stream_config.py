from pydantic import ConfigDict
from pydantic_settings import BaseSettings

from src.videoqoe.infrastructure.streams.channel import StreamsNotificationChannel
from src.videoqoe.infrastructure.streams.client import StreamsClient
from src.videoqoe.infrastructure.streams.publisher import VideoMeasurementPublisher

STREAM_VIDEO_EVENTS = "video-measurement-events"

_stream_channel: StreamsNotificationChannel | None = None
_stream_publisher: VideoMeasurementPublisher | None = None


class StreamSettings(BaseSettings):
    """Configuration for the Redis Streams notification channel."""
    REDIS_URL: str = "redis://redis:6379/0"
    STREAM_NAME: str = STREAM_VIDEO_EVENTS
    BLOCK_MS: int = 1000
    COUNT: int = 10
    ERROR_BACKOFF_SEC: float = 1.0

    model_config = ConfigDict(env_file=".env", extra="ignore")


def build_stream_channel(settings: StreamSettings | None = None) -> StreamsNotificationChannel:
    """Create a notification channel listening on the configured stream."""
    if settings is None:
        settings = StreamSettings()
    client = StreamsClient(settings.REDIS_URL)
    return StreamsNotificationChannel(
        client,
        settings.STREAM_NAME,
        block_ms=settings.BLOCK_MS,
        count=settings.COUNT,
        error_backoff_sec=settings.ERROR_BACKOFF_SEC,
    )


def build_stream_publisher(settings: StreamSettings | None = None) -> VideoMeasurementPublisher:
    """Create a publisher for player-side event emission."""
    if settings is None:
        settings = StreamSettings()
    client = StreamsClient(settings.REDIS_URL)
    return VideoMeasurementPublisher(client, settings.STREAM_NAME)


def configure_stream_channel(settings: StreamSettings | None = None) -> StreamsNotificationChannel:
    """Return the singleton notification channel used by measurement tasks."""
    global _stream_channel
    if _stream_channel is None:
        _stream_channel = build_stream_channel(settings)
    return _stream_channel


def configure_stream_publisher(settings: StreamSettings | None = None) -> VideoMeasurementPublisher:
    """Return the singleton publisher used by the video player."""
    global _stream_publisher
    if _stream_publisher is None:
        _stream_publisher = build_stream_publisher(settings)
    return _stream_publisher
