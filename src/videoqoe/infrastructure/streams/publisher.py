from __future__ import annotations

from typing import Iterable, Sequence

from src.videoqoe.domain.events.video_event import VideoMeasurementEvent
from src.videoqoe.infrastructure.streams.client import StreamsClient
from src.videoqoe.infrastructure.streams.serializers import encode_event


class VideoMeasurementPublisher:
    def __init__(self, client: StreamsClient, stream: str) -> None:
        self._client = client
        self._stream = stream

    def publish(
        self,
        events: VideoMeasurementEvent | Sequence[VideoMeasurementEvent],
        *,
        maxlen: int | None = None,
        approximate: bool = True,
    ) -> None:
        batch: Iterable[VideoMeasurementEvent]
        if isinstance(events, VideoMeasurementEvent):
            batch = [events]
        else:
            batch = events

        for event in batch:
            self._client.redis.xadd(
                self._stream,
                encode_event(event),
                maxlen=maxlen,
                approximate=approximate,
            )
