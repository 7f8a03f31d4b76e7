from src.videoqoe.domain.events.video_event import EventType, VideoMeasurementEvent

__all__ = ["EventType", "VideoMeasurementEvent"]
