from src.videoqoe.domain.models.measurement_desc import (
    VIDEO_QOE_DESCRIPTOR,
    VIDEO_QOE_TYPE,
    MeasurementDescriptor,
    VideoQoEDescriptor,
)
from src.videoqoe.domain.models.measurement_result import MeasurementResult
from src.videoqoe.domain.models.task_state import ContentType, TaskProgress, TaskState
from src.videoqoe.domain.models.telemetry import (
    QoETelemetry,
    QoETelemetryUpdate,
    TelemetryAccumulator,
)

__all__ = [
    "VIDEO_QOE_TYPE",
    "VIDEO_QOE_DESCRIPTOR",
    "MeasurementDescriptor",
    "VideoQoEDescriptor",
    "MeasurementResult",
    "ContentType",
    "TaskProgress",
    "TaskState",
    "QoETelemetry",
    "QoETelemetryUpdate",
    "TelemetryAccumulator",
]
