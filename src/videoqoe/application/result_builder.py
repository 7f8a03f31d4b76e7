from __future__ import annotations

from typing import Any

from src.videoqoe.domain.models.measurement_desc import VIDEO_QOE_TYPE, MeasurementDescriptor
from src.videoqoe.domain.models.measurement_result import MeasurementResult
from src.videoqoe.domain.models.task_state import TaskProgress
from src.videoqoe.domain.models.telemetry import QoETelemetry

ERROR_KEY = "error"
TIMEOUT_MESSAGE = "measurement timeout"


class ResultBuilder:
    """Assemble measurement results from collected telemetry."""

    def __init__(self, task_type: str = VIDEO_QOE_TYPE) -> None:
        self._task_type = task_type

    def build(
        self,
        outcome: TaskProgress,
        descriptor: MeasurementDescriptor,
        telemetry: QoETelemetry,
        device_id: str,
        device_properties: dict[str, Any],
        timestamp: int,
    ) -> MeasurementResult:
        """
        Build the result for one run.

        COMPLETED results carry every telemetry metric; FAILED results carry
        only the ``error`` entry.
        """
        if outcome is TaskProgress.COMPLETED:
            values = telemetry.metrics()
        else:
            values = {ERROR_KEY: TIMEOUT_MESSAGE}

        return MeasurementResult(
            device_id=device_id,
            device_properties=dict(device_properties),
            type=self._task_type,
            timestamp=timestamp,
            task_progress=outcome,
            parameters=descriptor,
            values=values,
        )
