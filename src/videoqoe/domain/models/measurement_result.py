from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny

from src.videoqoe.domain.models.measurement_desc import MeasurementDescriptor
from src.videoqoe.domain.models.task_state import TaskProgress


class MeasurementResult(BaseModel):
    device_id: str = Field(description="Identifier of the measuring device.")
    device_properties: dict[str, Any] = Field(
        default_factory=dict, description="Device metadata snapshot for the task."
    )
    type: str = Field(description="Measurement type tag.")
    timestamp: int = Field(description="Build time in microseconds since epoch.")
    task_progress: TaskProgress = Field(description="Outcome of the measurement.")
    parameters: SerializeAsAny[MeasurementDescriptor] = Field(
        description="Descriptor the measurement ran with."
    )
    values: dict[str, Any] = Field(
        default_factory=dict, description="Collected metrics keyed by name."
    )

    model_config = ConfigDict(frozen=True)

    @property
    def succeeded(self) -> bool:
        return self.task_progress is TaskProgress.COMPLETED

    def to_json(self) -> str:
        return self.model_dump_json()
