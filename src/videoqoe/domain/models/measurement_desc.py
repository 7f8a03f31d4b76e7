from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.videoqoe.domain.exceptions import InvalidConfigurationError

VIDEO_QOE_TYPE = "video_qoe"
VIDEO_QOE_DESCRIPTOR = "VIDEOQOE"

PARAM_MANIFEST_URL = "manifestURL"
PARAM_CONTENT_ID = "contentId"
PARAM_ABR_TYPE = "ABRType"


class MeasurementDescriptor(BaseModel):
    """Scheduling envelope shared by every measurement type."""

    type: str = Field(description="Measurement type tag.")
    key: str | None = Field(default=None, description="Identifier of the task instance.")
    start_time: datetime | None = Field(default=None, description="Start of the validity window.")
    end_time: datetime | None = Field(default=None, description="End of the validity window.")
    interval_sec: float = Field(default=0.0, description="Sampling interval in seconds.")
    count: int = Field(default=0, description="Number of repetitions.")
    priority: int = Field(default=0, description="Scheduling priority.")
    context_interval_sec: int = Field(
        default=0, description="Interval between device context samples."
    )
    parameters: dict[str, str] | None = Field(
        default=None, description="Task-specific string parameters."
    )

    model_config = ConfigDict(frozen=True)

    def clone(self) -> MeasurementDescriptor:
        return self.model_copy(deep=True)


class VideoQoEDescriptor(MeasurementDescriptor):
    type: str = Field(default=VIDEO_QOE_TYPE, description="Measurement type tag.")
    manifest_url: str = Field(description="URL of the adaptive-streaming manifest.")
    content_id: str | None = Field(default=None, description="Content identifier of the video.")
    abr_type: int = Field(default=0, description="ABR algorithm selector, 0 when unset.")

    @classmethod
    def create(
        cls,
        key: str | None,
        start_time: datetime | None,
        end_time: datetime | None,
        interval_sec: float,
        count: int,
        priority: int,
        context_interval_sec: int,
        params: Mapping[str, str] | None,
    ) -> VideoQoEDescriptor:
        """
        Build a video descriptor from the generic envelope and its parameters.

        ``manifestURL`` is the only mandatory parameter; ``ABRType`` is kept
        only when it parses to a strictly positive integer.
        """
        parameters = dict(params) if params is not None else None
        values = parameters or {}

        manifest_url = values.get(PARAM_MANIFEST_URL)
        if not manifest_url:
            raise InvalidConfigurationError(
                VIDEO_QOE_DESCRIPTOR, "null or empty video manifest url string"
            )

        return cls(
            key=key,
            start_time=start_time,
            end_time=end_time,
            interval_sec=interval_sec,
            count=count,
            priority=priority,
            context_interval_sec=context_interval_sec,
            parameters=parameters,
            manifest_url=manifest_url,
            content_id=values.get(PARAM_CONTENT_ID),
            abr_type=_parse_abr_type(values.get(PARAM_ABR_TYPE)),
        )

    @classmethod
    def from_descriptor(cls, desc: MeasurementDescriptor) -> VideoQoEDescriptor:
        return cls.create(
            desc.key,
            desc.start_time,
            desc.end_time,
            desc.interval_sec,
            desc.count,
            desc.priority,
            desc.context_interval_sec,
            desc.parameters,
        )

    def clone(self) -> VideoQoEDescriptor:
        return VideoQoEDescriptor.from_descriptor(self)


def _parse_abr_type(raw: str | None) -> int:
    if raw is None:
        return 0
    try:
        value = int(raw)
    except ValueError as exc:
        raise InvalidConfigurationError(
            VIDEO_QOE_DESCRIPTOR, f"{PARAM_ABR_TYPE} must be an integer, got {raw!r}"
        ) from exc
    return value if value > 0 else 0
