from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

IS_SUCCEED = "isSucceed"
NUM_FRAME_DROPPED = "numFrameDropped"
INITIAL_LOADING_TIME = "initialLoadingTime"
REBUFFER_TIME = "rebufferTime"
GOODPUT_TIMESTAMP = "goodputTimestamp"
GOODPUT_VALUE = "goodputValue"
BITRATE_TIMESTAMP = "bitrateTimestamp"
BITRATE_VALUE = "bitrateValue"


class QoETelemetry(BaseModel):
    """Point-in-time copy of the QoE metrics collected for one run."""

    is_succeed: bool = Field(default=False, alias=IS_SUCCEED)
    num_frame_dropped: int = Field(default=0, alias=NUM_FRAME_DROPPED)
    initial_loading_time: float = Field(
        default=0.0, alias=INITIAL_LOADING_TIME, description="Startup delay in seconds."
    )
    rebuffer_time: list[float] = Field(
        default_factory=list, alias=REBUFFER_TIME, description="Stall durations in seconds."
    )
    goodput_timestamp: list[str] = Field(default_factory=list, alias=GOODPUT_TIMESTAMP)
    goodput_value: list[float] = Field(default_factory=list, alias=GOODPUT_VALUE)
    bitrate_timestamp: list[str] = Field(default_factory=list, alias=BITRATE_TIMESTAMP)
    bitrate_value: list[int] = Field(default_factory=list, alias=BITRATE_VALUE)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def metrics(self) -> dict[str, Any]:
        """Return the metrics keyed by their wire names."""
        return self.model_dump(by_alias=True)


class QoETelemetryUpdate(BaseModel):
    """Partial telemetry carried by a single notification."""

    is_succeed: bool | None = Field(default=None, alias=IS_SUCCEED)
    num_frame_dropped: int | None = Field(default=None, alias=NUM_FRAME_DROPPED)
    initial_loading_time: float | None = Field(default=None, alias=INITIAL_LOADING_TIME)
    rebuffer_time: list[float] | None = Field(default=None, alias=REBUFFER_TIME)
    goodput_timestamp: list[str] | None = Field(default=None, alias=GOODPUT_TIMESTAMP)
    goodput_value: list[float] | None = Field(default=None, alias=GOODPUT_VALUE)
    bitrate_timestamp: list[str] | None = Field(default=None, alias=BITRATE_TIMESTAMP)
    bitrate_value: list[int] | None = Field(default=None, alias=BITRATE_VALUE)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class TelemetryAccumulator:
    """
    Thread-safe buffer merging partial QoE notifications.

    Every field is last-write-wins: scalars are overwritten and sequences are
    replaced wholesale. Fields missing from a notification keep their value.
    Each recognised field is validated on its own, so a malformed value only
    drops that field. Any notification, even an empty or malformed one, marks
    the result as received.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._values: dict[str, Any] = QoETelemetry().model_dump()
        self._result_received = False

    @property
    def result_received(self) -> bool:
        with self._condition:
            return self._result_received

    def apply(self, payload: Mapping[str, Any]) -> None:
        changes: dict[str, Any] = {}
        for field_info in QoETelemetryUpdate.model_fields.values():
            if field_info.alias not in payload:
                continue
            try:
                update = QoETelemetryUpdate.model_validate(
                    {field_info.alias: payload[field_info.alias]}
                )
            except ValidationError as exc:
                logger.warning(
                    "Discarding malformed video measurement field",
                    extra={"field": field_info.alias, "errors": exc.errors(include_url=False)},
                )
                continue
            changes.update(update.changes())

        with self._condition:
            self._values.update(changes)
            self._result_received = True
            self._condition.notify_all()

        logger.debug("Video QoE: result received", extra={"fields": sorted(changes)})

    def wait_for_result(self, timeout: float | None) -> bool:
        """Block until a notification arrives or ``timeout`` seconds pass."""
        with self._condition:
            return self._condition.wait_for(lambda: self._result_received, timeout)

    def snapshot(self) -> QoETelemetry:
        with self._condition:
            telemetry = QoETelemetry(**self._values)

        for timestamps, values in (
            (telemetry.goodput_timestamp, telemetry.goodput_value),
            (telemetry.bitrate_timestamp, telemetry.bitrate_value),
        ):
            if len(timestamps) != len(values):
                logger.warning(
                    "Telemetry timestamp/value sequences are misaligned",
                    extra={"timestamps": len(timestamps), "values": len(values)},
                )
        return telemetry
