from __future__ import annotations

from typing import Any

from src.setup.measurement_config import MeasurementSettings, get_measurement_settings


class StaticDeviceInfoProvider:
    """Device metadata taken from the measurement settings."""

    def __init__(self, settings: MeasurementSettings | None = None) -> None:
        self._settings = settings or get_measurement_settings()

    def device_id(self) -> str:
        return self._settings.DEVICE_ID

    def device_properties(self, task_key: str | None) -> dict[str, Any]:
        properties = dict(self._settings.DEVICE_PROPERTIES)
        properties["task_key"] = task_key
        return properties
