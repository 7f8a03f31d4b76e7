from typing import Any

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class MeasurementSettings(BaseSettings):
    """Configuration for the video QoE wait loop and result stamping."""
    POLL_INTERVAL_SEC: float = 1.0
    MAX_POLLS: int = 300
    DEVICE_ID: str = "unknown-device"
    DEVICE_PROPERTIES: dict[str, Any] = {}

    model_config = ConfigDict(env_file=".env", extra="ignore")

    @property
    def timeout_sec(self) -> float:
        return self.POLL_INTERVAL_SEC * self.MAX_POLLS


def get_measurement_settings() -> MeasurementSettings:
    """Return a fresh measurement settings instance."""
    return MeasurementSettings()
