class InvalidConfigurationError(ValueError):
    """Raised when a measurement descriptor cannot be built from its parameters."""

    def __init__(self, task_type: str, reason: str) -> None:
        super().__init__(f"{task_type} task cannot be created: {reason}")
        self.task_type = task_type
        self.reason = reason


class MeasurementInterruptedError(Exception):
    """Raised when a running measurement is cancelled before it resolves."""

    def __init__(self, task_key: str | None) -> None:
        super().__init__(f"Measurement '{task_key}' was interrupted.")
        self.task_key = task_key
