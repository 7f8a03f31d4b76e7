from src.videoqoe.infrastructure.celery.task_registry import TaskRegistry, TaskRoute
from src.videoqoe.infrastructure.celery.worker_handle import CeleryVideoPlayerHandle

__all__ = ["CeleryVideoPlayerHandle", "TaskRegistry", "TaskRoute"]
