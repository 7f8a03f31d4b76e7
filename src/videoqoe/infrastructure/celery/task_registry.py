from dataclasses import dataclass

from src.setup.celery_config import get_celery_settings
from src.videoqoe.domain.models.measurement_desc import VIDEO_QOE_TYPE


@dataclass(frozen=True)
class TaskRoute:
    task_type: str
    celery_task: str
    queue: str | None = None


class TaskRegistry:
    """Registry mapping measurement types to the Celery task that plays their content."""

    def __init__(self, video_queue: str | None = None) -> None:
        if video_queue is None:
            video_queue = get_celery_settings().VIDEO_PLAYER_QUEUE
        self._registry: dict[str, TaskRoute] = {
            VIDEO_QOE_TYPE: TaskRoute(
                task_type=VIDEO_QOE_TYPE,
                celery_task="video_player",
                queue=video_queue,
            ),
        }

    def route_for_task_type(self, task_type: str) -> TaskRoute:
        try:
            return self._registry[task_type]
        except KeyError as exc:
            raise ValueError(f"No task route registered for task type {task_type!r}") from exc
