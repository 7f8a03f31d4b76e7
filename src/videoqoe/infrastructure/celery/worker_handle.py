from __future__ import annotations

import logging
import threading

from src.videoqoe.domain.models.measurement_desc import VIDEO_QOE_TYPE
from src.videoqoe.domain.models.task_state import ContentType
from src.videoqoe.infrastructure.celery.app import celery_app
from src.videoqoe.infrastructure.celery.task_registry import TaskRegistry

logger = logging.getLogger(__name__)


class CeleryVideoPlayerHandle:
    """
    Start the playback worker by sending its Celery task.

    Dispatch is fire-and-forget: ``start`` returns once the message is sent.
    """

    def __init__(self, celery_app_instance=celery_app, registry: TaskRegistry | None = None) -> None:
        self._celery_app = celery_app_instance
        self._registry = registry or TaskRegistry()
        self._lock = threading.Lock()
        self._active_id: str | None = None

    @property
    def active_id(self) -> str | None:
        with self._lock:
            return self._active_id

    def start(
        self,
        manifest_url: str,
        content_id: str | None,
        content_type: ContentType,
        *,
        abr_type: int = 0,
        task_key: str | None = None,
    ) -> None:
        route = self._registry.route_for_task_type(VIDEO_QOE_TYPE)
        message = {
            "manifest_url": manifest_url,
            "content_id": content_id,
            "content_type": content_type.value,
            "abr_type": abr_type,
            "task_key": task_key,
        }
        async_result = self._celery_app.send_task(
            route.celery_task,
            args=[message],
            queue=route.queue,
        )
        with self._lock:
            self._active_id = async_result.id
        logger.info(
            "Video player task dispatched",
            extra={"celery_task_id": async_result.id, "queue": route.queue, "task_key": task_key},
        )

    def stop(self) -> bool:
        with self._lock:
            task_id = self._active_id
            self._active_id = None
        if task_id is None:
            return False
        self._celery_app.control.revoke(task_id, terminate=True)
        logger.info("Video player task revoked", extra={"celery_task_id": task_id})
        return True
