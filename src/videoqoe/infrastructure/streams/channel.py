from __future__ import annotations

import logging
import threading
from typing import Any

from redis.exceptions import RedisError

from src.videoqoe.domain.events.video_event import EventType
from src.videoqoe.domain.repositories import NotificationCallback, Subscription
from src.videoqoe.infrastructure.notifications.local import LocalNotificationChannel
from src.videoqoe.infrastructure.streams.client import StreamsClient
from src.videoqoe.infrastructure.streams.serializers import decode_event

logger = logging.getLogger(__name__)


class StreamsNotificationChannel(LocalNotificationChannel):
    """
    Notification channel fed by a Redis stream.

    A listener thread runs while at least one subscription is active. It only
    sees entries appended after it started and dispatches each decoded event's
    payload to the subscribers of the event type that accept its task key.
    Subscribing, unsubscribing and the listener start/stop decision share one
    lock, so a subscription never ends up without a running listener.
    """

    def __init__(
        self,
        client: StreamsClient,
        stream: str,
        *,
        block_ms: int = 1000,
        count: int = 10,
        error_backoff_sec: float = 1.0,
    ) -> None:
        super().__init__()
        self._client = client
        self._stream = stream
        self._block_ms = block_ms
        self._count = count
        self._error_backoff_sec = error_backoff_sec
        self._listener: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._listener_lock = threading.Lock()

    @property
    def listening(self) -> bool:
        with self._listener_lock:
            return self._listener is not None and self._listener.is_alive()

    def subscribe(
        self,
        category: EventType,
        callback: NotificationCallback,
        *,
        task_key: str | None = None,
    ) -> Subscription:
        with self._listener_lock:
            subscription = super().subscribe(category, callback, task_key=task_key)
            try:
                self._start_listener_locked()
            except RedisError:
                super().unsubscribe(subscription)
                raise
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._listener_lock:
            super().unsubscribe(subscription)
            listener = None
            if self.subscriber_count() == 0:
                listener = self._detach_listener_locked()
        self._join(listener)

    def close(self) -> None:
        with self._listener_lock:
            listener = self._detach_listener_locked()
        self._join(listener)

    def _start_listener_locked(self) -> None:
        if self._listener is not None and self._listener.is_alive():
            return
        last_id = self._client.last_entry_id(self._stream)
        self._stop_event = threading.Event()
        self._listener = threading.Thread(
            target=self._listen,
            args=(last_id, self._stop_event),
            name=f"streams-listener-{self._stream}",
            daemon=True,
        )
        self._listener.start()
        logger.info("Listening for video measurement events", extra={"stream": self._stream, "from_id": last_id})

    def _detach_listener_locked(self) -> threading.Thread | None:
        listener = self._listener
        self._listener = None
        self._stop_event.set()
        return listener

    def _join(self, listener: threading.Thread | None) -> None:
        # Joining happens outside the lock; a callback may unsubscribe from the listener thread.
        if listener is not None and listener is not threading.current_thread():
            listener.join(timeout=self._block_ms / 1000 + 1.0)

    def _listen(self, last_id: str, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                response = self._client.redis.xread(
                    {self._stream: last_id},
                    count=self._count,
                    block=self._block_ms,
                )
            except Exception:
                logger.exception("Failed to read video measurement stream", extra={"stream": self._stream})
                stop_event.wait(self._error_backoff_sec)
                continue

            for _stream, entries in response or []:
                for entry_id, fields in entries:
                    last_id = entry_id
                    if stop_event.is_set():
                        return
                    self._dispatch(entry_id, fields)

    def _dispatch(self, entry_id: str, fields: dict[str, Any]) -> None:
        try:
            event = decode_event(fields)
        except ValueError:
            logger.warning(
                "Skipping undecodable stream entry",
                extra={"stream": self._stream, "entry_id": entry_id},
            )
            return
        try:
            self.publish(event.type, event.payload, task_key=event.task_key)
        except Exception:
            logger.exception(
                "Subscriber failed to handle video measurement event",
                extra={"stream": self._stream, "entry_id": entry_id},
            )
