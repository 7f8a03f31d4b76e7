from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from src.videoqoe.domain.events.video_event import EventType
from src.videoqoe.domain.repositories import NotificationCallback, Subscription

logger = logging.getLogger(__name__)


class LocalNotificationChannel:
    """In-process notification channel dispatching payloads to subscribers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: dict[EventType, dict[str, Subscription]] = {}

    def subscribe(
        self,
        category: EventType,
        callback: NotificationCallback,
        *,
        task_key: str | None = None,
    ) -> Subscription:
        subscription = Subscription(category=category, callback=callback, task_key=task_key)
        with self._lock:
            self._subscriptions.setdefault(category, {})[subscription.subscription_id] = subscription
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscriptions = self._subscriptions.get(subscription.category, {})
            removed = subscriptions.pop(subscription.subscription_id, None)
            if not subscriptions:
                self._subscriptions.pop(subscription.category, None)
        if removed is None:
            logger.warning(
                "Unsubscribe requested for unknown subscription",
                extra={"category": subscription.category, "subscription_id": subscription.subscription_id},
            )

    def subscriber_count(self, category: EventType | None = None) -> int:
        with self._lock:
            if category is not None:
                return len(self._subscriptions.get(category, {}))
            return sum(len(subs) for subs in self._subscriptions.values())

    def publish(
        self,
        category: EventType,
        payload: Mapping[str, Any],
        *,
        task_key: str | None = None,
    ) -> int:
        """
        Deliver ``payload`` to the subscribers of ``category`` that accept
        ``task_key``; return how many were called.
        """
        with self._lock:
            subscriptions = [
                subscription
                for subscription in self._subscriptions.get(category, {}).values()
                if subscription.accepts(task_key)
            ]
        if not subscriptions:
            logger.warning(
                "No subscriber registered for event type",
                extra={"type": category, "task_key": task_key},
            )
            return 0
        for subscription in subscriptions:
            subscription.callback(payload)
        return len(subscriptions)
