from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol
from uuid import uuid4

from src.videoqoe.domain.events.video_event import EventType
from src.videoqoe.domain.models.task_state import ContentType

NotificationCallback = Callable[[Mapping[str, Any]], None]


@dataclass(frozen=True)
class Subscription:
    """Handle returned by ``NotificationChannel.subscribe``."""

    category: EventType
    callback: NotificationCallback = field(compare=False)
    task_key: str | None = None
    subscription_id: str = field(default_factory=lambda: uuid4().hex)

    def accepts(self, task_key: str | None) -> bool:
        """Untagged subscriptions and untagged events match everything."""
        return self.task_key is None or task_key is None or self.task_key == task_key


class NotificationChannel(Protocol):
    """Contract for delivering player notifications to listeners."""

    def subscribe(
        self,
        category: EventType,
        callback: NotificationCallback,
        *,
        task_key: str | None = None,
    ) -> Subscription:
        """Register ``callback`` for payloads published under ``category`` for ``task_key``."""

    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop delivering payloads to the subscription's callback."""


class ExternalWorkerHandle(Protocol):
    """Contract for the out-of-process video player."""

    def start(
        self,
        manifest_url: str,
        content_id: str | None,
        content_type: ContentType,
        *,
        abr_type: int = 0,
        task_key: str | None = None,
    ) -> None:
        """Ask the player to start playing; does not wait for an acknowledgement."""

    def stop(self) -> bool:
        """Ask the player to stop; return whether anything was stopped."""


class DeviceInfoProvider(Protocol):
    """Contract for the device metadata stamped on results."""

    def device_id(self) -> str:
        """Return the identifier of the measuring device."""

    def device_properties(self, task_key: str | None) -> dict[str, Any]:
        """Return the device metadata snapshot for the task identified by ``task_key``."""
