from src.videoqoe.infrastructure.notifications.local import LocalNotificationChannel

__all__ = ["LocalNotificationChannel"]
