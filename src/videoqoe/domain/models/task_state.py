from enum import Enum


class TaskState(str, Enum):
    """Lifecycle of a single measurement run."""

    CREATED = "CREATED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    TIMED_OUT = "TIMED_OUT"
    DONE = "DONE"


class TaskProgress(str, Enum):
    """Outcome recorded on a measurement result."""

    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ContentType(str, Enum):
    """Kind of stream the video player is asked to play."""

    DASH_VOD = "dash_vod"
    DASH_LIVE = "dash_live"
