from __future__ import annotations

import logging

from redis import ConnectionPool, Redis

logger = logging.getLogger(__name__)

STREAM_START_ID = "0-0"


class StreamsClient:
    def __init__(
        self,
        url: str,
        *,
        max_connections: int = 10,
        socket_timeout: float = 5.0,
        socket_connect_timeout: float = 5.0,
        retry_on_timeout: bool = True,
    ) -> None:
        pool = ConnectionPool.from_url(
            url,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_connect_timeout,
            retry_on_timeout=retry_on_timeout,
            decode_responses=True,
        )
        self._redis = Redis(connection_pool=pool)

    @property
    def redis(self) -> Redis:
        return self._redis

    def last_entry_id(self, stream: str) -> str:
        """Return the id of the newest entry in ``stream``, or the stream start."""
        entries = self._redis.xrevrange(stream, count=1)
        if not entries:
            return STREAM_START_ID
        entry_id, _ = entries[0]
        return entry_id

    def close(self) -> None:
        self._redis.close()
