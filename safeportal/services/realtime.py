"""
ChangeFeed - in-process publish/subscribe for table change notifications.

Services publish one ChangeEvent after each committed insert/update/delete on
a realtime table. Every websocket subscription owns a queue; the queue is
removed when the socket goes away. Subscribers are expected to re-fetch the
rows they display rather than patch them from the event.
"""

import asyncio
import uuid
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Optional, Set

import structlog

logger = structlog.get_logger()

REALTIME_TABLES = ("sos_alerts", "forum_posts", "forum_comments")


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    type: str  # INSERT | UPDATE | DELETE
    record_id: uuid.UUID
    owner_id: Optional[uuid.UUID] = None

    def to_message(self) -> dict:
        return {"table": self.table, "type": self.type, "id": str(self.record_id)}


class ChangeFeed:

    def __init__(self, max_queue_size: int = 100):
        self._subscribers: Dict[str, Set[asyncio.Queue]] = defaultdict(set)
        self._max_queue_size = max_queue_size

    def subscribe(self, table: str) -> asyncio.Queue:
        if table not in REALTIME_TABLES:
            raise ValueError(f"{table} is not published")
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        self._subscribers[table].add(queue)
        return queue

    def unsubscribe(self, table: str, queue: asyncio.Queue) -> None:
        self._subscribers[table].discard(queue)

    def subscriber_count(self, table: str) -> int:
        return len(self._subscribers[table])

    async def publish(self, event: ChangeEvent) -> None:
        for queue in list(self._subscribers[event.table]):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                # A stalled client only misses events; it re-fetches on the next one.
                logger.warning("realtime_queue_full", table=event.table)


change_feed = ChangeFeed()
