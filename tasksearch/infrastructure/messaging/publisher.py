"""Index event publisher over Redis Streams.

Entity writes call publish() and return immediately; delivery happens in
a background task on the running loop. Delivery failures are logged and
swallowed so indexing problems never fail the write that caused them.
"""

from __future__ import annotations

import asyncio
import json
import logging

import redis.asyncio as redis

from tasksearch.core.constants import TOPIC_BATCH_EVENTS
from tasksearch.domain.enums import EntityType, IndexEventType
from tasksearch.domain.events import IndexEvent
from tasksearch.infrastructure.cache.redis_connection import RedisConnection
from tasksearch.infrastructure.messaging.streams import (
    PAYLOAD_FIELD,
    partition_for,
    stream_name,
)

logger = logging.getLogger(__name__)


class RedisStreamPublisher(RedisConnection):
    """Appends index events to per-topic partitioned streams."""

    component = "Index event publisher"

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        """Initialize. Pass redis_client for DI/testing."""
        super().__init__(redis_client)
        self.partitions = self.settings.search_stream_partitions
        self.max_len = self.settings.search_stream_max_len
        self._in_flight: set[asyncio.Task[bool]] = set()

    def stream_for(self, event: IndexEvent, topic: str | None = None) -> str:
        """Stream an event is appended to (partitioned by entity id)."""
        return stream_name(
            topic or event.entity_type.topic,
            partition_for(event.partition_key, self.partitions),
        )

    async def send(self, event: IndexEvent, topic: str | None = None) -> bool:
        """Append one event to its stream.

        Args:
            event: Event to deliver.
            topic: Override topic (batch topic); defaults to the entity's topic.

        Returns:
            True if appended, False if Redis is unavailable or the write failed.
        """
        if not self.is_available() or self.redis is None:
            logger.debug(
                "Redis not available, dropping %s event for %s %s",
                event.event_type.value,
                event.entity_type.value,
                event.entity_id,
            )
            return False
        stream = self.stream_for(event, topic)
        try:
            await self.redis.xadd(
                stream,
                {PAYLOAD_FIELD: json.dumps(event.to_dict())},
                maxlen=self.max_len,
                approximate=True,
            )
            logger.debug(
                "Published %s %s %s to %s",
                event.event_type.value,
                event.entity_type.value,
                event.entity_id,
                stream,
            )
        except Exception:
            logger.exception(
                "Failed to publish %s event for %s %s",
                event.event_type.value,
                event.entity_type.value,
                event.entity_id,
            )
            return False
        else:
            return True

    def _schedule(self, event: IndexEvent, topic: str | None = None) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "No running event loop, dropping %s event for %s %s",
                event.event_type.value,
                event.entity_type.value,
                event.entity_id,
            )
            return
        task = loop.create_task(self.send(event, topic))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    def publish(
        self,
        entity_type: EntityType,
        event_type: IndexEventType,
        entity_id: str | int,
        triggered_by_user_id: int | None = None,
    ) -> None:
        """Schedule delivery of an index event and return immediately."""
        self._schedule(
            IndexEvent(
                event_type=event_type,
                entity_type=entity_type,
                entity_id=str(entity_id),
                triggered_by_user_id=triggered_by_user_id,
            )
        )

    def publish_created(
        self, entity_type: EntityType, entity_id: str | int, user_id: int | None = None
    ) -> None:
        self.publish(entity_type, IndexEventType.CREATE, entity_id, user_id)

    def publish_updated(
        self, entity_type: EntityType, entity_id: str | int, user_id: int | None = None
    ) -> None:
        self.publish(entity_type, IndexEventType.UPDATE, entity_id, user_id)

    def publish_deleted(
        self, entity_type: EntityType, entity_id: str | int, user_id: int | None = None
    ) -> None:
        self.publish(entity_type, IndexEventType.DELETE, entity_id, user_id)

    async def publish_bulk_reindex(self, entity_type: EntityType) -> bool:
        """Emit one BULK_REINDEX event on the entity's own topic."""
        sent = await self.send(IndexEvent.bulk_reindex(entity_type))
        if sent:
            logger.info("Requested bulk reindex of %s", entity_type.value)
        return sent

    async def publish_batch(self, entity_type: EntityType) -> bool:
        """Emit a reindex request for entity_type on the batch topic."""
        return await self.send(IndexEvent.bulk_reindex(entity_type), TOPIC_BATCH_EVENTS)

    async def drain(self) -> None:
        """Wait for every scheduled delivery to finish."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)


_publisher: RedisStreamPublisher | None = None


def get_event_publisher() -> RedisStreamPublisher | None:
    """Return the global index event publisher (set at startup)."""
    return _publisher


def set_event_publisher(publisher: RedisStreamPublisher | None) -> None:
    """Set the global index event publisher."""
    global _publisher
    _publisher = publisher
