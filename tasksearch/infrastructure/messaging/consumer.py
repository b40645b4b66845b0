"""Index event consumer over Redis Streams.

One consumer group per stream and one sequential read loop per partition
stream, so events for the same entity are applied in publish order. Every
message is acknowledged once handled, including malformed and failed
ones; with dead-lettering enabled those are first copied to the
dead-letter stream for inspection.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from typing import Any

import redis.asyncio as redis

from tasksearch.application.use_cases.index_events import (
    ConsumerStats,
    IndexEventHandler,
)
from tasksearch.core.constants import TOPIC_BATCH_EVENTS, TOPIC_DEAD_LETTER
from tasksearch.domain.enums import EventOutcome
from tasksearch.domain.events import IndexEvent
from tasksearch.domain.exceptions import InvalidIndexEventException
from tasksearch.infrastructure.cache.redis_connection import RedisConnection
from tasksearch.infrastructure.messaging.streams import (
    PAYLOAD_FIELD,
    all_topics,
    streams_for_topic,
    topic_of,
)
from tasksearch.shared.utils.generators import generate_consumer_name

logger = logging.getLogger(__name__)

_RETRY_DELAY_SECONDS = 1.0


class RedisStreamConsumer(RedisConnection):
    """Reads index events from partitioned streams and dispatches them."""

    component = "Index event consumer"

    def __init__(
        self,
        handler: IndexEventHandler,
        topics: Sequence[str] | None = None,
        redis_client: redis.Redis | None = None,
        consumer_name: str | None = None,
        claim_min_idle_ms: int | None = None,
    ) -> None:
        """Initialize.

        Args:
            handler: Applies decoded events to the index.
            topics: Topics to consume; defaults to every entity topic plus
                the batch topic.
            redis_client: Optional client for DI/testing.
            consumer_name: Name inside the consumer group; defaults to
                host and pid.
            claim_min_idle_ms: Idle time after which another consumer's
                unacknowledged messages are taken over.
        """
        super().__init__(redis_client)
        self.handler = handler
        self.topics = list(topics) if topics else all_topics()
        self.group = self.settings.search_consumer_group
        self.consumer_name = consumer_name or generate_consumer_name()
        self.block_ms = self.settings.search_consumer_block_ms
        self.batch_size = self.settings.search_consumer_batch_size
        self.claim_min_idle_ms = (
            self.settings.search_consumer_claim_min_idle_ms
            if claim_min_idle_ms is None
            else claim_min_idle_ms
        )
        self.dead_letter_enabled = self.settings.search_dead_letter_enabled
        self.streams = [
            stream
            for topic in self.topics
            for stream in streams_for_topic(topic, self.settings.search_stream_partitions)
        ]
        self._groups_ready = False
        self._stopping = asyncio.Event()

    @property
    def stats(self) -> ConsumerStats:
        return self.handler.stats

    async def ensure_groups(self) -> None:
        """Create the consumer group on every stream (and the stream itself)."""
        if self.redis is None:
            return
        for stream in self.streams:
            try:
                await self.redis.xgroup_create(stream, self.group, id="0", mkstream=True)
                logger.debug("Created consumer group %s on %s", self.group, stream)
            except redis.ResponseError as e:
                if "BUSYGROUP" not in str(e):
                    raise
        self._groups_ready = True

    async def _usable(
        self, stream: str, entries: Sequence[Any] | None
    ) -> list[tuple[str, dict[str, Any]]]:
        """Entries that still carry data; ids whose data was trimmed are acked."""
        messages: list[tuple[str, dict[str, Any]]] = []
        for entry in entries or []:
            if not entry:
                continue
            message_id, fields = entry
            if message_id is None:
                continue
            if fields:
                messages.append((message_id, fields))
            else:
                logger.debug("Acking trimmed message %s on %s", message_id, stream)
                await self._ack(stream, message_id)
        return messages

    async def _read(
        self, stream: str, count: int, block: int | None, pending: bool = False
    ) -> list[tuple[str, dict[str, Any]]]:
        """Next messages for this consumer; pending=True re-reads unacked ones."""
        if self.redis is None:
            return []
        response = await self.redis.xreadgroup(
            self.group,
            self.consumer_name,
            {stream: "0" if pending else ">"},
            count=count,
            block=block,
        )
        messages: list[tuple[str, dict[str, Any]]] = []
        for _, entries in response or []:
            messages.extend(await self._usable(stream, entries))
        return messages

    async def _claim_idle(
        self, stream: str, cursor: str, count: int
    ) -> tuple[str, list[tuple[str, dict[str, Any]]]]:
        """Take over messages other consumers read but never acknowledged.

        Returns the next scan cursor ("0-0" once the pending list is
        exhausted) and the claimed messages.
        """
        if self.redis is None:
            return "0-0", []
        response = await self.redis.xautoclaim(
            stream,
            self.group,
            self.consumer_name,
            self.claim_min_idle_ms,
            start_id=cursor,
            count=count,
        )
        if not response:
            return "0-0", []
        return str(response[0]), await self._usable(stream, response[1])

    async def _dead_letter(
        self, stream: str, message_id: str, fields: dict[str, Any], reason: str
    ) -> None:
        if not self.dead_letter_enabled or self.redis is None:
            return
        try:
            await self.redis.xadd(
                TOPIC_DEAD_LETTER,
                {
                    PAYLOAD_FIELD: fields.get(PAYLOAD_FIELD, ""),
                    "sourceStream": stream,
                    "messageId": message_id,
                    "reason": reason,
                },
                maxlen=self.settings.search_stream_max_len,
                approximate=True,
            )
        except redis.RedisError:
            logger.exception("Could not dead-letter message %s from %s", message_id, stream)

    async def _process(self, stream: str, message_id: str, fields: dict[str, Any]) -> None:
        """Decode, dispatch, then acknowledge one message."""
        try:
            event = IndexEvent.from_dict(json.loads(fields[PAYLOAD_FIELD]))
        except (KeyError, TypeError, json.JSONDecodeError, InvalidIndexEventException) as e:
            logger.warning("Malformed index event %s on %s: %s", message_id, stream, e)
            self.handler.record_malformed()
            await self._dead_letter(stream, message_id, fields, "malformed")
        else:
            if topic_of(stream) == TOPIC_BATCH_EVENTS:
                outcome = await self.handler.handle_batch(event)
            else:
                outcome = await self.handler.handle(event)
            if outcome is EventOutcome.FAILED:
                await self._dead_letter(stream, message_id, fields, "failed")
        await self._ack(stream, message_id)

    async def _ack(self, stream: str, message_id: str) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.xack(stream, self.group, message_id)
        except redis.RedisError:
            logger.exception("Failed to ack %s on %s", message_id, stream)

    async def _recover(self, stream: str, limit: int | None = None) -> int:
        """Process messages left unacknowledged on stream.

        Idle messages of other consumers (e.g. a worker that died before
        acking) are claimed first, then this consumer's own pending ones
        are re-read.
        """
        processed = 0

        def room() -> int:
            if limit is None:
                return self.batch_size
            return min(self.batch_size, limit - processed)

        cursor = "0-0"
        while room() > 0:
            cursor, messages = await self._claim_idle(stream, cursor, room())
            for message_id, fields in messages:
                await self._process(stream, message_id, fields)
                processed += 1
            if cursor == "0-0":
                break
        while room() > 0:
            messages = await self._read(stream, room(), None, pending=True)
            if not messages:
                break
            for message_id, fields in messages:
                await self._process(stream, message_id, fields)
                processed += 1
        if processed:
            logger.info("Recovered %d unacknowledged messages on %s", processed, stream)
        return processed

    async def consume_pending(self, max_messages: int = 1000) -> int:
        """Process every message available right now, without blocking.

        Unacknowledged messages are recovered before new ones are read.

        Returns:
            Number of messages processed (at most max_messages).
        """
        if not self.is_available():
            return 0
        if not self._groups_ready:
            await self.ensure_groups()
        processed = 0
        for stream in self.streams:
            processed += await self._recover(stream, max_messages - processed)
            while processed < max_messages:
                count = min(self.batch_size, max_messages - processed)
                messages = await self._read(stream, count, None)
                if not messages:
                    break
                for message_id, fields in messages:
                    await self._process(stream, message_id, fields)
                    processed += 1
        return processed

    async def _stream_loop(self, stream: str) -> None:
        """Sequential read loop for one partition stream."""
        recovering = True
        while not self._stopping.is_set():
            try:
                if recovering:
                    await self._recover(stream)
                    recovering = False
                    continue
                messages = await self._read(stream, self.batch_size, self.block_ms)
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning("Read from %s failed: %s. Retrying.", stream, e)
                await asyncio.sleep(_RETRY_DELAY_SECONDS)
                continue
            except redis.ResponseError as e:
                if "NOGROUP" in str(e):
                    logger.warning("Consumer group missing on %s, recreating", stream)
                    await self.ensure_groups()
                    continue
                logger.exception("Read from %s failed", stream)
                await asyncio.sleep(_RETRY_DELAY_SECONDS)
                continue
            for message_id, fields in messages:
                await self._process(stream, message_id, fields)

    async def run(self) -> None:
        """Consume until stop() is called or the task is cancelled."""
        await self.connect()
        if not self.is_available():
            logger.warning("Redis not available, index event consumer not started")
            return
        await self.ensure_groups()
        self._stopping.clear()
        loops = [
            asyncio.create_task(self._stream_loop(stream), name=f"consume:{stream}")
            for stream in self.streams
        ]
        logger.info(
            "Index event consumer %s started on %d streams", self.consumer_name, len(loops)
        )
        try:
            await self._stopping.wait()
        except asyncio.CancelledError:
            logger.info("Index event consumer cancelled")
            raise
        finally:
            for task in loops:
                task.cancel()
            await asyncio.gather(*loops, return_exceptions=True)
            logger.info("Index event consumer stopped: %s", self.stats.to_dict())

    def stop(self) -> None:
        """Ask run() to return; read loops are cancelled on the way out."""
        self._stopping.set()
