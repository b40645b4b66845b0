"""Stream naming and partitioning for index events.

Each topic is split over a fixed number of Redis streams named
"{topic}:{partition}". The partition is derived from the event's entity
id, so every event for one entity lands on the same stream and is read
in order by a single consumer loop.
"""

import zlib

from tasksearch.core.constants import CACHE_KEY_SEP, TOPIC_BATCH_EVENTS
from tasksearch.domain.enums import EntityType

PAYLOAD_FIELD = "payload"


def partition_for(key: str, partitions: int) -> int:
    """Stable partition for key (crc32, same across processes and hosts)."""
    if partitions <= 1:
        return 0
    return zlib.crc32(key.encode("utf-8")) % partitions


def stream_name(topic: str, partition: int) -> str:
    return f"{topic}{CACHE_KEY_SEP}{partition}"


def topic_of(stream: str) -> str:
    """Topic part of a stream name."""
    return stream.rsplit(CACHE_KEY_SEP, 1)[0]


def streams_for_topic(topic: str, partitions: int) -> list[str]:
    return [stream_name(topic, p) for p in range(max(partitions, 1))]


def all_topics() -> list[str]:
    """Entity topics followed by the batch topic."""
    return [t.topic for t in EntityType] + [TOPIC_BATCH_EVENTS]
