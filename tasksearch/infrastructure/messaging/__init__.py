"""Index event transport: Redis Streams publisher and consumer."""

from tasksearch.infrastructure.messaging.consumer import RedisStreamConsumer
from tasksearch.infrastructure.messaging.publisher import (
    RedisStreamPublisher,
    get_event_publisher,
    set_event_publisher,
)

__all__ = [
    "RedisStreamConsumer",
    "RedisStreamPublisher",
    "get_event_publisher",
    "set_event_publisher",
]
