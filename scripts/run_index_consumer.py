"""Run the index event consumer until interrupted.

Usage:
    python -m scripts.run_index_consumer [--entities tasks,users] [--batch] [--once] [-v]

Consumes every entity topic plus the batch topic by default. --entities
limits the entity topics; --batch keeps the batch topic when --entities
is given. --once drains what is currently queued and exits (cron or
smoke tests). Requires Redis and the search engine.
"""

import argparse
import asyncio
import logging
import signal
import sys

from tasksearch.application.use_cases.index_events import IndexEventHandler
from tasksearch.application.use_cases.indexing import IndexingService
from tasksearch.core.config import get_settings
from tasksearch.core.constants import TOPIC_BATCH_EVENTS
from tasksearch.domain.enums import EntityType
from tasksearch.infrastructure.messaging.consumer import RedisStreamConsumer
from tasksearch.infrastructure.search.factory import SearchEngineFactory
from tasksearch.infrastructure.source.factory import create_entity_source
from tasksearch.schemas.search import parse_entities
from tasksearch.shared.telemetry.logging import setup_logging
from tasksearch.shared.utils.generators import generate_consumer_name

logger = logging.getLogger("scripts.run_index_consumer")


def _topics(entities: str | None, include_batch: bool) -> list[str]:
    if not entities:
        return [t.topic for t in EntityType] + [TOPIC_BATCH_EVENTS]
    selected = parse_entities([entities])
    topics = [t.topic for t in EntityType if t in selected]
    if include_batch:
        topics.append(TOPIC_BATCH_EVENTS)
    return topics


async def main(args: argparse.Namespace) -> int:
    """Wire the consumer from settings and run it."""
    settings = get_settings()
    if settings.telemetry_enabled:
        from tasksearch.shared.telemetry.telemetry import setup_from_settings

        setup_from_settings(settings, component="indexer")

    engine = SearchEngineFactory.create_search_engine(settings)
    source = create_entity_source(settings)
    indexing = IndexingService(engine, settings.search_bulk_chunk_size)
    await indexing.ensure_indices()
    consumer = RedisStreamConsumer(
        IndexEventHandler(source, indexing),
        topics=_topics(args.entities, args.batch),
        consumer_name=generate_consumer_name("indexer"),
    )
    try:
        await consumer.connect()
        if not consumer.is_available():
            logger.error("Redis is not reachable; cannot consume index events")
            return 1
        if args.once:
            count = await consumer.consume_pending(args.max_messages)
            logger.info("Processed %d message(s): %s", count, consumer.stats.to_dict())
            return 0

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, consumer.stop)
        await consumer.run()
        return 0
    finally:
        await consumer.disconnect()
        await source.close()
        await engine.close()


def cli() -> None:
    parser = argparse.ArgumentParser(description="Consume index events into the search engine.")
    parser.add_argument("--entities", help="Comma-separated entity types (default: all)")
    parser.add_argument(
        "--batch", action="store_true", help="Also consume the batch topic when --entities is set"
    )
    parser.add_argument("--once", action="store_true", help="Drain queued events and exit")
    parser.add_argument(
        "--max-messages", type=int, default=10_000, help="Upper bound for --once (default 10000)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()
    setup_logging(logging.DEBUG if args.verbose else None)
    sys.exit(asyncio.run(main(args)))


if __name__ == "__main__":
    cli()
