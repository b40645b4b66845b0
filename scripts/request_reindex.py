"""Publish bulk reindex events so consumers rebuild the search indices.

Usage:
    python -m scripts.request_reindex [tasks,projects,...] [--batch]

With no entity list every type is reindexed. --batch publishes on the
batch topic instead of each entity's own topic.
"""

import argparse
import asyncio
import sys

from tasksearch.domain.enums import EntityType
from tasksearch.infrastructure.messaging.publisher import RedisStreamPublisher
from tasksearch.schemas.search import parse_entities
from tasksearch.shared.telemetry.logging import setup_logging


async def main(entities: str | None, batch: bool) -> int:
    """Publish one reindex event per selected entity type."""
    selected = parse_entities([entities] if entities else None)
    publisher = RedisStreamPublisher()
    await publisher.connect()
    if not publisher.is_available():
        print("Redis not available", file=sys.stderr)
        return 1
    failed = 0
    try:
        for entity_type in EntityType:
            if entity_type not in selected:
                continue
            if batch:
                ok = await publisher.publish_batch(entity_type)
            else:
                ok = await publisher.publish_bulk_reindex(entity_type)
            print(f"{entity_type.value}: {'published' if ok else 'FAILED'}")
            failed += 0 if ok else 1
    finally:
        await publisher.disconnect()
    return 1 if failed else 0


def cli() -> None:
    parser = argparse.ArgumentParser(description="Request a bulk reindex.")
    parser.add_argument("entities", nargs="?", help="Comma-separated entity types (default: all)")
    parser.add_argument("--batch", action="store_true", help="Publish on the batch topic")
    args = parser.parse_args()
    setup_logging()
    sys.exit(asyncio.run(main(args.entities, args.batch)))


if __name__ == "__main__":
    cli()
