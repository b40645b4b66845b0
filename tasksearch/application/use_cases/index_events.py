"""Index event handling: turn one event into index writes.

Broker-agnostic. The stream consumer decodes messages and calls handle()
or handle_batch(); this module loads the current entity state from the
source of record and hands it to IndexingService. A failure is caught per
event, logged, counted and the event is dropped. There is no retry: the
next change to the entity (or a bulk reindex) repairs the index.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

from tasksearch.application.dtos.search import BulkIndexReport
from tasksearch.application.interfaces.repositories import IEntitySource
from tasksearch.application.use_cases.indexing import IndexingService
from tasksearch.domain.enums import EntityType, EventOutcome, IndexEventType
from tasksearch.domain.events import IndexEvent
from tasksearch.shared.telemetry.tracing import TracedOperation

logger = logging.getLogger(__name__)


@dataclass
class ConsumerStats:
    """Running counters for handled index events."""

    processed: int = 0
    indexed: int = 0
    deleted: int = 0
    reindexed: int = 0
    skipped: int = 0
    failed: int = 0
    malformed: int = 0

    def record(self, outcome: EventOutcome) -> None:
        self.processed += 1
        if outcome is EventOutcome.INDEXED:
            self.indexed += 1
        elif outcome is EventOutcome.DELETED:
            self.deleted += 1
        elif outcome is EventOutcome.REINDEXED:
            self.reindexed += 1
        elif outcome is EventOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1

    @property
    def dropped(self) -> int:
        """Events that left no index effect."""
        return self.skipped + self.failed + self.malformed

    def to_dict(self) -> dict[str, int]:
        return {**asdict(self), "dropped": self.dropped}


class IndexEventHandler:
    """Applies index events to the search index."""

    def __init__(self, source: IEntitySource, indexing: IndexingService) -> None:
        self.source = source
        self.indexing = indexing
        self.stats = ConsumerStats()

    async def handle(self, event: IndexEvent) -> EventOutcome:
        """Apply one event from an entity topic. Never raises."""
        with TracedOperation(
            "index_events.handle",
            {
                "event_type": event.event_type.value,
                "entity_type": event.entity_type.value,
                "entity_id": event.entity_id,
            },
        ) as operation:
            try:
                outcome = await self._apply(event)
            except Exception:
                logger.exception(
                    "Dropping %s event %s for %s %s",
                    event.event_type.value,
                    event.event_id,
                    event.entity_type.value,
                    event.entity_id,
                )
                outcome = EventOutcome.FAILED
            operation.set_attribute("outcome", outcome.value)
        self.stats.record(outcome)
        return outcome

    async def handle_batch(self, event: IndexEvent) -> EventOutcome:
        """Apply an event from the batch topic: always a full reindex of its type."""
        try:
            await self.reindex_all(event.entity_type)
            outcome = EventOutcome.REINDEXED
        except Exception:
            logger.exception(
                "Dropping batch reindex event %s for %s",
                event.event_id,
                event.entity_type.value,
            )
            outcome = EventOutcome.FAILED
        self.stats.record(outcome)
        return outcome

    def record_malformed(self) -> None:
        """Count a message that could not be decoded into an event."""
        self.stats.malformed += 1

    async def _apply(self, event: IndexEvent) -> EventOutcome:
        if event.event_type is IndexEventType.BULK_REINDEX:
            await self.reindex_all(event.entity_type)
            return EventOutcome.REINDEXED
        if event.event_type is IndexEventType.DELETE:
            deleted = await self.indexing.delete(event.entity_type, event.entity_id)
            return EventOutcome.DELETED if deleted else EventOutcome.FAILED

        entity = await self.source.find_by_id(event.entity_type, event.entity_id)
        if entity is None:
            logger.warning(
                "%s %s not found in source, skipping %s event",
                event.entity_type.value,
                event.entity_id,
                event.event_type.value,
            )
            return EventOutcome.SKIPPED
        indexed = await self.indexing.index(entity)
        return EventOutcome.INDEXED if indexed else EventOutcome.FAILED

    async def reindex_all(self, entity_type: EntityType) -> BulkIndexReport:
        """Rebuild one index from every entity the source holds.

        Raises:
            EntitySourceException: If the source could not be read.
        """
        entities = await self.source.find_all(entity_type)
        logger.info("Reindexing %d %s entities", len(entities), entity_type.value)
        report = await self.indexing.bulk_index(entity_type, entities)
        if report.failed:
            logger.warning(
                "Bulk reindex of %s left %d failures", entity_type.value, report.failed
            )
        return report
