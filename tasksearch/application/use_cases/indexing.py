"""Indexing use case: write search documents for source entities.

Upsert and delete are keyed by the entity's stable id, so replaying the
same operation leaves the index unchanged. Engine failures are logged and
reported through return values; they never propagate to the write path
that triggered indexing.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from tasksearch.application.dtos.search import BulkIndexReport, IndexStatus
from tasksearch.application.interfaces.repositories import ISearchEngine
from tasksearch.application.services.document_mapper import (
    entity_type_of,
    to_document,
)
from tasksearch.application.services.index_schema import mappings_for
from tasksearch.domain.entities import Entity
from tasksearch.domain.enums import EntityType
from tasksearch.domain.exceptions import SearchBackendException, TaskSearchException
from tasksearch.shared.telemetry.tracing import add_span_attributes, traced

logger = logging.getLogger(__name__)


class IndexingService:
    """Maps entities to documents and writes them to the search engine."""

    def __init__(self, engine: ISearchEngine, bulk_chunk_size: int = 500) -> None:
        self.engine = engine
        self.bulk_chunk_size = bulk_chunk_size

    @traced("indexing.index")
    async def index(self, entity: Entity) -> bool:
        """Upsert one entity's document.

        Returns:
            True if written, False if the engine write failed (logged).

        Raises:
            DocumentMappingException: If the entity cannot be mapped.
        """
        entity_type = entity_type_of(entity)
        document = to_document(entity)
        try:
            await self.engine.upsert(
                entity_type.index_name, document.id, document.to_source()
            )
        except SearchBackendException:
            logger.exception("Failed to index %s %s", entity_type.value, document.id)
            return False
        logger.info("Indexed %s %s", entity_type.value, document.id)
        return True

    @traced("indexing.delete")
    async def delete(self, entity_type: EntityType, entity_id: str) -> bool:
        """Remove a document by id. Already-absent documents count as success.

        Returns:
            True unless the engine call failed (logged).
        """
        try:
            existed = await self.engine.delete(entity_type.index_name, str(entity_id))
        except SearchBackendException:
            logger.exception("Failed to delete %s %s from index", entity_type.value, entity_id)
            return False
        if existed:
            logger.info("Deleted %s %s from index", entity_type.value, entity_id)
        else:
            logger.debug("%s %s was not in the index", entity_type.value, entity_id)
        return True

    @traced("indexing.bulk_index")
    async def bulk_index(
        self, entity_type: EntityType, entities: Sequence[Entity]
    ) -> BulkIndexReport:
        """Map and upsert a batch; one bad entity never aborts the rest."""
        mapped: list[tuple[str, dict[str, Any]]] = []
        mapping_failures: list[str] = []
        for entity in entities:
            entity_id = str(getattr(entity, "id", "?"))
            try:
                if entity_type_of(entity) is not entity_type:
                    raise TypeError(f"expected {entity_type.value}")
                document = to_document(entity)
            except (TaskSearchException, TypeError, ValueError) as e:
                logger.warning(
                    "Skipping %s %s in bulk index: %s", entity_type.value, entity_id, e
                )
                mapping_failures.append(entity_id)
                continue
            mapped.append((document.id, document.to_source()))

        write_failures: list[str] = []
        index = entity_type.index_name
        for start in range(0, len(mapped), self.bulk_chunk_size):
            chunk = mapped[start : start + self.bulk_chunk_size]
            try:
                write_failures.extend(await self.engine.bulk_upsert(index, chunk))
            except SearchBackendException:
                logger.exception(
                    "Bulk write of %d %s documents failed", len(chunk), entity_type.value
                )
                write_failures.extend(doc_id for doc_id, _ in chunk)
        if mapped:
            try:
                await self.engine.refresh(index)
            except SearchBackendException as e:
                logger.warning("Refresh of %s after bulk write failed: %s", index, e.message)

        report = BulkIndexReport(
            entity_type=entity_type,
            requested=len(entities),
            indexed=len(mapped) - len(write_failures),
            mapping_failures=mapping_failures,
            write_failures=write_failures,
        )
        add_span_attributes(
            **{"bulk.requested": report.requested, "bulk.indexed": report.indexed}
        )
        logger.info(
            "Bulk indexed %d/%d %s documents (%d failed)",
            report.indexed,
            report.requested,
            entity_type.value,
            report.failed,
        )
        return report

    async def ensure_indices(self) -> dict[EntityType, bool]:
        """Create any missing index with its mappings. Returns created flags."""
        created: dict[EntityType, bool] = {}
        for entity_type in EntityType:
            try:
                created[entity_type] = await self.engine.ensure_index(
                    entity_type.index_name, mappings_for(entity_type)
                )
            except SearchBackendException:
                logger.exception("Could not ensure index %s", entity_type.index_name)
                created[entity_type] = False
        return created

    async def index_status(self) -> list[IndexStatus]:
        """Document count per index; an unreachable index reports 'error'."""
        statuses: list[IndexStatus] = []
        for entity_type in EntityType:
            index = entity_type.index_name
            try:
                count = await self.engine.count(index)
            except SearchBackendException as e:
                logger.warning("Index status for %s unavailable: %s", index, e.message)
                statuses.append(
                    IndexStatus(entity_type, index, None, "error", error=e.message)
                )
                continue
            statuses.append(
                IndexStatus(entity_type, index, count, "populated" if count else "empty")
            )
        return statuses
