"""In-process entity source for local runs and tests."""

from __future__ import annotations

from tasksearch.application.services.document_mapper import entity_type_of
from tasksearch.domain.entities import Entity
from tasksearch.domain.enums import EntityType


class InMemoryEntitySource:
    """IEntitySource over a dict; put() and remove() play the system of record."""

    def __init__(self, entities: list[Entity] | None = None) -> None:
        self._entities: dict[EntityType, dict[str, Entity]] = {t: {} for t in EntityType}
        for entity in entities or []:
            self.put(entity)

    def put(self, entity: Entity) -> None:
        self._entities[entity_type_of(entity)][str(entity.id)] = entity

    def remove(self, entity_type: EntityType, entity_id: str | int) -> None:
        self._entities[entity_type].pop(str(entity_id), None)

    async def find_by_id(self, entity_type: EntityType, entity_id: str) -> Entity | None:
        return self._entities[entity_type].get(str(entity_id))

    async def find_all(self, entity_type: EntityType) -> list[Entity]:
        return list(self._entities[entity_type].values())

    async def close(self) -> None:
        return None
