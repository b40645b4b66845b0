"""Entity source backed by the system of record's read API.

GET {base}/{collection}/{id} returns one entity (404 when it does not
exist). GET {base}/{collection}?page=N&size=M returns either a JSON list
or a page object {"content": [...], "last": bool}.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from tasksearch.core.config import get_settings
from tasksearch.domain.entities import Entity
from tasksearch.domain.enums import EntityType
from tasksearch.infrastructure.exceptions import EntitySourceException
from tasksearch.infrastructure.source.payloads import (
    ProjectPayload,
    TaskPayload,
    TeamPayload,
    UserPayload,
)

logger = logging.getLogger(__name__)

_PAGE_SIZE = 500

_PAYLOADS: dict[EntityType, type[TaskPayload | ProjectPayload | UserPayload | TeamPayload]] = {
    EntityType.TASK: TaskPayload,
    EntityType.PROJECT: ProjectPayload,
    EntityType.USER: UserPayload,
    EntityType.TEAM: TeamPayload,
}


def parse_entity(entity_type: EntityType, payload: Any) -> Entity:
    """Validate a JSON payload into the domain entity.

    Raises:
        EntitySourceException: If the payload does not have the entity's shape.
    """
    try:
        return _PAYLOADS[entity_type].model_validate(payload).to_entity()
    except ValidationError as e:
        raise EntitySourceException(
            entity_type.value, f"invalid payload: {e.error_count()} errors"
        ) from e


class HttpEntitySource:
    """IEntitySource over httpx. Pass http_client for DI/testing."""

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self.settings = get_settings()
        self._owns_client = http_client is None
        if http_client is None:
            headers = {"Accept": "application/json"}
            if self.settings.source_api_token:
                headers["Authorization"] = (
                    f"Bearer {self.settings.source_api_token.get_secret_value()}"
                )
            http_client = httpx.AsyncClient(
                base_url=self.settings.source_base_url,
                timeout=self.settings.source_timeout_seconds,
                headers=headers,
            )
        self._http = http_client

    async def close(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _get(
        self, entity_type: EntityType, path: str, params: dict[str, int] | None = None
    ) -> httpx.Response:
        try:
            return await self._http.get(path, params=params)
        except httpx.HTTPError as e:
            raise EntitySourceException(entity_type.value, str(e)) from e

    @staticmethod
    def _json(entity_type: EntityType, resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise EntitySourceException(entity_type.value, "response is not JSON") from e

    async def find_by_id(self, entity_type: EntityType, entity_id: str) -> Entity | None:
        """Current state of one entity, or None if it no longer exists."""
        resp = await self._get(entity_type, f"/{entity_type.index_name}/{entity_id}")
        if resp.status_code == 404:
            return None
        if not resp.is_success:
            raise EntitySourceException(
                entity_type.value, f"GET {entity_id} returned {resp.status_code}"
            )
        return parse_entity(entity_type, self._json(entity_type, resp))

    async def find_all(self, entity_type: EntityType) -> list[Entity]:
        """Every entity of a type, page by page.

        Entities with an invalid payload are skipped and logged.
        """
        entities: list[Entity] = []
        page = 0
        while True:
            resp = await self._get(
                entity_type,
                f"/{entity_type.index_name}",
                params={"page": page, "size": _PAGE_SIZE},
            )
            if not resp.is_success:
                raise EntitySourceException(
                    entity_type.value, f"list page {page} returned {resp.status_code}"
                )
            body = self._json(entity_type, resp)
            if not isinstance(body, (list, dict)):
                raise EntitySourceException(entity_type.value, "listing is not a list or page")
            items = body if isinstance(body, list) else body.get("content") or []
            for item in items:
                try:
                    entities.append(parse_entity(entity_type, item))
                except EntitySourceException as e:
                    logger.warning("Skipping %s in listing: %s", entity_type.value, e.message)
            last = isinstance(body, list) or bool(body.get("last", True)) or not items
            if last:
                return entities
            page += 1
