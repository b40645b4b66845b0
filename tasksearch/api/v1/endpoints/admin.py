"""Index administration: reindex (via events or directly) and per-index status."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from tasksearch.api.v1.dependencies import (
    get_event_publisher,
    get_index_event_handler,
    get_indexing_service,
    require_user_id,
)
from tasksearch.application.use_cases.index_events import IndexEventHandler
from tasksearch.application.use_cases.indexing import IndexingService
from tasksearch.core.limiter import limit_reindex
from tasksearch.domain.enums import EntityType
from tasksearch.infrastructure.exceptions import BrokerException
from tasksearch.infrastructure.messaging.publisher import RedisStreamPublisher
from tasksearch.schemas.search import (
    BulkIndexReportResponse,
    IndexStatusResponse,
    ManualReindexResponse,
    ReindexResponse,
    parse_entities,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/reindex", response_model=ReindexResponse, status_code=202)
@limit_reindex
async def request_reindex(
    request: Request,
    user_id: Annotated[int, Depends(require_user_id)],
    publisher: Annotated[RedisStreamPublisher, Depends(get_event_publisher)],
    entities: Annotated[list[str] | None, Query()] = None,
) -> ReindexResponse:
    """Publish one bulk reindex event per selected entity type (all by default).

    Consumers rebuild the indices asynchronously. Returns 503 when no
    event could be published.
    """
    requested = [t for t in EntityType if t in parse_entities(entities)]
    published = [t for t in requested if await publisher.publish_bulk_reindex(t)]
    logger.info(
        "User %s requested reindex of %s (published %s)",
        user_id,
        [t.value for t in requested],
        [t.value for t in published],
    )
    if requested and not published:
        raise BrokerException("publish", "no reindex event could be published")
    return ReindexResponse(requested=requested, published=published)


@router.post("/admin/reindex", response_model=ManualReindexResponse)
@limit_reindex
async def reindex_now(
    request: Request,
    user_id: Annotated[int, Depends(require_user_id)],
    handler: Annotated[IndexEventHandler, Depends(get_index_event_handler)],
    entities: Annotated[list[str] | None, Query()] = None,
) -> ManualReindexResponse:
    """Rebuild the selected indices from the source right away, without the event streams.

    Returns once every selected type is reindexed; 502 when the source
    cannot be read.
    """
    selected = [t for t in EntityType if t in parse_entities(entities)]
    logger.info("User %s started manual reindex of %s", user_id, [t.value for t in selected])
    reports = [await handler.reindex_all(t) for t in selected]
    return ManualReindexResponse(
        reports=[
            BulkIndexReportResponse(
                entity_type=r.entity_type,
                requested=r.requested,
                indexed=r.indexed,
                failed=r.failed,
                mapping_failures=r.mapping_failures,
                write_failures=r.write_failures,
            )
            for r in reports
        ]
    )


@router.get("/admin/index-status", response_model=IndexStatusResponse)
async def index_status(
    user_id: Annotated[int, Depends(require_user_id)],
    indexing: Annotated[IndexingService, Depends(get_indexing_service)],
) -> IndexStatusResponse:
    """Document count per index; unreachable indices report status 'error'."""
    statuses = await indexing.index_status()
    return IndexStatusResponse(indices={s.index: s.to_dict() for s in statuses})
