"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (search engine, entity source,
history store, event publisher, optional in-process consumer, telemetry).
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from tasksearch.application.use_cases.index_events import IndexEventHandler
from tasksearch.application.use_cases.indexing import IndexingService
from tasksearch.application.use_cases.search import SearchService
from tasksearch.application.use_cases.suggestions import SuggestionService
from tasksearch.core.config import get_settings
from tasksearch.domain.enums import EntityType
from tasksearch.infrastructure.cache.history_store import SearchHistoryStore
from tasksearch.infrastructure.messaging.publisher import (
    RedisStreamPublisher,
    set_event_publisher,
)
from tasksearch.infrastructure.search.factory import SearchEngineFactory
from tasksearch.infrastructure.source.factory import create_entity_source

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: search engine and indices, entity source, Redis-backed
    history store and publisher (if enabled), in-process consumer (if
    enabled), startup reindex (if enabled), telemetry (if enabled).
    Shutdown runs in reverse.
    """
    settings = get_settings()

    # ---- Startup ----
    engine = SearchEngineFactory.create_search_engine(settings)
    indexing = IndexingService(engine, settings.search_bulk_chunk_size)
    app.state.search_engine = engine
    app.state.indexing_service = indexing
    app.state.search_service = SearchService(
        engine, settings.search_subquery_timeout_seconds
    )
    if settings.search_ensure_indices_on_startup:
        created = await indexing.ensure_indices()
        logger.info(
            "Search indices ready (created: %s)",
            [t.index_name for t, was_created in created.items() if was_created],
        )

    source = create_entity_source(settings)
    app.state.entity_source = source
    handler = IndexEventHandler(source, indexing)
    app.state.index_event_handler = handler

    # Unconnected stores degrade (empty reads, False writes)
    history = SearchHistoryStore()
    publisher = RedisStreamPublisher()
    if settings.redis_enabled:
        await history.connect()
        await publisher.connect()
    app.state.history_store = history
    app.state.suggestion_service = SuggestionService(
        history, settings.search_history_default_limit
    )
    app.state.event_publisher = publisher
    set_event_publisher(publisher)

    app.state.index_consumer = None
    app.state.index_consumer_task = None
    if settings.redis_enabled and settings.search_consumers_in_process:
        from tasksearch.infrastructure.messaging.consumer import RedisStreamConsumer

        consumer = RedisStreamConsumer(handler)
        app.state.index_consumer = consumer
        app.state.index_consumer_task = asyncio.create_task(
            consumer.run(), name="index-event-consumer"
        )

    if settings.search_reindex_on_startup:
        for entity_type in EntityType:
            await publisher.publish_bulk_reindex(entity_type)

    if settings.telemetry_enabled:
        from tasksearch.shared.telemetry.telemetry import setup_from_settings

        setup_from_settings(settings, app)
        logger.info("Telemetry initialized")

    yield

    # ---- Shutdown ----
    consumer_task = app.state.index_consumer_task
    if consumer_task is not None:
        app.state.index_consumer.stop()
        consumer_task.cancel()
        try:
            await consumer_task
        except asyncio.CancelledError:
            pass
        await app.state.index_consumer.disconnect()
        logger.info("Index event consumer stopped")

    await publisher.drain()
    await publisher.disconnect()
    set_event_publisher(None)
    await history.disconnect()
    logger.info("Redis clients disconnected")

    await source.close()
    await engine.close()
    logger.info("Search engine client closed")

    from tasksearch.shared.telemetry.telemetry import get_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        logger.info("Telemetry shutdown complete")
