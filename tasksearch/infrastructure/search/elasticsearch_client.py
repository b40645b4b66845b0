"""Elasticsearch client on the official async library (AsyncElasticsearch).

Covers what indexing and search need: document upsert/delete, bulk via
helpers.async_bulk, search, count and index creation. API errors and
transport failures raise SearchEngineException; timeouts raise
SearchTimeoutException.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from elasticsearch import (
    ApiError,
    AsyncElasticsearch,
    BadRequestError,
    ConnectionTimeout,
    NotFoundError,
    SerializationError,
    TransportError,
    UnsupportedProductError,
)
from elasticsearch.helpers import async_bulk

from tasksearch.application.services.query_dsl import SearchRequest
from tasksearch.core.config import Settings, get_settings
from tasksearch.infrastructure.exceptions import (
    SearchEngineException,
    SearchTimeoutException,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def create_es_client(settings: Settings) -> AsyncElasticsearch:
    """AsyncElasticsearch for the configured cluster."""
    basic_auth = None
    if settings.elasticsearch_username:
        password = (
            settings.elasticsearch_password.get_secret_value()
            if settings.elasticsearch_password
            else ""
        )
        basic_auth = (settings.elasticsearch_username, password)
    return AsyncElasticsearch(
        settings.elasticsearch_url,
        basic_auth=basic_auth,
        request_timeout=settings.elasticsearch_timeout_seconds,
        max_retries=settings.elasticsearch_max_retries,
        retry_on_timeout=True,
    )


class ElasticsearchClient:
    """ISearchEngine over AsyncElasticsearch.

    Pass es_client for DI/testing; otherwise one is created from settings
    and owned (closed by close()).
    """

    def __init__(self, es_client: AsyncElasticsearch | None = None) -> None:
        self.settings = get_settings()
        self._owns_client = es_client is None
        self.es = es_client if es_client is not None else create_es_client(self.settings)
        self._refresh = self.settings.elasticsearch_refresh

    async def close(self) -> None:
        """Close the owned client. Call on app shutdown."""
        if self._owns_client:
            await self.es.close()

    async def _call(self, operation: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except ConnectionTimeout as e:
            raise SearchTimeoutException(
                operation, self.settings.elasticsearch_timeout_seconds
            ) from e
        except ApiError as e:
            raise SearchEngineException(operation, str(e), status_code=e.meta.status) from e
        except TransportError as e:
            raise SearchEngineException(operation, str(e)) from e

    async def upsert(self, index: str, doc_id: str, source: dict[str, Any]) -> None:
        """Create or replace a document by id."""
        await self._call(
            "upsert",
            self.es.index(index=index, id=doc_id, document=source, refresh=self._refresh),
        )
        logger.debug("Indexed %s/%s", index, doc_id)

    async def delete(self, index: str, doc_id: str) -> bool:
        """Delete a document. A missing document returns False."""
        try:
            await self._call(
                "delete", self.es.delete(index=index, id=doc_id, refresh=self._refresh)
            )
        except SearchEngineException as e:
            if isinstance(e.__cause__, NotFoundError):
                logger.debug("Delete of %s/%s: not found", index, doc_id)
                return False
            raise
        return True

    async def bulk_upsert(
        self, index: str, documents: list[tuple[str, dict[str, Any]]]
    ) -> list[str]:
        """Upsert documents in one bulk request. Returns ids of items that failed."""
        if not documents:
            return []
        actions = [
            {"_op_type": "index", "_index": index, "_id": doc_id, "_source": source}
            for doc_id, source in documents
        ]
        _, errors = await self._call(
            "bulk",
            async_bulk(self.es, actions, raise_on_error=False, refresh=self._refresh),
        )
        failed: list[str] = []
        for item in errors:
            result = next(iter(item.values()), {}) if isinstance(item, dict) else {}
            failed.append(str(result.get("_id")))
            logger.warning(
                "Bulk item %s/%s failed: %s", index, result.get("_id"), result.get("error")
            )
        return failed

    async def search(self, index: str, request: SearchRequest) -> dict[str, Any]:
        """Run a query and return the raw response body.

        A 2xx answer that is not a search response (e.g. a proxy page)
        yields {} so the caller parses it into an empty page.
        """
        try:
            resp = await self._call("search", self.es.search(index=index, body=request.to_wire()))
        except SearchEngineException as e:
            if isinstance(e.__cause__, (SerializationError, UnsupportedProductError)):
                logger.warning("Search on %s returned an unreadable response: %s", index, e)
                return {}
            raise
        body = resp.body
        return body if isinstance(body, dict) else {}

    async def count(self, index: str) -> int:
        """Document count of an index."""
        resp = await self._call("count", self.es.count(index=index))
        count = resp.body.get("count") if isinstance(resp.body, dict) else None
        if not isinstance(count, int):
            raise SearchEngineException("count", "response has no integer count")
        return count

    async def ensure_index(self, index: str, mappings: dict[str, Any]) -> bool:
        """Create the index if it does not exist. Returns True if created."""
        if await self._call("index_exists", self.es.indices.exists(index=index)):
            return False
        try:
            await self._call("create_index", self.es.indices.create(index=index, **mappings))
        except SearchEngineException as e:
            # Lost a creation race with another instance
            cause = e.__cause__
            if (
                isinstance(cause, BadRequestError)
                and cause.message == "resource_already_exists_exception"
            ):
                return False
            raise
        logger.info("Created search index %s", index)
        return True

    async def refresh(self, index: str) -> None:
        """Make recent writes visible to search."""
        await self._call("refresh", self.es.indices.refresh(index=index))

    async def ping(self) -> bool:
        """Return True if the cluster answers."""
        try:
            return bool(await self._call("ping", self.es.ping()))
        except SearchEngineException:
            return False
