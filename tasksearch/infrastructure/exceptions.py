"""Infrastructure exceptions for the search engine and the event broker.

They extend TaskSearchException so presentation can map them to HTTP
responses consistently.
"""

from tasksearch.domain.exceptions import SearchBackendException, TaskSearchException


class SearchEngineException(SearchBackendException):
    """Search engine request failed (transport error or non-2xx status)."""

    def __init__(self, operation: str, reason: str, status_code: int | None = None) -> None:
        details: dict[str, object] = {"operation": operation, "reason": reason}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            f"Search engine {operation} failed: {reason}",
            "SEARCH_ENGINE_ERROR",
            details,
        )
        self.status_code = status_code


class SearchTimeoutException(SearchEngineException):
    """Search engine did not answer within the configured timeout."""

    def __init__(self, operation: str, timeout_seconds: float) -> None:
        super().__init__(operation, f"timed out after {timeout_seconds}s")
        self.error_code = "SEARCH_ENGINE_TIMEOUT"


class BrokerException(TaskSearchException):
    """Event stream operation failed."""

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            f"Event broker {operation} failed: {reason}",
            "BROKER_ERROR",
            {"operation": operation, "reason": reason},
        )


class EntitySourceException(TaskSearchException):
    """System of record read API failed."""

    def __init__(self, entity_type: str, reason: str) -> None:
        super().__init__(
            f"Source read for {entity_type} failed: {reason}",
            "ENTITY_SOURCE_ERROR",
            {"entity_type": entity_type, "reason": reason},
        )
