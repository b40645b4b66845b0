"""Domain exceptions for the search subsystem.

Defines domain-level exceptions independent of infrastructure concerns.
Presentation layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class TaskSearchException(Exception):
    """Base exception for all search service errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, entity_type).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(TaskSearchException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class SearchUnavailableException(TaskSearchException):
    """Raised by single-entity search when the search engine cannot answer.

    Composed searches never raise this; they degrade the failing entity
    type to an empty page instead.
    """

    def __init__(self, entity_type: str, reason: str) -> None:
        """Initialize with the entity type that failed and the cause.

        Args:
            entity_type: Entity type whose query failed (e.g. 'TASK').
            reason: Short description of the underlying failure.
        """
        super().__init__(
            f"Search temporarily unavailable for {entity_type.lower()}s",
            "SERVICE_UNAVAILABLE",
            {"entity_type": entity_type, "reason": reason},
        )


class InvalidIndexEventException(TaskSearchException):
    """Raised when an index event payload cannot be decoded."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"Invalid index event: {reason}",
            "INVALID_INDEX_EVENT",
            {"reason": reason},
        )


class DocumentMappingException(TaskSearchException):
    """Raised when an entity cannot be projected into a search document."""

    def __init__(self, entity_type: str, entity_id: str, reason: str) -> None:
        """Initialize with the entity that failed to map.

        Args:
            entity_type: Entity type value (e.g. 'TASK').
            entity_id: Identifier of the entity.
            reason: Which relation or field was missing or invalid.
        """
        super().__init__(
            f"Cannot map {entity_type} {entity_id} to a search document: {reason}",
            "DOCUMENT_MAPPING_ERROR",
            {"entity_type": entity_type, "entity_id": entity_id, "reason": reason},
        )


class SearchBackendException(TaskSearchException):
    """Base for failures talking to the search engine.

    Infrastructure raises subclasses; the application layer catches this
    type to decide between degrading and surfacing the error.
    """
