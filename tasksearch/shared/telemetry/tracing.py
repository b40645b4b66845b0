"""Span helpers for the search and indexing use cases.

Spans are no-ops until telemetry is set up (see telemetry.py), so these
helpers are safe to call from tests and scripts.
"""

from collections.abc import Awaitable, Callable
from contextlib import AbstractContextManager
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

P = ParamSpec("P")
T = TypeVar("T")

_tracer = trace.get_tracer("tasksearch")

# Keyword arguments recorded as span attributes. Search terms are never recorded.
_SPAN_ARG_KEYS = frozenset({
    "entity_type", "entity_id", "event_type", "user_id", "page_request",
    "limit", "scope", "index",
})


def _record_error(span: trace.Span, exc: BaseException) -> None:
    span.set_status(Status(StatusCode.ERROR, str(exc)))
    span.record_exception(exc)


def traced(
    operation_name: str,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Run the decorated coroutine function inside a span named operation_name."""

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            with _tracer.start_as_current_span(operation_name) as span:
                for key, value in kwargs.items():
                    if key in _SPAN_ARG_KEYS and value is not None:
                        span.set_attribute(f"arg.{key}", str(value))
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    _record_error(span, e)
                    raise

        return wrapper

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Add attributes to the current span (ignored when nothing is recording)."""
    span = trace.get_current_span()
    if span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)


class TracedOperation:
    """Context manager making a named span current for its body.

    Used where the body handles its own errors and reports an outcome
    through set_attribute rather than raising.
    """

    def __init__(self, operation_name: str, attributes: dict[str, Any] | None = None) -> None:
        self.operation_name = operation_name
        self.attributes = attributes or {}
        self._manager: AbstractContextManager[trace.Span] | None = None
        self.span: trace.Span | None = None

    def __enter__(self) -> "TracedOperation":
        self._manager = _tracer.start_as_current_span(
            self.operation_name,
            attributes=self.attributes,
            record_exception=False,
            set_status_on_exception=False,
        )
        self.span = self._manager.__enter__()
        return self

    def set_attribute(self, key: str, value: str | int | float | bool) -> None:
        if self.span is not None:
            self.span.set_attribute(key, value)

    def __exit__(
        self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        if self.span is not None and exc_val is not None:
            _record_error(self.span, exc_val)
        if self._manager is not None:
            self._manager.__exit__(exc_type, exc_val, exc_tb)
