"""ASGI middleware: request id and request timeout."""

from tasksearch.middleware.request_id import RequestIDMiddleware
from tasksearch.middleware.timeout import TimeoutMiddleware

__all__ = ["RequestIDMiddleware", "TimeoutMiddleware"]
