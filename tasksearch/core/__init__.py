"""Core: configuration, constants, lifespan, exception handlers, rate limits."""

from tasksearch.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
