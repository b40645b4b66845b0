"""tasksearch: search index synchronization and authorization-aware search."""

__version__ = "1.0.0"
