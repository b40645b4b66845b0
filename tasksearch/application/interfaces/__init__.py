"""Application interfaces (ports): engine, source, history and publisher protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from tasksearch.infrastructure or tasksearch.api.
"""

from tasksearch.application.interfaces.repositories import IEntitySource, ISearchEngine
from tasksearch.application.interfaces.services import (
    IHistoryStore,
    IIndexEventPublisher,
)

__all__ = [
    "IEntitySource",
    "IHistoryStore",
    "IIndexEventPublisher",
    "ISearchEngine",
]
