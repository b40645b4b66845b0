"""Index event: the message that drives search index synchronization.

Immutable and fire-and-forget. Serialized with camelCase keys so that any
producer in the wider system can emit it without sharing this package.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from tasksearch.core.constants import BULK_REINDEX_ENTITY_ID
from tasksearch.domain.enums import EntityType, IndexEventType
from tasksearch.domain.exceptions import InvalidIndexEventException
from tasksearch.shared.utils.datetime import ensure_utc, utc_now
from tasksearch.shared.utils.generators import generate_event_id


@dataclass(frozen=True)
class IndexEvent:
    """Create/update/delete/bulk-reindex notification for one entity."""

    event_type: IndexEventType
    entity_type: EntityType
    entity_id: str
    triggered_by_user_id: int | None = None
    emitted_at: datetime = field(default_factory=utc_now)
    event_id: str = field(default_factory=generate_event_id)

    @classmethod
    def bulk_reindex(cls, entity_type: EntityType) -> IndexEvent:
        """Event asking the consumer to reindex every entity of `entity_type`."""
        return cls(
            event_type=IndexEventType.BULK_REINDEX,
            entity_type=entity_type,
            entity_id=BULK_REINDEX_ENTITY_ID,
        )

    @property
    def partition_key(self) -> str:
        """Ordering key: events for the same entity id share a partition."""
        return self.entity_id

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON publish."""
        return {
            "eventId": self.event_id,
            "eventType": self.event_type.value,
            "entityType": self.entity_type.value,
            "entityId": self.entity_id,
            "triggeredByUserId": self.triggered_by_user_id,
            "emittedAt": self.emitted_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IndexEvent:
        """Deserialize from a broker message.

        Raises:
            InvalidIndexEventException: If a required key is missing or a
                value is not one of the known enum members.
        """
        try:
            event_type = IndexEventType(data["eventType"])
            entity_type = EntityType(data["entityType"])
            entity_id = str(data["entityId"])
        except KeyError as e:
            raise InvalidIndexEventException(f"missing key {e.args[0]!r}") from e
        except ValueError as e:
            raise InvalidIndexEventException(str(e)) from e

        user_id = data.get("triggeredByUserId")
        try:
            triggered_by = int(user_id) if user_id is not None else None
        except (TypeError, ValueError) as e:
            raise InvalidIndexEventException(
                f"triggeredByUserId is not an integer: {user_id!r}"
            ) from e

        emitted_raw = data.get("emittedAt")
        try:
            emitted_at = (
                ensure_utc(datetime.fromisoformat(emitted_raw))
                if emitted_raw
                else utc_now()
            )
        except (TypeError, ValueError) as e:
            raise InvalidIndexEventException(
                f"emittedAt is not an ISO timestamp: {emitted_raw!r}"
            ) from e

        return cls(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            triggered_by_user_id=triggered_by,
            emitted_at=emitted_at,
            event_id=str(data.get("eventId") or generate_event_id()),
        )
