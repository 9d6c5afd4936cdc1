"""
State reconciler.

Replays decoded drive events, oldest first, into a snapshot of current
entities. Creation is first-write-wins on id; star, share and delete only
touch ids that are already known, and a delete frees the id for reuse.

Known limitation: the operation log reader only fetches a bounded window.
When a creation event has fallen out of that window, later star, share or
delete events for the same id find nothing to act on and are dropped. This
is left as-is; see DESIGN.md for the open question.
"""

from typing import Dict, Iterable, List

from common.logging_config import get_logger
from common.types import Entity, EntityKind, inline_content, unique_accounts
from drive.replication.operation_log import LedgerEvent
from drive.schemas.events import FileDeleteEvent, FileMetadataEvent, FileShareEvent, FileStarEvent

logger = get_logger(__name__)


class StateReconciler:
    """
    Replays events into an id -> Entity working map.

    Attributes:
        applied: Events that changed the working map during the last replay
        ignored: Events that were no-ops (unknown id, duplicate creation, unknown type)
    """

    def __init__(self):
        self.applied = 0
        self.ignored = 0

    def replay(self, events: Iterable[LedgerEvent]) -> List[Entity]:
        """
        Reconstruct current entities from an ordered event sequence.

        Args:
            events: Decoded events, already in chronological order

        Returns:
            Entities in the order they were first registered
        """
        self.applied = 0
        self.ignored = 0
        entities: Dict[str, Entity] = {}

        for event in events:
            try:
                changed = self._apply(entities, event)
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed event: {e}")
                changed = False

            if changed:
                self.applied += 1
            else:
                self.ignored += 1

        logger.debug(
            f"Replay finished [entities={len(entities)}, applied={self.applied}, ignored={self.ignored}]"
        )
        return list(entities.values())

    def _apply(self, entities: Dict[str, Entity], event: LedgerEvent) -> bool:
        payload = event.payload

        if isinstance(payload, FileMetadataEvent):
            return self._apply_metadata(entities, event, payload)
        elif isinstance(payload, FileStarEvent):
            entity = entities.get(payload.data.id)
            if entity is None:
                return False
            entities[entity.id] = entity.with_star(payload.data.starred)
            return True
        elif isinstance(payload, FileDeleteEvent):
            return entities.pop(payload.data.id, None) is not None
        elif isinstance(payload, FileShareEvent):
            entity = entities.get(payload.data.id)
            if entity is None:
                return False
            entities[entity.id] = entity.with_share(payload.data.shared_with)
            return True

        logger.warning(f"Unknown event payload type: {type(payload).__name__}")
        return False

    @staticmethod
    def _apply_metadata(entities: Dict[str, Entity], event: LedgerEvent, payload: FileMetadataEvent) -> bool:
        data = payload.data
        if data.id in entities:
            logger.debug(f"Duplicate creation for {data.id} at sequence {event.sequence}, ignoring")
            return False

        kind = EntityKind(data.kind)
        entities[data.id] = Entity(
            id=data.id,
            name=data.name,
            kind=kind,
            owner=event.author,
            created_at=data.created_at or event.timestamp,
            modified_at=data.modified_at or event.timestamp,
            size=data.size,
            mime_type=data.mime_type,
            parent_id=data.parent_id,
            starred=False,
            shared=data.shared,
            shared_with=unique_accounts(data.shared_with),
            content=inline_content(kind, data.size, data.content),
        )
        return True


def replay(events: Iterable[LedgerEvent]) -> List[Entity]:
    """Replay events with a fresh StateReconciler."""
    return StateReconciler().replay(events)
