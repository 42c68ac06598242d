from typing import Any, List
from loguru import logger

from app.db.schema import EventType, ProvenanceEvent
from app.db.store import ProvenanceStore


class EventService:
    """
    Writes notifications to the outbox. Events are staged in the caller's
    transaction, so a rolled-back mutation never announces anything.
    """

    def __init__(self, store: ProvenanceStore):
        self.store = store

    def emit(self, event_type: EventType, **payload: Any) -> ProvenanceEvent:
        event = ProvenanceEvent(event_type=event_type, payload=payload)
        self.store.add_event(event)
        logger.info(f"Event {event_type.value}: {payload}")
        return event

    def list_events(self, after_id: int = 0, limit: int = 100) -> List[ProvenanceEvent]:
        return self.store.list_events(after_id=after_id, limit=limit)
