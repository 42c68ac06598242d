from typing import Any, Dict
from datetime import datetime
from sqlmodel import SQLModel

from app.db.schema import EventType


class EventRead(SQLModel):
    id: int
    event_type: EventType
    payload: Dict[str, Any]
    created_at: datetime
