from typing import List
from fastapi import APIRouter, Depends, Query

from app.core.dependencies import get_event_service
from app.services.events import EventService
from app.models.event import EventRead

router = APIRouter()


@router.get(
    "/",
    response_model=List[EventRead],
    summary="Notification Feed",
    description="Events in emission order. Pass the last seen id as `after_id` to poll for new ones."
)
def list_events(
    after_id: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    service: EventService = Depends(get_event_service)
):
    return service.list_events(after_id=after_id, limit=limit)
