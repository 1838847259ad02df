from fastapi import APIRouter

from forum import db
from forum.dependencies import AdminGuard
from forum.errors import NotFoundError
from forum.models.catalog import EventAnalytics

router = APIRouter(tags=["analytics"])


@router.get("/admin/events/{event_id}/analytics", response_model=EventAnalytics)
async def event_analytics(event_id: int, _admin: AdminGuard) -> EventAnalytics:
    analytics = await db.get_event_analytics(event_id)
    if analytics is None:
        raise NotFoundError("Event not found", resource_type="event", resource_id=str(event_id))
    return EventAnalytics(**analytics)
