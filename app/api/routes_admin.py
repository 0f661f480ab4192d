"""
Administrative API routes
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.schemas.attendance import ForceCloseResponse
from app.schemas.event import BulkDeleteRequest
from app.services.event_service import EventLifecycleManager
from app.utils.responses import success_response

router = APIRouter()

@router.post("/events/bulk-delete")
async def bulk_delete_events(request: BulkDeleteRequest, db: Session = Depends(get_db)):
    """Delete several events, reporting an outcome per id"""
    outcomes = EventLifecycleManager.bulk_delete(db, request.ids)
    deleted = sum(1 for outcome in outcomes if outcome.deleted)
    return success_response(
        message=f"Bulk deletion complete: {deleted} of {len(outcomes)} events deleted",
        data=outcomes
    )

@router.post("/force-close")
async def force_close_check_ins(db: Session = Depends(get_db)):
    """Check out every attendee of every event"""
    timestamp = datetime.now()
    count = EventLifecycleManager.force_close_all(db, timestamp)
    return success_response(
        message="All open check-ins have been marked as checked out",
        data=ForceCloseResponse(closed_count=count, timestamp=timestamp)
    )
