"""
Event and scanning API routes
"""

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.schemas.attendance import ScanRequest
from app.schemas.event import EventCreate, EventRename, EventResponse, EventDetail
from app.services.attendance_engine import AttendanceEngine, get_attendance_engine
from app.services.event_service import EventLifecycleManager
from app.services.export_service import ExportService
from app.services.reporting_service import ReportingService
from app.api.ws import websocket_manager
from app.utils.responses import success_response, error_response

router = APIRouter()

@router.get("/events")
async def list_events(db: Session = Depends(get_db)):
    """List events in creation order"""
    events = EventLifecycleManager.list(db)
    return success_response(
        message="Events retrieved",
        data=[EventResponse.model_validate(event) for event in events]
    )

@router.post("/events")
async def create_event(event_data: EventCreate, db: Session = Depends(get_db)):
    """Create a new event"""
    event = EventLifecycleManager.create(db, event_data.name)
    return success_response(
        message="Event created successfully",
        data=EventResponse.model_validate(event),
        status_code=201
    )

@router.get("/events/{event_id}")
async def get_event_details(event_id: int, db: Session = Depends(get_db)):
    """Get event information with attendance counts"""
    summary = ReportingService.event_summary(db, event_id)
    return success_response(
        message="Event details retrieved",
        data=EventDetail(**summary)
    )

@router.patch("/events/{event_id}")
async def rename_event(event_id: int, rename: EventRename, db: Session = Depends(get_db)):
    """Rename an event"""
    event = EventLifecycleManager.rename(db, event_id, rename.name)
    return success_response(
        message=f"Event {event_id} renamed to '{event.name}'",
        data=EventResponse.model_validate(event)
    )

@router.delete("/events/{event_id}")
async def delete_event(event_id: int, db: Session = Depends(get_db)):
    """Delete an event and all its transactions"""
    removed = EventLifecycleManager.delete(db, event_id)
    return success_response(
        message="Event deleted successfully",
        data={"deleted_event_id": event_id, "removed_transactions": removed}
    )

@router.post("/events/{event_id}/scans")
async def scan_card(
    event_id: int,
    scan: ScanRequest,
    db: Session = Depends(get_db),
    engine: AttendanceEngine = Depends(get_attendance_engine)
):
    """Check a card in or out and broadcast the result"""
    result = engine.process_scan(db, event_id, scan.card_number)

    if result.accepted:
        await websocket_manager.broadcast_scan(result)
        return success_response(message=result.message, data=result)

    status_code = 429 if result.remaining_seconds is not None else 422
    return error_response(
        message=result.message,
        error_code=result.reason.value,
        details=jsonable_encoder(result),
        status_code=status_code
    )

@router.get("/events/{event_id}/attendees")
async def live_attendees(event_id: int, db: Session = Depends(get_db)):
    """Credentials currently checked in"""
    attendees = ReportingService.live_attendees(db, event_id)
    return success_response(
        message=f"{len(attendees)} attendees currently checked in",
        data=attendees
    )

@router.get("/events/{event_id}/transactions")
async def list_transactions(event_id: int, db: Session = Depends(get_db)):
    """All attendance records of an event"""
    transactions = ReportingService.transactions(db, event_id)
    return success_response(
        message="Transactions retrieved",
        data=transactions
    )

@router.get("/events/{event_id}/export.csv")
async def export_csv(event_id: int, db: Session = Depends(get_db)):
    """Download the event's transactions as CSV"""
    filename, content = ExportService.render_download(db, event_id)

    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": ExportService.content_disposition(filename)}
    )
