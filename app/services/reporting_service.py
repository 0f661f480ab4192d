"""
Read-only attendance projections
"""

from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.models import Event, Transaction
from app.schemas.attendance import AttendeeResponse, TransactionResponse
from app.services.repositories import EventRepo, TransactionRepo

class ReportingService:
    """Service for attendee lists and event statistics"""

    @staticmethod
    def _require_event(db: Session, event_id: int) -> Event:
        event = EventRepo.get(db, event_id)
        if not event:
            raise NotFound("Event", event_id)
        return event

    @staticmethod
    def live_attendees(db: Session, event_id: int) -> List[AttendeeResponse]:
        """Credentials currently checked in to an event, oldest first"""
        ReportingService._require_event(db, event_id)
        return [
            AttendeeResponse(card_number=card_number, check_in_time=check_in_time)
            for card_number, check_in_time in TransactionRepo.list_open(db, event_id)
        ]

    @staticmethod
    def transactions(db: Session, event_id: int) -> List[TransactionResponse]:
        ReportingService._require_event(db, event_id)
        return [
            TransactionResponse(
                card_number=card_number,
                check_in_time=check_in_time,
                check_out_time=check_out_time
            )
            for card_number, check_in_time, check_out_time in TransactionRepo.list_all(db, event_id)
        ]

    @staticmethod
    def event_summary(db: Session, event_id: int) -> Dict:
        """Event details with attendance counts"""
        event = ReportingService._require_event(db, event_id)

        total = db.query(Transaction).filter(Transaction.event_id == event_id).count()
        checked_in = db.query(Transaction).filter(
            Transaction.event_id == event_id,
            Transaction.check_out_time.is_(None)
        ).count()
        distinct_cards = db.query(func.count(func.distinct(Transaction.card_number))).filter(
            Transaction.event_id == event_id
        ).scalar()

        return {
            "id": event.id,
            "name": event.name,
            "created_at": event.created_at,
            "total_transactions": total,
            "checked_in_count": checked_in,
            "distinct_cards": distinct_cards or 0
        }
