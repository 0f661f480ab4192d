"""
Event lifecycle operations: create, rename, delete, bulk delete, force close
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import AttendanceError, InvalidEventName
from app.models import Event
from app.schemas.event import DeleteOutcome
from app.services.repositories import EventRepo, TransactionRepo

logger = logging.getLogger(__name__)

class EventLifecycleManager:
    """Service for administrative event operations"""

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        name = (name or "").strip()
        if not name:
            raise InvalidEventName()
        return name

    @staticmethod
    def create(db: Session, name: str) -> Event:
        """Create a new event with a unique, non-empty name"""
        event = EventRepo.create(db, EventLifecycleManager._clean_name(name))
        logger.info(f"Event created: {event.name} (id={event.id})")
        return event

    @staticmethod
    def list(db: Session) -> List[Event]:
        return EventRepo.list(db)

    @staticmethod
    def rename(db: Session, event_id: int, new_name: str) -> Event:
        event = EventRepo.rename(db, event_id, EventLifecycleManager._clean_name(new_name))
        logger.info(f"Event {event_id} renamed to '{event.name}'")
        return event

    @staticmethod
    def delete(db: Session, event_id: int) -> int:
        """Delete an event and its transactions; returns the number of transactions removed"""
        removed = EventRepo.delete(db, event_id)
        logger.info(f"Event {event_id} deleted with {removed} transactions")
        return removed

    @staticmethod
    def bulk_delete(db: Session, event_ids: Iterable[int]) -> List[DeleteOutcome]:
        """
        Delete each event independently.

        A failure for one id is recorded in its outcome and does not stop
        the remaining deletions.
        """
        outcomes = []
        for event_id in event_ids:
            try:
                removed = EventLifecycleManager.delete(db, event_id)
                outcomes.append(DeleteOutcome(
                    event_id=event_id,
                    deleted=True,
                    removed_transactions=removed
                ))
            except AttendanceError as e:
                logger.warning(f"Bulk delete skipped event {event_id}: {e.message}")
                outcomes.append(DeleteOutcome(
                    event_id=event_id,
                    deleted=False,
                    error=e.message
                ))
        return outcomes

    @staticmethod
    def force_close_all(db: Session, timestamp: Optional[datetime] = None) -> int:
        """Check out every open transaction across all events"""
        timestamp = timestamp or datetime.now()
        count = TransactionRepo.force_close_all_open(db, timestamp)
        logger.info(f"Force closed {count} open check-ins at {timestamp}")
        return count

    @staticmethod
    def parse_id_list(text: str) -> List[int]:
        """Parse comma-separated event ids, skipping tokens that are not integers"""
        ids = []
        for token in (text or "").split(","):
            token = token.strip()
            try:
                ids.append(int(token))
            except ValueError:
                continue
        return ids
