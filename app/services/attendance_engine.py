"""
Attendance engine: turns card scans into check-ins and check-outs.

Each (event, card) pair is a two-state machine. A scan with no open
transaction checks the card in; a scan with an open transaction checks it
out. A debounce window keyed by card number alone rejects repeated scans
that arrive too soon after the last accepted one.
"""

import logging
import threading
from datetime import datetime
from functools import lru_cache
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.schemas.attendance import ScanAction, RejectReason, ScanResult
from app.services.debounce import DebounceTracker
from app.services.repositories import TransactionRepo

logger = logging.getLogger(__name__)


class AttendanceEngine:
    """
    Processes scans for events.

    Usage:
        engine = AttendanceEngine()
        result = engine.process_scan(db, event_id=1, card_number="CARD1")
    """

    def __init__(
        self,
        tracker: Optional[DebounceTracker] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Args:
            tracker: Debounce tracker owned by this engine. A new one using
                settings.DEBOUNCE_SECONDS is created if not provided.
            clock: Source of scan timestamps when none is passed in
        """
        self.tracker = tracker or DebounceTracker(settings.DEBOUNCE_SECONDS)
        self.clock = clock
        # Held across the debounce check and the store read/write
        self._lock = threading.Lock()

    def process_scan(
        self,
        db: Session,
        event_id: int,
        card_number: str,
        timestamp: Optional[datetime] = None
    ) -> ScanResult:
        """
        Record a scan of `card_number` for `event_id`.

        Returns:
            ScanResult, accepted with CHECK_IN/CHECK_OUT or rejected with
            EMPTY_INPUT/TOO_SOON

        Raises:
            NotFound: the event does not exist
            StorageUnavailable: the store failed; the debounce entry is
                still updated
        """
        card_number = (card_number or "").strip()
        timestamp = timestamp or self.clock()

        if not card_number:
            return ScanResult(
                accepted=False,
                event_id=event_id,
                card_number=card_number,
                timestamp=timestamp,
                reason=RejectReason.EMPTY_INPUT
            )

        with self._lock:
            remaining = self.tracker.remaining(card_number, timestamp)
            if remaining is not None:
                logger.info(f"[SCAN] {card_number} rejected, {remaining}s left in debounce window")
                return ScanResult(
                    accepted=False,
                    event_id=event_id,
                    card_number=card_number,
                    timestamp=timestamp,
                    reason=RejectReason.TOO_SOON,
                    remaining_seconds=remaining
                )

            self.tracker.record(card_number, timestamp)

            open_transaction = TransactionRepo.find_open(db, event_id, card_number)
            if open_transaction:
                transaction = TransactionRepo.set_check_out(db, open_transaction.id, timestamp)
                action = ScanAction.CHECK_OUT
            else:
                transaction = TransactionRepo.insert_check_in(db, event_id, card_number, timestamp)
                action = ScanAction.CHECK_IN

        logger.info(f"[SCAN] {action.value} event={event_id} card={card_number} at {timestamp}")

        return ScanResult(
            accepted=True,
            event_id=event_id,
            card_number=card_number,
            timestamp=timestamp,
            action=action,
            transaction_id=transaction.id
        )


@lru_cache(maxsize=1)
def get_attendance_engine() -> AttendanceEngine:
    """Process-wide engine shared by every scan surface"""
    return AttendanceEngine()
