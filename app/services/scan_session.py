"""
Line-oriented scan intake loop
"""

import logging
from typing import Callable, Iterable, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFound, StorageUnavailable
from app.schemas.attendance import ScanAction, ScanResult, ScanSessionSummary
from app.services.attendance_engine import AttendanceEngine

logger = logging.getLogger(__name__)

class ScanSession:
    """
    Feeds credential lines to the attendance engine until the stop keyword.

    Empty lines are skipped before reaching the engine. End of input, or the
    event disappearing from the store, also ends the session.
    """

    def __init__(self, engine: AttendanceEngine, stop_keyword: Optional[str] = None):
        self.engine = engine
        self.stop_keyword = (stop_keyword or settings.STOP_KEYWORD).strip().lower()

    def is_stop(self, line: str) -> bool:
        return line.strip().lower() == self.stop_keyword

    def run(
        self,
        db: Session,
        event_id: int,
        lines: Iterable[str],
        on_result: Optional[Callable[[ScanResult], None]] = None
    ) -> ScanSessionSummary:
        summary = ScanSessionSummary()
        logger.info(f"Scan session started for event {event_id}")

        for line in lines:
            card_number = line.strip()
            if self.is_stop(card_number):
                summary.stopped = True
                break
            if not card_number:
                continue

            try:
                result = self.engine.process_scan(db, event_id, card_number)
            except StorageUnavailable as e:
                summary.errors += 1
                logger.error(f"Scan of {card_number} failed: {e.message}")
                continue
            except NotFound as e:
                # Event deleted mid-session; later scans cannot be recorded either
                summary.errors += 1
                logger.error(f"Scan session for event {event_id} aborted: {e.message}")
                break

            summary.results.append(result)
            if not result.accepted:
                summary.rejected += 1
            elif result.action == ScanAction.CHECK_IN:
                summary.check_ins += 1
            else:
                summary.check_outs += 1

            if on_result:
                on_result(result)

        logger.info(
            f"Scan session ended for event {event_id}: "
            f"{summary.check_ins} in, {summary.check_outs} out, {summary.rejected} rejected"
        )
        return summary
