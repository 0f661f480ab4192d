"""
CSV export of event transactions
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple, Union
from urllib.parse import quote

import pandas as pd
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ExportError, NotFound
from app.services.repositories import EventRepo, TransactionRepo

logger = logging.getLogger(__name__)

# Characters rejected in file names on common platforms, plus control characters
INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

class ExportService:
    """Service for exporting attendance data"""

    COLUMNS = ['EventName', 'CardNumber', 'CheckInTime', 'CheckOutTime']
    TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

    @staticmethod
    def sanitize_event_name(name: str) -> str:
        """Strip characters invalid in file names and replace spaces with underscores"""
        cleaned = INVALID_FILENAME_CHARS.sub("", name).replace(" ", "_")
        return cleaned or "Event"

    @staticmethod
    def build_filename(event_name: str, now: Optional[datetime] = None) -> str:
        now = now or datetime.now()
        safe_name = ExportService.sanitize_event_name(event_name)
        return f"{safe_name}_Transactions_{now:%Y%m%d_%H%M%S}.csv"

    @staticmethod
    def _format_time(value: Optional[datetime]) -> str:
        return value.strftime(ExportService.TIME_FORMAT) if value else ""

    @staticmethod
    def content_disposition(filename: str) -> str:
        """Attachment header with an ASCII fallback and an RFC 5987 UTF-8 name"""
        fallback = filename.encode("ascii", "ignore").decode("ascii").replace(";", "_").replace(",", "_")
        return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"

    @staticmethod
    def load(db: Session, event_id: int) -> Tuple[str, pd.DataFrame]:
        """Event name and one row per transaction of the event, in recording order"""
        event = EventRepo.get(db, event_id)
        if not event:
            raise NotFound("Event", event_id)

        data = []
        for card_number, check_in_time, check_out_time in TransactionRepo.list_all(db, event_id):
            data.append({
                'EventName': event.name,
                'CardNumber': card_number,
                'CheckInTime': ExportService._format_time(check_in_time),
                'CheckOutTime': ExportService._format_time(check_out_time)
            })

        return event.name, pd.DataFrame(data, columns=ExportService.COLUMNS)

    @staticmethod
    def render_csv(db: Session, event_id: int) -> str:
        """Export content as a CSV string"""
        _, df = ExportService.load(db, event_id)
        return df.to_csv(index=False, lineterminator="\n")

    @staticmethod
    def render_download(db: Session, event_id: int, now: Optional[datetime] = None) -> Tuple[str, str]:
        """Filename and CSV content for an HTTP download"""
        event_name, df = ExportService.load(db, event_id)
        filename = ExportService.build_filename(event_name, now)
        return filename, df.to_csv(index=False, lineterminator="\n")

    @staticmethod
    def export_transactions(
        db: Session,
        event_id: int,
        export_dir: Optional[Union[str, Path]] = None,
        now: Optional[datetime] = None
    ) -> Path:
        """
        Write the event's transactions to a timestamped CSV file.

        Returns:
            Path of the written file

        Raises:
            NotFound: the event does not exist
            ExportError: the file could not be written; no partial file is left
        """
        event_name, df = ExportService.load(db, event_id)

        if df.empty:
            logger.warning(f"No transactions found for event {event_id}; exporting header only")

        directory = Path(export_dir or settings.EXPORT_DIR)
        file_path = directory / ExportService.build_filename(event_name, now)

        try:
            directory.mkdir(parents=True, exist_ok=True)
            df.to_csv(file_path, index=False, lineterminator="\n")
        except OSError as e:
            if file_path.exists():
                file_path.unlink()
            logger.error(f"Export failed for event {event_id}: {e}")
            raise ExportError(str(file_path), e.strerror or str(e)) from e

        logger.info(f"Exported {len(df)} transactions for event {event_id} to {file_path}")
        return file_path
