"""
Debounce tracker for accidental double scans
"""

from datetime import datetime
from typing import Dict, Optional


class DebounceTracker:
    """
    Remembers the last accepted scan time per card number.

    Entries live for the lifetime of the process and are never evicted.
    Not synchronised; the owning AttendanceEngine serialises access.
    """

    def __init__(self, window_seconds: int = 30):
        self.window_seconds = window_seconds
        self._last_scan: Dict[str, datetime] = {}

    def last_scan(self, card_number: str) -> Optional[datetime]:
        return self._last_scan.get(card_number)

    def remaining(self, card_number: str, timestamp: datetime) -> Optional[int]:
        """
        Seconds left in the debounce window for a card.

        Returns:
            None if a scan at `timestamp` is allowed, otherwise the remaining
            whole seconds relative to the last accepted scan
        """
        last = self._last_scan.get(card_number)
        if last is None:
            return None

        elapsed = (timestamp - last).total_seconds()
        if elapsed >= self.window_seconds:
            return None
        return min(self.window_seconds, self.window_seconds - int(elapsed))

    def record(self, card_number: str, timestamp: datetime) -> None:
        self._last_scan[card_number] = timestamp

    def clear(self) -> None:
        self._last_scan.clear()

    def __contains__(self, card_number: str) -> bool:
        return card_number in self._last_scan

    def __len__(self) -> int:
        return len(self._last_scan)
