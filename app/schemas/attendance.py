"""
Scan and attendance Pydantic schemas
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, computed_field

class ScanAction(str, Enum):
    """What an accepted scan did"""
    CHECK_IN = "CHECK_IN"
    CHECK_OUT = "CHECK_OUT"

class RejectReason(str, Enum):
    """Why a scan was rejected"""
    EMPTY_INPUT = "EMPTY_INPUT"
    TOO_SOON = "TOO_SOON"

class ScanRequest(BaseModel):
    """Card scan submitted for an event"""
    card_number: str

class ScanResult(BaseModel):
    """Outcome of a single scan"""
    accepted: bool
    event_id: int
    card_number: str
    timestamp: datetime
    action: Optional[ScanAction] = None
    reason: Optional[RejectReason] = None
    remaining_seconds: Optional[int] = None
    transaction_id: Optional[int] = None

    @computed_field
    @property
    def message(self) -> str:
        if self.action == ScanAction.CHECK_IN:
            return f"Check-In recorded at {self.timestamp:%Y-%m-%d %H:%M:%S}."
        if self.action == ScanAction.CHECK_OUT:
            return f"Check-Out recorded at {self.timestamp:%Y-%m-%d %H:%M:%S}."
        if self.reason == RejectReason.TOO_SOON:
            return f"Card was just scanned. Please wait {self.remaining_seconds} more seconds."
        return "Empty input ignored."

class AttendeeResponse(BaseModel):
    """Currently checked-in credential"""
    card_number: str
    check_in_time: datetime

class TransactionResponse(BaseModel):
    """Attendance record"""
    card_number: str
    check_in_time: datetime
    check_out_time: Optional[datetime] = None

class ForceCloseResponse(BaseModel):
    closed_count: int
    timestamp: datetime

class ScanSessionSummary(BaseModel):
    """Counters for one scan session"""
    check_ins: int = 0
    check_outs: int = 0
    rejected: int = 0
    errors: int = 0
    stopped: bool = False
    results: List[ScanResult] = []
