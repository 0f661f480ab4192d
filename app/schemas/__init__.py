"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .attendance import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "EventCreate",
    "EventRename",
    "EventResponse",
    "EventDetail",
    "BulkDeleteRequest",
    "DeleteOutcome",
    "ScanAction",
    "RejectReason",
    "ScanRequest",
    "ScanResult",
    "AttendeeResponse",
    "TransactionResponse",
    "ForceCloseResponse",
    "ScanSessionSummary",
]
