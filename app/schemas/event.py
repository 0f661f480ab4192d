"""
Event-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel

class EventCreate(BaseModel):
    """Schema for creating an event"""
    name: str

class EventRename(BaseModel):
    """Schema for renaming an event"""
    name: str

class EventResponse(BaseModel):
    """Basic event response"""
    id: int
    name: str
    created_at: datetime
    
    class Config:
        from_attributes = True

class EventDetail(EventResponse):
    """Detailed event response with counts"""
    total_transactions: int
    checked_in_count: int
    distinct_cards: int

class BulkDeleteRequest(BaseModel):
    """Event ids to delete"""
    ids: List[int]

class DeleteOutcome(BaseModel):
    """Per-id result of a bulk delete"""
    event_id: int
    deleted: bool
    removed_transactions: int = 0
    error: Optional[str] = None
