"""
Transaction model - one attendance record per check-in
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship

from app.core.db import Base

class Transaction(Base):
    __tablename__ = "transactions"
    
    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    card_number = Column(String(255), nullable=False, index=True)
    check_in_time = Column(DateTime, nullable=False)
    check_out_time = Column(DateTime, nullable=True)  # NULL while checked in
    
    # Relationships
    event = relationship("Event", back_populates="transactions")

    # At most one open transaction per (event, card)
    __table_args__ = (
        Index(
            "uq_transactions_open_card",
            "event_id",
            "card_number",
            unique=True,
            sqlite_where=text("check_out_time IS NULL"),
            postgresql_where=text("check_out_time IS NULL"),
        ),
    )

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None

    def __repr__(self):
        return f"<Transaction(id={self.id}, event={self.event_id}, card={self.card_number}, open={self.is_open})>"
