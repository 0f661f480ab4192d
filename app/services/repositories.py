"""
Repository layer over the relational store (events and their transactions).

Every function takes the SQLAlchemy session explicitly and commits its own
unit of work. Integrity violations are translated into the application's
error taxonomy; any other SQLAlchemy fault is rolled back and surfaced as
StorageUnavailable.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import DuplicateName, NotFound, StorageUnavailable
from app.models import Event, Transaction

logger = logging.getLogger(__name__)


def _storage_fault(db: Session, operation: str, exc: Exception) -> StorageUnavailable:
    db.rollback()
    logger.error(f"Storage error during {operation}: {exc}")
    return StorageUnavailable(operation)


# -------- Event repository --------

class EventRepo:
    @staticmethod
    def get(db: Session, event_id: int) -> Optional[Event]:
        try:
            return db.query(Event).filter(Event.id == event_id).first()
        except SQLAlchemyError as e:
            raise _storage_fault(db, "get event", e) from e

    @staticmethod
    def list(db: Session) -> List[Event]:
        try:
            return db.query(Event).order_by(Event.id).all()
        except SQLAlchemyError as e:
            raise _storage_fault(db, "list events", e) from e

    @staticmethod
    def create(db: Session, name: str) -> Event:
        event = Event(name=name)
        try:
            db.add(event)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise DuplicateName(name) from e
        except SQLAlchemyError as e:
            raise _storage_fault(db, "create event", e) from e
        db.refresh(event)
        return event

    @staticmethod
    def rename(db: Session, event_id: int, new_name: str) -> Event:
        event = EventRepo.get(db, event_id)
        if not event:
            raise NotFound("Event", event_id)
        event.name = new_name
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise DuplicateName(new_name) from e
        except SQLAlchemyError as e:
            raise _storage_fault(db, "rename event", e) from e
        db.refresh(event)
        return event

    @staticmethod
    def delete(db: Session, event_id: int) -> int:
        """
        Delete an event and all its transactions as one atomic unit.

        Returns:
            Number of transactions removed with the event
        """
        try:
            exists = db.query(Event.id).filter(Event.id == event_id).first()
            if not exists:
                raise NotFound("Event", event_id)

            removed = db.query(Transaction).filter(
                Transaction.event_id == event_id
            ).delete(synchronize_session=False)
            db.query(Event).filter(Event.id == event_id).delete(synchronize_session=False)

            db.commit()
        except SQLAlchemyError as e:
            raise _storage_fault(db, "delete event", e) from e

        db.expire_all()
        return removed


# -------- Transaction repository --------

class TransactionRepo:
    @staticmethod
    def find_open(db: Session, event_id: int, card_number: str) -> Optional[Transaction]:
        try:
            return db.query(Transaction).filter(
                Transaction.event_id == event_id,
                Transaction.card_number == card_number,
                Transaction.check_out_time.is_(None)
            ).first()
        except SQLAlchemyError as e:
            raise _storage_fault(db, "find open transaction", e) from e

    @staticmethod
    def insert_check_in(db: Session, event_id: int, card_number: str, timestamp: datetime) -> Transaction:
        transaction = Transaction(
            event_id=event_id,
            card_number=card_number,
            check_in_time=timestamp
        )
        try:
            db.add(transaction)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if not db.query(Event.id).filter(Event.id == event_id).first():
                raise NotFound("Event", event_id) from e
            raise _storage_fault(db, "insert check-in", e) from e
        except SQLAlchemyError as e:
            raise _storage_fault(db, "insert check-in", e) from e
        db.refresh(transaction)
        return transaction

    @staticmethod
    def set_check_out(db: Session, transaction_id: int, timestamp: datetime) -> Transaction:
        try:
            transaction = db.query(Transaction).filter(Transaction.id == transaction_id).first()
            if not transaction:
                raise NotFound("Transaction", transaction_id)
            transaction.check_out_time = timestamp
            db.commit()
        except SQLAlchemyError as e:
            raise _storage_fault(db, "set check-out", e) from e
        db.refresh(transaction)
        return transaction

    @staticmethod
    def force_close_all_open(db: Session, timestamp: datetime) -> int:
        """Set check_out_time on every open transaction across all events"""
        try:
            count = db.query(Transaction).filter(
                Transaction.check_out_time.is_(None)
            ).update({Transaction.check_out_time: timestamp}, synchronize_session=False)
            db.commit()
        except SQLAlchemyError as e:
            raise _storage_fault(db, "force close", e) from e
        db.expire_all()
        return count

    @staticmethod
    def list_open(db: Session, event_id: int):
        """(card_number, check_in_time) for everyone currently checked in"""
        try:
            return db.query(Transaction.card_number, Transaction.check_in_time).filter(
                Transaction.event_id == event_id,
                Transaction.check_out_time.is_(None)
            ).order_by(Transaction.check_in_time, Transaction.id).all()
        except SQLAlchemyError as e:
            raise _storage_fault(db, "list open transactions", e) from e

    @staticmethod
    def list_all(db: Session, event_id: int):
        """(card_number, check_in_time, check_out_time) for every transaction of an event"""
        try:
            return db.query(
                Transaction.card_number,
                Transaction.check_in_time,
                Transaction.check_out_time
            ).filter(Transaction.event_id == event_id).order_by(Transaction.id).all()
        except SQLAlchemyError as e:
            raise _storage_fault(db, "list transactions", e) from e
