"""
Tests for check-in/check-out scan processing
"""

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.db import Base
from app.core.errors import NotFound, StorageUnavailable
from app.models import Transaction
from app.schemas.attendance import ScanAction, RejectReason
from app.services.attendance_engine import AttendanceEngine
from app.services.debounce import DebounceTracker
from app.services.event_service import EventLifecycleManager
from app.services.repositories import TransactionRepo

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_engine.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

T0 = datetime(2025, 3, 1, 18, 0, 0)

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def gala(db_session):
    return EventLifecycleManager.create(db_session, "Gala")

@pytest.fixture
def scanner():
    return AttendanceEngine(tracker=DebounceTracker(window_seconds=30))

def open_transactions(db, event_id, card_number):
    return db.query(Transaction).filter(
        Transaction.event_id == event_id,
        Transaction.card_number == card_number,
        Transaction.check_out_time.is_(None)
    ).all()

def test_first_scan_checks_in(db_session, gala, scanner):
    result = scanner.process_scan(db_session, gala.id, "CARD1", T0)

    assert result.accepted
    assert result.action == ScanAction.CHECK_IN
    assert result.transaction_id is not None

    open_rows = open_transactions(db_session, gala.id, "CARD1")
    assert len(open_rows) == 1
    assert open_rows[0].check_in_time == T0

def test_gala_scenario(db_session, gala, scanner):
    """Check in, rejected double scan, check out, then delete the event"""
    first = scanner.process_scan(db_session, gala.id, "CARD1", T0)
    assert first.action == ScanAction.CHECK_IN

    too_soon = scanner.process_scan(db_session, gala.id, "CARD1", T0 + timedelta(seconds=10))
    assert not too_soon.accepted
    assert too_soon.reason == RejectReason.TOO_SOON
    assert too_soon.remaining_seconds == 20

    checkout = scanner.process_scan(db_session, gala.id, "CARD1", T0 + timedelta(seconds=31))
    assert checkout.accepted
    assert checkout.action == ScanAction.CHECK_OUT
    assert checkout.transaction_id == first.transaction_id

    transaction = db_session.query(Transaction).filter(Transaction.id == first.transaction_id).first()
    assert transaction.check_out_time == T0 + timedelta(seconds=31)

    gala_id = gala.id
    EventLifecycleManager.delete(db_session, gala_id)
    assert db_session.query(Transaction).filter(Transaction.id == first.transaction_id).first() is None
    assert TransactionRepo.list_all(db_session, gala_id) == []

def test_scans_alternate_when_spaced_out(db_session, gala, scanner):
    actions = []
    for i in range(6):
        result = scanner.process_scan(db_session, gala.id, "CARD1", T0 + timedelta(seconds=30 * i))
        actions.append(result.action)

    assert actions == [
        ScanAction.CHECK_IN, ScanAction.CHECK_OUT,
        ScanAction.CHECK_IN, ScanAction.CHECK_OUT,
        ScanAction.CHECK_IN, ScanAction.CHECK_OUT,
    ]
    assert db_session.query(Transaction).filter(Transaction.event_id == gala.id).count() == 3
    assert open_transactions(db_session, gala.id, "CARD1") == []

def test_rejection_does_not_move_debounce_window(db_session, gala, scanner):
    scanner.process_scan(db_session, gala.id, "CARD1", T0)

    for offset, expected in [(5, 25), (15, 15), (25, 5)]:
        result = scanner.process_scan(db_session, gala.id, "CARD1", T0 + timedelta(seconds=offset))
        assert result.reason == RejectReason.TOO_SOON
        assert result.remaining_seconds == expected

    assert scanner.tracker.last_scan("CARD1") == T0

    # 30s after the original accepted scan, not after the last rejected one
    result = scanner.process_scan(db_session, gala.id, "CARD1", T0 + timedelta(seconds=30))
    assert result.action == ScanAction.CHECK_OUT

def test_debounce_applies_across_events(db_session, gala, scanner):
    afterparty = EventLifecycleManager.create(db_session, "Afterparty")

    scanner.process_scan(db_session, gala.id, "CARD1", T0)
    result = scanner.process_scan(db_session, afterparty.id, "CARD1", T0 + timedelta(seconds=5))

    assert result.reason == RejectReason.TOO_SOON
    assert open_transactions(db_session, afterparty.id, "CARD1") == []

def test_same_card_tracked_per_event(db_session, gala, scanner):
    afterparty = EventLifecycleManager.create(db_session, "Afterparty")

    scanner.process_scan(db_session, gala.id, "CARD1", T0)
    result = scanner.process_scan(db_session, afterparty.id, "CARD1", T0 + timedelta(seconds=40))

    assert result.action == ScanAction.CHECK_IN
    assert len(open_transactions(db_session, gala.id, "CARD1")) == 1
    assert len(open_transactions(db_session, afterparty.id, "CARD1")) == 1

def test_empty_input_is_ignored(db_session, gala, scanner):
    for card in ["", "   ", None]:
        result = scanner.process_scan(db_session, gala.id, card, T0)
        assert not result.accepted
        assert result.reason == RejectReason.EMPTY_INPUT

    assert len(scanner.tracker) == 0
    assert db_session.query(Transaction).count() == 0

def test_card_number_is_stripped(db_session, gala, scanner):
    scanner.process_scan(db_session, gala.id, "  CARD1\n", T0)
    assert len(open_transactions(db_session, gala.id, "CARD1")) == 1

def test_at_most_one_open_transaction(db_session, gala, scanner):
    cards = ["CARD1", "CARD2", "CARD3"]
    for i in range(8):
        for card in cards:
            scanner.process_scan(db_session, gala.id, card, T0 + timedelta(seconds=17 * i))
            for check_card in cards:
                assert len(open_transactions(db_session, gala.id, check_card)) <= 1

def test_store_rejects_second_open_row(db_session, gala):
    TransactionRepo.insert_check_in(db_session, gala.id, "CARD1", T0)

    with pytest.raises(StorageUnavailable):
        TransactionRepo.insert_check_in(db_session, gala.id, "CARD1", T0 + timedelta(seconds=1))

    assert len(open_transactions(db_session, gala.id, "CARD1")) == 1

def test_default_timestamp_comes_from_clock(db_session, gala):
    scanner = AttendanceEngine(tracker=DebounceTracker(30), clock=lambda: T0)
    result = scanner.process_scan(db_session, gala.id, "CARD1")

    assert result.timestamp == T0
    assert scanner.tracker.last_scan("CARD1") == T0

def test_scan_for_missing_event(db_session, scanner):
    with pytest.raises(NotFound):
        scanner.process_scan(db_session, 999, "CARD1", T0)

def test_store_error_still_updates_debounce(db_session, gala, scanner, monkeypatch):
    def failing_find_open(db, event_id, card_number):
        raise StorageUnavailable("find open transaction")

    monkeypatch.setattr(TransactionRepo, "find_open", staticmethod(failing_find_open))

    with pytest.raises(StorageUnavailable):
        scanner.process_scan(db_session, gala.id, "CARD1", T0)

    assert scanner.tracker.last_scan("CARD1") == T0
    monkeypatch.undo()

    result = scanner.process_scan(db_session, gala.id, "CARD1", T0 + timedelta(seconds=3))
    assert result.reason == RejectReason.TOO_SOON

def test_result_messages(db_session, gala, scanner):
    checkin = scanner.process_scan(db_session, gala.id, "CARD1", T0)
    rejected = scanner.process_scan(db_session, gala.id, "CARD1", T0 + timedelta(seconds=10))

    assert checkin.message == "Check-In recorded at 2025-03-01 18:00:00."
    assert rejected.message == "Card was just scanned. Please wait 20 more seconds."
