"""
Tests for event lifecycle operations
"""

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.core.db import Base
from app.core.errors import DuplicateName, InvalidEventName, NotFound, StorageUnavailable
from app.models import Event, Transaction
from app.services.event_service import EventLifecycleManager
from app.services.repositories import EventRepo, TransactionRepo

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_events.db"
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
def events_with_transactions(db_session):
    """Two events, each with an open and a closed transaction"""
    gala = EventLifecycleManager.create(db_session, "Gala")
    expo = EventLifecycleManager.create(db_session, "Expo")

    for event in (gala, expo):
        closed = TransactionRepo.insert_check_in(db_session, event.id, "CARD1", T0)
        TransactionRepo.set_check_out(db_session, closed.id, T0 + timedelta(minutes=5))
        TransactionRepo.insert_check_in(db_session, event.id, "CARD2", T0 + timedelta(minutes=1))

    return gala.id, expo.id

def test_create_event(db_session):
    event = EventLifecycleManager.create(db_session, "  Gala  ")

    assert event.id is not None
    assert event.name == "Gala"
    assert event.created_at is not None

def test_create_rejects_empty_name(db_session):
    with pytest.raises(InvalidEventName):
        EventLifecycleManager.create(db_session, "   ")
    assert db_session.query(Event).count() == 0

def test_create_rejects_duplicate_name(db_session):
    EventLifecycleManager.create(db_session, "Gala")

    with pytest.raises(DuplicateName):
        EventLifecycleManager.create(db_session, "Gala")

    # Session is usable after the rollback
    assert [e.name for e in EventLifecycleManager.list(db_session)] == ["Gala"]

def test_list_events_in_creation_order(db_session):
    for name in ["Gala", "Expo", "Concert"]:
        EventLifecycleManager.create(db_session, name)

    events = EventLifecycleManager.list(db_session)
    assert [e.name for e in events] == ["Gala", "Expo", "Concert"]
    assert [e.id for e in events] == sorted(e.id for e in events)

def test_rename_event(db_session):
    event = EventLifecycleManager.create(db_session, "Gala")
    renamed = EventLifecycleManager.rename(db_session, event.id, "Winter Gala")

    assert renamed.id == event.id
    assert EventRepo.get(db_session, event.id).name == "Winter Gala"

def test_rename_errors(db_session):
    gala = EventLifecycleManager.create(db_session, "Gala")
    EventLifecycleManager.create(db_session, "Expo")

    with pytest.raises(NotFound):
        EventLifecycleManager.rename(db_session, 999, "Anything")
    with pytest.raises(DuplicateName):
        EventLifecycleManager.rename(db_session, gala.id, "Expo")
    with pytest.raises(InvalidEventName):
        EventLifecycleManager.rename(db_session, gala.id, "")

    assert EventRepo.get(db_session, gala.id).name == "Gala"

def test_delete_cascades_to_transactions(db_session, events_with_transactions):
    gala_id, expo_id = events_with_transactions

    removed = EventLifecycleManager.delete(db_session, gala_id)

    assert removed == 2
    assert EventRepo.get(db_session, gala_id) is None
    assert TransactionRepo.list_all(db_session, gala_id) == []
    assert len(TransactionRepo.list_all(db_session, expo_id)) == 2

def test_delete_missing_event_leaves_store_unchanged(db_session, events_with_transactions):
    with pytest.raises(NotFound):
        EventLifecycleManager.delete(db_session, 999)

    assert db_session.query(Event).count() == 2
    assert db_session.query(Transaction).count() == 4

def test_delete_rolls_back_on_storage_fault(db_session, events_with_transactions, monkeypatch):
    gala_id, _ = events_with_transactions
    original_commit = db_session.commit

    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db_session, "commit", failing_commit)
    with pytest.raises(StorageUnavailable):
        EventLifecycleManager.delete(db_session, gala_id)
    monkeypatch.setattr(db_session, "commit", original_commit)

    assert EventRepo.get(db_session, gala_id) is not None
    assert len(TransactionRepo.list_all(db_session, gala_id)) == 2

def test_bulk_delete_continues_past_failures(db_session, events_with_transactions):
    gala_id, expo_id = events_with_transactions

    outcomes = EventLifecycleManager.bulk_delete(db_session, [gala_id, 999, expo_id])

    assert [o.event_id for o in outcomes] == [gala_id, 999, expo_id]
    assert [o.deleted for o in outcomes] == [True, False, True]
    assert outcomes[0].removed_transactions == 2
    assert "not found" in outcomes[1].error
    assert db_session.query(Event).count() == 0
    assert db_session.query(Transaction).count() == 0

def test_force_close_closes_only_open_rows(db_session, events_with_transactions):
    gala_id, expo_id = events_with_transactions
    closed_at = T0 + timedelta(hours=3)

    count = EventLifecycleManager.force_close_all(db_session, closed_at)

    assert count == 2
    for event_id in (gala_id, expo_id):
        rows = {card: checkout for card, _, checkout in TransactionRepo.list_all(db_session, event_id)}
        assert rows["CARD1"] == T0 + timedelta(minutes=5)
        assert rows["CARD2"] == closed_at
        assert TransactionRepo.list_open(db_session, event_id) == []

def test_force_close_with_nothing_open(db_session):
    assert EventLifecycleManager.force_close_all(db_session, T0) == 0

@pytest.mark.parametrize("text,expected", [
    ("1,2,3", [1, 2, 3]),
    (" 4 , x, 5,,", [4, 5]),
    ("", []),
])
def test_parse_id_list(text, expected):
    assert EventLifecycleManager.parse_id_list(text) == expected
