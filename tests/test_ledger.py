import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from dojo.exceptions import ConflictError, NotFoundError, StoreError, ValidationError
from dojo.models import AuditLog, PointBalance
from dojo.services.ledger import PointLedger
from dojo.store import EntityStore

from .conftest import add_student


@pytest.fixture
def student(session):
    return add_student(session, "Ana")


def audit_count(session):
    return len(session.exec(select(AuditLog)).all())


def test_apply_delta_starts_missing_year_at_zero(session, student):
    ledger = PointLedger(session)
    assert ledger.apply_delta(student.id, 2025, 1) == 1
    assert ledger.apply_delta(student.id, 2025, 1) == 2
    assert ledger.points_for(student.id, 2024) == 0
    session.refresh(student)
    assert student.points_by_year == {2025: 2}
    assert audit_count(session) == 0


def test_apply_delta_cannot_go_negative(session, student):
    ledger = PointLedger(session)
    ledger.apply_delta(student.id, 2025, 2)
    with pytest.raises(ValidationError):
        ledger.apply_delta(student.id, 2025, -3)
    assert ledger.points_for(student.id, 2025) == 2
    assert ledger.apply_delta(student.id, 2025, -2) == 0


def test_zero_delta_writes_nothing(session, student):
    ledger = PointLedger(session)
    assert ledger.apply_delta(student.id, 2025, 0) == 0
    assert session.exec(select(PointBalance)).all() == []


def test_set_absolute_records_one_audit_entry(session, student):
    ledger = PointLedger(session)
    ledger.apply_delta(student.id, 2025, 4)

    entry = ledger.set_absolute(student.id, 2025, 10, actor="mestre@example.com", reason="Batizado bonus")
    assert (entry.field, entry.old_value, entry.new_value) == ("points", "4", "10")
    assert entry.reason == "Batizado bonus"
    assert entry.actor == "mestre@example.com"
    assert ledger.points_for(student.id, 2025) == 10
    assert audit_count(session) == 1


def test_set_absolute_to_current_value_is_a_no_op(session, student):
    ledger = PointLedger(session)
    ledger.apply_delta(student.id, 2025, 4)
    balance = session.exec(select(PointBalance)).one()
    version = balance.version

    assert ledger.set_absolute(student.id, 2025, 4, actor="mestre", reason="recount") is None
    assert audit_count(session) == 0
    session.refresh(balance)
    assert balance.version == version


def test_set_absolute_can_zero_a_year(session, student):
    ledger = PointLedger(session)
    ledger.apply_delta(student.id, 2025, 3)
    entry = ledger.set_absolute(student.id, 2025, 0, actor="mestre")
    assert entry.reason == "Points change for 2025 by mestre"
    assert ledger.points_for(student.id, 2025) == 0


def test_set_absolute_rejects_negative(session, student):
    with pytest.raises(ValidationError):
        PointLedger(session).set_absolute(student.id, 2025, -1, actor="mestre")


def test_stale_version_is_a_conflict(session, student):
    store = EntityStore(session, PointBalance)
    balance = store.create({"user_id": student.id, "year": 2025, "points": 3})
    store.update(balance.id, {"points": 4}, expected_version=0)
    with pytest.raises(ConflictError):
        store.update(balance.id, {"points": 9}, expected_version=0)
    assert store.get(balance.id).points == 4
    assert store.get(balance.id).version == 1


def test_lost_race_is_retried_with_a_fresh_read(session, student, monkeypatch):
    ledger = PointLedger(session)
    ledger.apply_delta(student.id, 2025, 1)
    real_update = ledger.store.update
    calls = []

    def racing_update(entity_id, fields, *, expected_version=None):
        calls.append(expected_version)
        if len(calls) == 1:
            # another writer lands between our read and our write
            real_update(entity_id, {"points": 5}, expected_version=expected_version)
        return real_update(entity_id, fields, expected_version=expected_version)

    monkeypatch.setattr(ledger.store, "update", racing_update)
    assert ledger.apply_delta(student.id, 2025, 1) == 6
    assert calls == [0, 1]


def test_persistent_conflict_surfaces_after_one_retry(session, student, monkeypatch):
    ledger = PointLedger(session)
    ledger.apply_delta(student.id, 2025, 1)
    calls = []

    def always_conflict(entity_id, fields, *, expected_version=None):
        calls.append(expected_version)
        raise ConflictError("someone else wrote first")

    monkeypatch.setattr(ledger.store, "update", always_conflict)
    with pytest.raises(ConflictError):
        ledger.set_absolute(student.id, 2025, 9, actor="mestre")
    assert len(calls) == 2
    assert audit_count(session) == 0


def test_backend_failure_is_wrapped(session, student, monkeypatch):
    store = EntityStore(session, PointBalance)

    def broken_commit():
        raise OperationalError("UPDATE point_balances", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "commit", broken_commit)
    with pytest.raises(StoreError) as excinfo:
        store.create({"user_id": student.id, "year": 2025, "points": 1})
    assert excinfo.value.kind == "PointBalance"
    assert excinfo.value.operation == "create"


def test_missing_row_on_update_and_delete(session):
    store = EntityStore(session, PointBalance)
    with pytest.raises(NotFoundError):
        store.update(404, {"points": 1})
    with pytest.raises(NotFoundError):
        store.delete(404)
