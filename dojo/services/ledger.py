from __future__ import annotations

import logging
from typing import Callable, Optional

from sqlmodel import Session

from dojo.config import settings
from dojo.exceptions import ConflictError, ValidationError
from dojo.models import AuditLog, PointBalance
from dojo.services.audit import AuditRecorder
from dojo.store import EntityStore

log = logging.getLogger(__name__)


class PointLedger:
    """
    Per-student, per-year point totals.

    Writes are conditional on the balance row's version, so two writers on the
    same (student, year) cannot silently overwrite each other. A lost race is
    retried with a fresh read `retries` times before ConflictError reaches the
    caller.
    """

    def __init__(self, session: Session, audit: Optional[AuditRecorder] = None, retries: Optional[int] = None):
        self.store = EntityStore(session, PointBalance)
        self.audit = audit or AuditRecorder(session)
        self.retries = settings.CONFLICT_RETRIES if retries is None else retries

    def _balance(self, student_id: int, year: int) -> Optional[PointBalance]:
        rows = self.store.filter(user_id=student_id, year=year)
        return rows[0] if rows else None

    def points_for(self, student_id: int, year: int) -> int:
        balance = self._balance(student_id, year)
        return balance.points if balance else 0

    def _write(self, student_id: int, year: int, compute: Callable[[int], Optional[int]]) -> tuple[int, int]:
        """Read-modify-write one balance. Returns (old, new); `compute` returning None skips the write."""
        attempt = 0
        while True:
            balance = self._balance(student_id, year)
            old = balance.points if balance else 0
            new = compute(old)
            if new is None or new == old:
                return old, old
            try:
                if balance is None:
                    self.store.create({"user_id": student_id, "year": year, "points": new})
                else:
                    self.store.update(balance.id, {"points": new}, expected_version=balance.version)
                return old, new
            except ConflictError:
                if attempt >= self.retries:
                    log.warning("Giving up on points for user %s/%s after %d conflicts", student_id, year, attempt + 1)
                    raise
                attempt += 1
                log.warning("Concurrent write on points for user %s/%s; retrying", student_id, year)

    def apply_delta(self, student_id: int, year: int, delta: int) -> int:
        """Add `delta` to the year's total and return the new total. Not audited."""
        if delta == 0:
            return self.points_for(student_id, year)

        def compute(old: int) -> int:
            new = old + delta
            if new < 0:
                raise ValidationError(f"Points for user {student_id} in {year} cannot go below zero ({old} {delta:+d})")
            return new

        _, new = self._write(student_id, year, compute)
        return new

    def set_absolute(self, student_id: int, year: int, new_value: int, actor: str, reason: Optional[str] = None) -> Optional[AuditLog]:
        """Admin override of a year's total. Returns the audit entry, or None when nothing changed."""
        if new_value < 0:
            raise ValidationError("Points cannot be negative")

        old, new = self._write(student_id, year, lambda old: new_value)
        if old == new:
            return None
        return self.audit.record(
            target_user_id=student_id,
            field="points",
            old_value=old,
            new_value=new,
            reason=reason or f"Points change for {year} by {actor}",
            actor=actor,
        )
