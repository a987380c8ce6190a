from __future__ import annotations

import logging
from typing import Optional

from sqlmodel import Session

from dojo.config import settings
from dojo.exceptions import NotFoundError, ValidationError
from dojo.models import AuditLog, Grade, User
from dojo.services.audit import AuditRecorder
from dojo.services.ledger import PointLedger
from dojo.store import EntityStore

log = logging.getLogger(__name__)


class ProfileOverrides:
    """Admin edits to a student's profile. Every effective change leaves one audit entry."""

    def __init__(self, session: Session, ledger: Optional[PointLedger] = None):
        self.users = EntityStore(session, User)
        self.grades = EntityStore(session, Grade)
        self.audit = AuditRecorder(session)
        self.ledger = ledger or PointLedger(session, self.audit)

    def _student(self, student_id: int) -> User:
        student = self.users.get(student_id)
        if student is None:
            raise NotFoundError(f"User {student_id} not found")
        return student

    def _change(self, student: User, field: str, new_value, reason: str, actor: str) -> Optional[AuditLog]:
        old_value = getattr(student, field)
        if old_value == new_value:
            return None
        self.users.update(student.id, {field: new_value})
        return self.audit.record(student.id, field, old_value, new_value, reason, actor)

    def assign_grade(self, student_id: int, grade_id: Optional[int], actor: str) -> Optional[AuditLog]:
        student = self._student(student_id)
        if grade_id is not None and self.grades.get(grade_id) is None:
            raise NotFoundError(f"Grade {grade_id} not found")
        verb = "change" if grade_id is not None else "removal"
        return self._change(student, "current_grade_id", grade_id, f"Grade {verb} by {actor}", actor)

    def set_profile_type(self, student_id: int, role: str, actor: str) -> Optional[AuditLog]:
        if role not in (settings.ADMIN_ROLE, settings.STUDENT_ROLE):
            raise ValidationError(f"Unknown profile type {role!r}")
        student = self._student(student_id)
        return self._change(student, "role", role, f"Profile change by {actor}", actor)

    def set_training_location(self, student_id: int, location: Optional[str], actor: str) -> Optional[AuditLog]:
        student = self._student(student_id)
        location = (location or "").strip() or None
        return self._change(student, "training_location", location, f"Training location change by {actor}", actor)

    def set_points(self, student_id: int, year: int, points: int, actor: str, reason: Optional[str] = None) -> Optional[AuditLog]:
        self._student(student_id)
        return self.ledger.set_absolute(student_id, year, points, actor, reason)
