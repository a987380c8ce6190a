from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from functools import partial
from typing import Callable, Mapping, Optional

from sqlmodel import Session

from dojo.config import settings
from dojo.exceptions import DomainError, NotFoundError
from dojo.models import Attendance, AttendanceStatus, Location, TrainingSession, User
from dojo.services.ledger import PointLedger
from dojo.services.reconciler import ReconcilePlan, StatusLike, reconcile, roster_for_session
from dojo.store import EntityStore

log = logging.getLogger(__name__)


class AttendanceService:
    def __init__(self, session: Session, ledger: Optional[PointLedger] = None):
        self.sessions = EntityStore(session, TrainingSession)
        self.locations = EntityStore(session, Location)
        self.users = EntityStore(session, User)
        self.attendance = EntityStore(session, Attendance)
        self.ledger = ledger or PointLedger(session)

    def sessions_on(self, day: date) -> list[TrainingSession]:
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        return self.sessions.filter(
            TrainingSession.date_time >= start,
            TrainingSession.date_time < end,
            order_by="date_time",
        )

    def _training(self, session_id: int) -> TrainingSession:
        training = self.sessions.get(session_id)
        if training is None:
            raise NotFoundError(f"Session {session_id} not found")
        return training

    def _roster(self, training: TrainingSession) -> list[User]:
        students = self.users.filter(role=settings.STUDENT_ROLE, order_by="full_name")
        return roster_for_session(students, training, self.locations.list())

    def roster(self, session_id: int) -> list[User]:
        return self._roster(self._training(session_id))

    def sheet(self, session_id: int) -> list[tuple[User, AttendanceStatus]]:
        """Roster of the session with each student's stored status (UNSET when none)."""
        training = self._training(session_id)
        stored = {a.student_id: a.status for a in self.attendance.filter(session_id=session_id)}
        return [(s, stored.get(s.id, AttendanceStatus.UNSET)) for s in self._roster(training)]


    def save(self, session_id: int, desired: Mapping[int, StatusLike], year: Optional[int] = None) -> ReconcilePlan:
        """
        Bring stored attendance for a session in line with `desired` and award points.

        Each student's record is written and then that student's points are
        applied, so one student's failure leaves the others credited. Running
        it again with the same sheet is a no-op for every student whose record
        landed.
        """
        training = self._training(session_id)
        year = year or date.today().year
        plan = reconcile(
            self.attendance.filter(session_id=session_id),
            self._roster(training),
            desired,
            session_id=session_id,
            points_earned=settings.DEFAULT_POINTS_EARNED,
            clawback_on_edit=settings.CLAWBACK_ON_EDIT,
            year=year,
        )
        if plan.is_empty:
            log.debug("Attendance for session %s already up to date", session_id)
            return plan
        self.dispatch(plan, year)
        return plan

    def _record_writes(self, plan: ReconcilePlan) -> list[tuple[int, Callable[[], object]]]:
        now = datetime.utcnow()
        writes = [(op.student_id, partial(self.attendance.create, op.fields())) for op in plan.to_create]
        writes += [
            (op.student_id, partial(self.attendance.update, op.record_id, {"status": op.status, "updated_at": now}))
            for op in plan.to_update
        ]
        writes += [(op.student_id, partial(self.attendance.delete, op.record_id)) for op in plan.to_delete]
        return writes

    def dispatch(self, plan: ReconcilePlan, year: int) -> None:
        log.info(
            "Session %s: %d created, %d updated, %d deleted, points for %d students",
            plan.session_id, len(plan.to_create), len(plan.to_update), len(plan.to_delete), len(plan.point_deltas),
        )
        # Students are independent; try them all before reporting
        failures: list[DomainError] = []
        for student_id, write in self._record_writes(plan):
            try:
                write()
            except DomainError as exc:
                log.exception("Could not write attendance for user %s in session %s", student_id, plan.session_id)
                failures.append(exc)
                continue
            delta = plan.point_deltas.get(student_id)
            if not delta:
                continue
            booked = plan.year_for(student_id, year)
            try:
                self.ledger.apply_delta(student_id, booked, delta)
            except DomainError as exc:
                log.exception("Could not apply %+d points to user %s for %s", delta, student_id, booked)
                failures.append(exc)
        if failures:
            raise failures[0]
