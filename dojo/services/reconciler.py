from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence, Union

from dojo.exceptions import ValidationError
from dojo.models import AttendanceStatus

log = logging.getLogger(__name__)

StatusLike = Union[AttendanceStatus, str, None]


@dataclass(frozen=True)
class CreateAttendance:
    session_id: int
    student_id: int
    status: AttendanceStatus
    points_earned: int
    points_year: Optional[int] = None

    def fields(self) -> dict:
        return {
            "session_id": self.session_id,
            "student_id": self.student_id,
            "status": self.status,
            "points_earned": self.points_earned,
            "points_year": self.points_year,
        }


@dataclass(frozen=True)
class UpdateAttendance:
    record_id: int
    student_id: int
    old_status: AttendanceStatus
    status: AttendanceStatus


@dataclass(frozen=True)
class DeleteAttendance:
    record_id: int
    student_id: int


@dataclass
class ReconcilePlan:
    session_id: int
    to_create: list[CreateAttendance] = field(default_factory=list)
    to_update: list[UpdateAttendance] = field(default_factory=list)
    to_delete: list[DeleteAttendance] = field(default_factory=list)
    point_deltas: dict[int, int] = field(default_factory=dict)
    # ledger year per student delta; students missing here use the save's year
    delta_years: dict[int, int] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.to_create or self.to_update or self.to_delete or self.point_deltas)

    def year_for(self, student_id: int, default: int) -> int:
        return self.delta_years.get(student_id, default)

    def _add_delta(self, student_id: int, delta: int, year: Optional[int] = None) -> None:
        total = self.point_deltas.get(student_id, 0) + delta
        if total:
            self.point_deltas[student_id] = total
            if year is not None:
                self.delta_years[student_id] = year
        else:
            self.point_deltas.pop(student_id, None)
            self.delta_years.pop(student_id, None)


def coerce_status(value: StatusLike) -> AttendanceStatus:
    if value is None or value == "":
        return AttendanceStatus.UNSET
    if isinstance(value, AttendanceStatus):
        return value
    try:
        return AttendanceStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown attendance status {value!r}") from None


def roster_for_session(students: Iterable, session, locations: Iterable) -> list:
    """Students training at the session's location, matched by location name.

    The match is on the student's free-text training_location, so moving a
    student changes which sessions (past or future) list them.
    """
    location = next((loc for loc in locations if loc.id == session.location_id), None)
    if location is None:
        log.warning("Session %s points at unknown location %s; roster is empty", session.id, session.location_id)
        return []
    return [s for s in students if s.training_location == location.name]


def _index_existing(existing: Sequence, session_id: int) -> dict:
    counts = Counter(r.student_id for r in existing)
    duplicated = sorted(sid for sid, n in counts.items() if n > 1)
    if duplicated:
        raise ValidationError(f"Session {session_id} has more than one attendance record for students {duplicated}")
    foreign = [r.id for r in existing if r.session_id != session_id]
    if foreign:
        raise ValidationError(f"Attendance records {foreign} do not belong to session {session_id}")
    return {r.student_id: r for r in existing}


def _booked_year(record) -> Optional[int]:
    year = getattr(record, "points_year", None)
    if year is None and getattr(record, "created_at", None) is not None:
        year = record.created_at.year
    return year


def reconcile(
    existing: Sequence,
    roster: Iterable,
    desired: Mapping[int, StatusLike],
    *,
    session_id: int,
    points_earned: int = 1,
    clawback_on_edit: bool = False,
    year: Optional[int] = None,
) -> ReconcilePlan:
    """
    Diff the desired attendance sheet against what is stored for one session.

    Points are settled when a record is created: a new PRESENT record earns
    `points_earned`, ABSENT earns nothing, and the record remembers `year` as
    the ledger year it was booked against. Later status edits and deletions
    leave points alone unless `clawback_on_edit` is set, in which case a
    record's contribution always tracks its current status, booked against
    the record's own year.
    """
    if session_id is None:
        raise ValidationError("A session is required to reconcile attendance")
    if points_earned < 0:
        raise ValidationError("points_earned cannot be negative")

    by_student = _index_existing(existing, session_id)
    wanted = {sid: coerce_status(value) for sid, value in desired.items()}
    plan = ReconcilePlan(session_id=session_id)
    seen: set[int] = set()

    for student in roster:
        sid = student.id
        if sid in seen:
            continue
        seen.add(sid)
        status = wanted.get(sid, AttendanceStatus.UNSET)
        record = by_student.get(sid)

        if record is None:
            if status is AttendanceStatus.UNSET:
                continue
            plan.to_create.append(CreateAttendance(session_id, sid, status, points_earned, year))
            if status is AttendanceStatus.PRESENT:
                plan._add_delta(sid, points_earned, year)
            continue

        stored = coerce_status(record.status)
        earned = record.points_earned if record.points_earned is not None else 1
        if status is AttendanceStatus.UNSET:
            plan.to_delete.append(DeleteAttendance(record.id, sid))
            if clawback_on_edit and stored is AttendanceStatus.PRESENT:
                plan._add_delta(sid, -earned, _booked_year(record))
        elif status is not stored:
            plan.to_update.append(UpdateAttendance(record.id, sid, stored, status))
            if clawback_on_edit:
                delta = earned if status is AttendanceStatus.PRESENT else -earned
                plan._add_delta(sid, delta, _booked_year(record))

    stray = sorted(set(wanted) - seen)
    if stray:
        log.info("Ignoring statuses for students not on the roster of session %s: %s", session_id, stray)
    return plan
