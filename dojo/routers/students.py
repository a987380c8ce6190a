from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from dojo.db import get_session
from dojo.models import Grade, User
from dojo.schemas.point import AuditEntryOut
from dojo.schemas.student import GradeOut, ProfileUpdateForm, ProgressionOut
from dojo.services.audit import AuditRecorder
from dojo.services.grade_ladder import resolve_progression
from dojo.services.overrides import ProfileOverrides
from dojo.store import EntityStore

router = APIRouter()

def _grade_out(grade: Optional[Grade]) -> Optional[GradeOut]:
    return GradeOut.model_validate(grade) if grade is not None else None

@router.get("/{student_id}/progression", response_model=ProgressionOut)
def progression(student_id: int, year: Optional[int] = None, session: Session = Depends(get_session)):
    student = session.get(User, student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    ladder = EntityStore(session, Grade).list(order_by="order")
    result = resolve_progression(student, ladder, year or date.today().year)
    return ProgressionOut(
        student_id=student.id,
        year=result.year,
        points=result.points,
        current=_grade_out(result.current),
        next=_grade_out(result.next),
        eligible=_grade_out(result.eligible),
        points_to_go=result.points_to_go,
        percent=result.percent,
        max_grade_reached=result.max_grade_reached,
    )

@router.patch("/{student_id}/profile", response_model=List[AuditEntryOut])
def update_profile(student_id: int, form: ProfileUpdateForm, session: Session = Depends(get_session)):
    overrides = ProfileOverrides(session)
    # Only fields present in the body are touched; an explicit null grade_id removes the grade
    changed = form.model_fields_set
    entries = []
    if "grade_id" in changed:
        entries.append(overrides.assign_grade(student_id, form.grade_id, form.actor))
    if "role" in changed and form.role is not None:
        entries.append(overrides.set_profile_type(student_id, form.role, form.actor))
    if "training_location" in changed:
        entries.append(overrides.set_training_location(student_id, form.training_location, form.actor))
    return [AuditEntryOut.model_validate(e) for e in entries if e is not None]

@router.get("/{student_id}/audit", response_model=List[AuditEntryOut])
def audit_history(student_id: int, session: Session = Depends(get_session)):
    return AuditRecorder(session).history(student_id)
