from fastapi import APIRouter, Depends, Response
from sqlmodel import Session
from dojo.db import get_session
from dojo.exceptions import NotFoundError
from dojo.models import User
from dojo.schemas.point import AuditEntryOut, BalanceOut, PointAdjustmentForm, PointOverrideForm
from dojo.services.ledger import PointLedger
from dojo.services.overrides import ProfileOverrides
from dojo.store import EntityStore

router = APIRouter()

@router.post("/{student_id}/override")
def override_points(student_id: int, form: PointOverrideForm, session: Session = Depends(get_session)):
    entry = ProfileOverrides(session).set_points(student_id, form.year, form.points, form.actor, form.reason)
    if entry is None:
        return Response(status_code=204)
    return AuditEntryOut.model_validate(entry)

@router.post("/{student_id}/adjust", response_model=BalanceOut)
def adjust_points(student_id: int, form: PointAdjustmentForm, session: Session = Depends(get_session)):
    if EntityStore(session, User).get(student_id) is None:
        raise NotFoundError(f"User {student_id} not found")
    points = PointLedger(session).apply_delta(student_id, form.year, form.delta)
    return BalanceOut(student_id=student_id, year=form.year, points=points)
