from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session
from dojo.db import get_session
from dojo.schemas.attendance import PlanOut, SaveAttendanceForm, SessionOut, SheetRow
from dojo.services.attendance_service import AttendanceService

router = APIRouter()

@router.get("/sessions", response_model=List[SessionOut])
def sessions_for_day(day: Optional[date] = None, session: Session = Depends(get_session)):
    return AttendanceService(session).sessions_on(day or date.today())

@router.get("/sessions/{session_id}/sheet", response_model=List[SheetRow])
def attendance_sheet(session_id: int, session: Session = Depends(get_session)):
    rows = AttendanceService(session).sheet(session_id)
    return [SheetRow(student_id=s.id, name=s.display_name, status=status) for s, status in rows]

@router.post("/sessions/{session_id}", response_model=PlanOut)
def save_attendance(session_id: int, form: SaveAttendanceForm, session: Session = Depends(get_session)):
    plan = AttendanceService(session).save(session_id, form.statuses, year=form.year)
    return PlanOut.from_plan(plan)
