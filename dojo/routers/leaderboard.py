from datetime import MAXYEAR, date, datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from dojo.config import settings
from dojo.db import get_session
from dojo.models import Attendance, Grade, User
from dojo.schemas.student import FeaturedStudentOut, GradeOut
from dojo.services.leaderboard import featured, featured_for_month
from dojo.store import EntityStore

router = APIRouter()

def _is_admin(user: User) -> bool:
    return user.role == settings.ADMIN_ROLE

def _row(user: User, points: int, grades: dict) -> FeaturedStudentOut:
    grade = grades.get(user.current_grade_id)
    return FeaturedStudentOut(
        student_id=user.id,
        name=user.display_name,
        points=points,
        grade=GradeOut.model_validate(grade) if grade else None,
    )

@router.get("/featured", response_model=List[FeaturedStudentOut])
def featured_students(year: Optional[int] = Query(None, ge=1, le=MAXYEAR), session: Session = Depends(get_session)):
    year = year or date.today().year
    users = EntityStore(session, User).list()
    grades = {g.id: g for g in EntityStore(session, Grade).list()}
    return [_row(u, u.points_by_year.get(year, 0), grades) for u in featured(users, year, exclude=_is_admin)]

@router.get("/monthly", response_model=List[FeaturedStudentOut])
def featured_this_month(
    # the month after December must still be a valid datetime
    year: Optional[int] = Query(None, ge=1, le=MAXYEAR - 1),
    month: Optional[int] = Query(None, ge=1, le=12),
    session: Session = Depends(get_session),
):
    # attendance timestamps are UTC
    now = datetime.utcnow()
    year = year if year is not None else now.year
    month = month if month is not None else now.month
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    attendances = EntityStore(session, Attendance).filter(Attendance.created_at >= start, Attendance.created_at < end)
    users = EntityStore(session, User)
    grades = {g.id: g for g in EntityStore(session, Grade).list()}
    rows = []
    for student_id, points in featured_for_month(attendances, year, month):
        user = users.get(student_id)
        if user:
            rows.append(_row(user, points, grades))
    return rows
