from datetime import datetime
from fastapi import APIRouter, Depends
from sqlmodel import Session
from dojo.db import get_session
from dojo.models import Attendance, TrainingSession, User
from dojo.schemas.student import DashboardOut, UpcomingSessionOut
from dojo.services.stats import dashboard_stats
from dojo.store import EntityStore

router = APIRouter()

@router.get("", response_model=DashboardOut)
def dashboard(session: Session = Depends(get_session)):
    stats = dashboard_stats(
        EntityStore(session, User).list(),
        EntityStore(session, TrainingSession).list(),
        EntityStore(session, Attendance).list(),
        now=datetime.utcnow(),
    )
    return DashboardOut(
        total_students=stats.total_students,
        total_sessions=stats.total_sessions,
        average_points=stats.average_points,
        monthly_attendance=stats.monthly_attendance,
        upcoming_sessions=[UpcomingSessionOut.model_validate(s) for s in stats.upcoming_sessions],
    )
