from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from dojo.config import settings
from dojo.models import AttendanceStatus


@dataclass(frozen=True)
class DashboardStats:
    total_students: int
    total_sessions: int
    average_points: int
    monthly_attendance: int
    upcoming_sessions: list


def dashboard_stats(
    users: Sequence,
    sessions: Sequence,
    attendances: Sequence,
    *,
    now: datetime,
    admin_role: Optional[str] = None,
    upcoming: int = 5,
) -> DashboardStats:
    admin_role = admin_role or settings.ADMIN_ROLE
    students = [u for u in users if u.role != admin_role]
    if students:
        mean = sum((s.points_by_year or {}).get(now.year, 0) for s in students) / len(students)
        average = math.floor(mean + 0.5)
    else:
        average = 0

    monthly_attendance = sum(
        1
        for a in attendances
        if a.status == AttendanceStatus.PRESENT
        and a.created_at.year == now.year
        and a.created_at.month == now.month
    )
    return DashboardStats(
        total_students=len(students),
        total_sessions=len(sessions),
        average_points=average,
        monthly_attendance=monthly_attendance,
        upcoming_sessions=sorted((s for s in sessions if s.date_time > now), key=lambda s: s.date_time)[:upcoming],
    )
