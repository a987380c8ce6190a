from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class GradeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order: int
    name: str
    colors: List[str] = []
    points_required: int


class ProgressionOut(BaseModel):
    student_id: int
    year: int
    points: int
    current: Optional[GradeOut] = None
    next: Optional[GradeOut] = None
    eligible: Optional[GradeOut] = None
    points_to_go: int
    percent: float
    max_grade_reached: bool


class ProfileUpdateForm(BaseModel):
    actor: str
    grade_id: Optional[int] = None
    role: Optional[str] = None
    training_location: Optional[str] = None


class FeaturedStudentOut(BaseModel):
    student_id: int
    name: str
    points: int
    grade: Optional[GradeOut] = None


class DashboardOut(BaseModel):
    total_students: int
    total_sessions: int
    average_points: int
    monthly_attendance: int
    upcoming_sessions: List["UpcomingSessionOut"]


class UpcomingSessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    date_time: datetime


DashboardOut.model_rebuild()
