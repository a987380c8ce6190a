from typing import Optional, TYPE_CHECKING
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import UniqueConstraint

if TYPE_CHECKING:
    from .user import User
    from .schedule import TrainingSession


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    UNSET = "unset"  # never persisted


class Attendance(SQLModel, table=True):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("session_id", "student_id", name="uq_attendance_unique"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="sessions.id", index=True)
    student_id: int = Field(foreign_key="users.id", index=True)
    status: AttendanceStatus
    points_earned: int = 1  # settled at creation
    points_year: Optional[int] = None  # ledger year the points were booked against
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: Optional[datetime] = None

    session: "TrainingSession" = Relationship(back_populates="attendance")
    student: "User" = Relationship(back_populates="attendances")

    def __repr__(self):
        return f"<Attendance id={self.id} session_id={self.session_id} student_id={self.student_id} status={self.status}>"
