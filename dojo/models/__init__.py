from .grade import Grade
from .user import User
from .point_ledger import PointBalance
from .schedule import Location, TrainingSession
from .attendance import Attendance, AttendanceStatus
from .audit import AuditLog

__all__ = [
    "Grade",
    "User", "PointBalance",
    "Location", "TrainingSession",
    "Attendance", "AttendanceStatus",
    "AuditLog",
]
