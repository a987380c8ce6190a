from typing import Dict, List, Optional, TYPE_CHECKING
from datetime import datetime
from sqlmodel import Field, SQLModel, Relationship

if TYPE_CHECKING:
    from .grade import Grade
    from .point_ledger import PointBalance
    from .attendance import Attendance


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    full_name: str
    nickname: Optional[str] = None
    role: str = "student"  # student|admin
    training_location: Optional[str] = Field(default=None, index=True)
    current_grade_id: Optional[int] = Field(default=None, foreign_key="grades.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    current_grade: Optional["Grade"] = Relationship()
    balances: List["PointBalance"] = Relationship(back_populates="user")
    attendances: List["Attendance"] = Relationship(back_populates="student")

    @property
    def display_name(self) -> str:
        return self.nickname or self.full_name

    @property
    def points_by_year(self) -> Dict[int, int]:
        return {b.year: b.points for b in self.balances}

    def __repr__(self):
        return f"<User id={self.id} {self.full_name} role={self.role}>"
