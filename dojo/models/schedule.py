from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
from sqlmodel import Field, SQLModel, Relationship

if TYPE_CHECKING:
    from .attendance import Attendance


class Location(SQLModel, table=True):
    __tablename__ = "locations"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True)
    address: Optional[str] = None

    sessions: List["TrainingSession"] = Relationship(back_populates="location")


class TrainingSession(SQLModel, table=True):
    __tablename__ = "sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    date_time: datetime = Field(index=True)
    location_id: int = Field(foreign_key="locations.id")
    level: Optional[str] = None

    location: Optional[Location] = Relationship(back_populates="sessions")
    attendance: List["Attendance"] = Relationship(back_populates="session")
