from typing import List, Optional
from sqlmodel import Field, SQLModel
from sqlalchemy import JSON, Column


class Grade(SQLModel, table=True):
    __tablename__ = "grades"

    id: Optional[int] = Field(default=None, primary_key=True)
    order: int = Field(index=True)
    name: str
    description: Optional[str] = None
    colors: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    points_required: int = 0

    def __repr__(self):
        return f"<Grade id={self.id} order={self.order} {self.name}>"
