from typing import Optional, TYPE_CHECKING
from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import CheckConstraint, UniqueConstraint

if TYPE_CHECKING:
    from .user import User


class PointBalance(SQLModel, table=True):
    __tablename__ = "point_balances"
    __table_args__ = (
        UniqueConstraint("user_id", "year", name="uq_balance_user_year"),
        CheckConstraint("points >= 0", name="ck_balance_points_nonnegative"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    year: int = Field(index=True)
    points: int = 0
    version: int = 0  # bumped on every conditional write

    user: "User" = Relationship(back_populates="balances")
