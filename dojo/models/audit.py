from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel


class AuditLog(SQLModel, table=True):
    __tablename__ = "audit_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    target_user_id: int = Field(foreign_key="users.id", index=True)
    field: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    reason: str
    actor: str
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
