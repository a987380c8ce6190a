from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class PointOverrideForm(BaseModel):
    year: int
    points: int
    actor: str
    reason: Optional[str] = None


class PointAdjustmentForm(BaseModel):
    year: int
    delta: int


class BalanceOut(BaseModel):
    student_id: int
    year: int
    points: int


class AuditEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    target_user_id: int
    field: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    reason: str
    actor: str
    created_at: datetime
