from typing import Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict
from dojo.models import AttendanceStatus
from dojo.services.reconciler import ReconcilePlan


class SessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    date_time: datetime
    location_id: int
    level: Optional[str] = None


class SheetRow(BaseModel):
    student_id: int
    name: str
    status: AttendanceStatus


class SaveAttendanceForm(BaseModel):
    statuses: Dict[int, AttendanceStatus] = {}
    year: Optional[int] = None


class PlanOut(BaseModel):
    session_id: int
    created: List[int]
    updated: List[int]
    deleted: List[int]
    point_deltas: Dict[int, int]

    @classmethod
    def from_plan(cls, plan: ReconcilePlan) -> "PlanOut":
        return cls(
            session_id=plan.session_id,
            created=[op.student_id for op in plan.to_create],
            updated=[op.student_id for op in plan.to_update],
            deleted=[op.student_id for op in plan.to_delete],
            point_deltas=plan.point_deltas,
        )
