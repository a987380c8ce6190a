from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from dojo.models import Grade

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class GradeResolution:
    current: Optional[Grade]
    next: Optional[Grade]


@dataclass(frozen=True)
class Progression:
    current: Optional[Grade]
    next: Optional[Grade]
    year: int
    points: int
    points_to_go: int
    percent: float
    eligible: Optional[Grade]

    @property
    def max_grade_reached(self) -> bool:
        return self.current is not None and self.next is None


def sort_ladder(ladder: Sequence[Grade]) -> list[Grade]:
    # sorted() is stable, so grades sharing an order keep the caller's sequence
    return sorted(ladder, key=lambda g: g.order)


def _first_with_order(ladder: Sequence[Grade], order: int) -> Optional[Grade]:
    return next((g for g in ladder if g.order == order), None)


def resolve_grade(ladder: Sequence[Grade], assigned_grade_id: Optional[int] = None) -> GradeResolution:
    """
    Current and next grade for a student.

    An assigned grade wins; the next one is whatever follows it on the ladder.
    Without an assignment the student sits at order 0 heading for order 1.
    """
    grades = sort_ladder(ladder)
    if not grades:
        return GradeResolution(current=None, next=None)

    if assigned_grade_id is not None:
        for index, grade in enumerate(grades):
            if grade.id == assigned_grade_id:
                following = grades[index + 1] if index + 1 < len(grades) else None
                return GradeResolution(current=grade, next=following)
        log.warning("Assigned grade %s is not on the ladder; using the default grade", assigned_grade_id)

    return GradeResolution(current=_first_with_order(grades, 0), next=_first_with_order(grades, 1))


def grade_for_points(points: int, ladder: Sequence[Grade]) -> Optional[Grade]:
    """Highest grade whose points_required is met, or None."""
    reached = None
    for grade in sort_ladder(ladder):
        if points >= (grade.points_required or 0):
            if reached is None or grade.points_required >= reached.points_required:
                reached = grade
    return reached


def resolve_progression(student, ladder: Sequence[Grade], year: int) -> Progression:
    points = (student.points_by_year or {}).get(year, 0)
    resolution = resolve_grade(ladder, student.current_grade_id)
    nxt = resolution.next
    if nxt is not None:
        required = nxt.points_required or 0
        points_to_go = max(required - points, 0)
        percent = min(points / (required or 1) * 100, 100.0)
    else:
        points_to_go = 0
        percent = 0.0
    return Progression(
        current=resolution.current,
        next=nxt,
        year=year,
        points=points,
        points_to_go=points_to_go,
        percent=percent,
        eligible=grade_for_points(points, ladder),
    )
