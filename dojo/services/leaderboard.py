from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence, TypeVar

from dojo.config import settings
from dojo.models import AttendanceStatus

T = TypeVar("T")


def top_with_ties(scored: Iterable[tuple[T, int]], size: int, key: Callable[[T], int]) -> list[tuple[T, int]]:
    """
    Everyone scoring at least the `size`-th best score.

    Only positive scores rank. Ties at the cut are all kept, so the result can
    be longer than `size`. Ordered by score descending, then `key` ascending.
    """
    ranked = sorted(
        ((item, points) for item, points in scored if points > 0),
        key=lambda pair: (-pair[1], key(pair[0])),
    )
    k = min(size, len(ranked))
    if k == 0:
        return []
    threshold = ranked[k - 1][1]
    return [pair for pair in ranked if pair[1] >= threshold]


def featured(
    students: Sequence,
    year: int,
    *,
    exclude: Optional[Callable[[object], bool]] = None,
    size: Optional[int] = None,
) -> list:
    """Featured students for a year, by ledger points. `exclude` drops e.g. admins."""
    size = settings.FEATURED_SIZE if size is None else size
    pool = [s for s in students if not (exclude and exclude(s))]
    scored = [(s, (s.points_by_year or {}).get(year, 0)) for s in pool]
    return [s for s, _ in top_with_ties(scored, size, key=lambda s: s.id)]


def monthly_points(attendances: Iterable, year: int, month: int) -> dict[int, int]:
    totals: dict[int, int] = defaultdict(int)
    for att in attendances:
        if att.status != AttendanceStatus.PRESENT:
            continue
        created: datetime = att.created_at
        if created.year == year and created.month == month:
            totals[att.student_id] += att.points_earned if att.points_earned is not None else 1
    return dict(totals)


def featured_for_month(attendances: Iterable, year: int, month: int, size: Optional[int] = None) -> list[tuple[int, int]]:
    """Featured (student_id, points) pairs for one month, counted from present attendance."""
    size = settings.FEATURED_SIZE if size is None else size
    totals = monthly_points(attendances, year, month)
    return top_with_ties(totals.items(), size, key=lambda sid: sid)
