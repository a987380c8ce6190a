from datetime import datetime
from types import SimpleNamespace

from dojo.models import AttendanceStatus
from dojo.services.leaderboard import featured, featured_for_month, monthly_points

YEAR = 2025


def people(*scores, role="student"):
    return [SimpleNamespace(id=i + 1, role=role, points_by_year={YEAR: p}) for i, p in enumerate(scores)]


def ids(result):
    return [s.id for s in result]


def test_three_way_tie_at_the_top():
    assert ids(featured(people(10, 10, 10, 8, 5), YEAR)) == [1, 2, 3]


def test_tie_at_third_place_is_included():
    assert ids(featured(people(10, 9, 9, 9, 5), YEAR)) == [1, 2, 3, 4]


def test_plain_top_three():
    assert ids(featured(people(1, 7, 3, 9, 5), YEAR)) == [4, 2, 5]


def test_fewer_than_three_scorers():
    assert ids(featured(people(0, 4, 0), YEAR)) == [2]


def test_nobody_scored():
    assert featured(people(0, 0), YEAR) == []
    assert featured([], YEAR) == []


def test_missing_year_counts_as_zero():
    students = people(3, 2) + [SimpleNamespace(id=9, role="student", points_by_year={YEAR - 1: 50})]
    assert ids(featured(students, YEAR)) == [1, 2]


def test_ties_are_ordered_by_id():
    students = [SimpleNamespace(id=i, points_by_year={YEAR: 5}) for i in (8, 3, 5, 1)]
    assert ids(featured(students, YEAR)) == [1, 3, 5, 8]


def test_exclude_policy_drops_admins():
    students = people(10, 9, 8) + [SimpleNamespace(id=50, role="admin", points_by_year={YEAR: 99})]
    result = featured(students, YEAR, exclude=lambda s: s.role == "admin")
    assert ids(result) == [1, 2, 3]


def test_custom_size():
    assert ids(featured(people(10, 9, 9, 8), YEAR, size=1)) == [1]
    assert ids(featured(people(10, 9, 9, 8), YEAR, size=2)) == [1, 2, 3]


def att(student_id, status, when, points_earned=1):
    return SimpleNamespace(student_id=student_id, status=status, created_at=when, points_earned=points_earned)


def test_monthly_points_only_count_present_in_month():
    march = datetime(2025, 3, 10)
    rows = [
        att(1, AttendanceStatus.PRESENT, march),
        att(1, AttendanceStatus.PRESENT, march, points_earned=2),
        att(1, AttendanceStatus.ABSENT, march),
        att(2, AttendanceStatus.PRESENT, datetime(2025, 4, 1)),
        att(3, AttendanceStatus.PRESENT, datetime(2024, 3, 10)),
    ]
    assert monthly_points(rows, 2025, 3) == {1: 3}


def test_featured_for_month_is_tie_inclusive():
    march = datetime(2025, 3, 10)
    rows = [att(sid, AttendanceStatus.PRESENT, march) for sid in (1, 1, 2, 2, 3, 4, 5)]
    assert featured_for_month(rows, 2025, 3) == [(1, 2), (2, 2), (3, 1), (4, 1), (5, 1)]
    assert featured_for_month([], 2025, 3) == []
