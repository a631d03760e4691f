"""Deadline urgency classification. Pure logic, no I/O."""

from datetime import date, datetime
from typing import Literal

from dateutil import parser as dateutil_parser

DeadlineUrgency = Literal["critical", "high", "medium", "low"]

# (max days until deadline, urgency), checked in order
URGENCY_THRESHOLDS: list[tuple[int, DeadlineUrgency]] = [
    (1, "critical"),
    (3, "high"),
    (7, "medium"),
    (14, "low"),
]

STALE_DRAFT_DAYS = 3
VERY_STALE_DRAFT_DAYS = 7


def _as_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # Accepts both plain dates and full ISO timestamps
    return dateutil_parser.isoparse(value).date()


def days_until(deadline: date | datetime | str, today: date) -> int:
    """Whole days from ``today`` to ``deadline`` (negative when past)."""
    return (_as_date(deadline) - today).days


def days_since(moment: date | datetime | str, today: date) -> int:
    """Whole days elapsed from ``moment`` to ``today``."""
    return (today - _as_date(moment)).days


def classify_deadline(days: int) -> DeadlineUrgency | None:
    """
    Classify how urgent a deadline is.

    Args:
        days: Days until the deadline

    Returns:
        critical (<=1), high (<=3), medium (<=7), low (<=14),
        or None when the deadline is past or more than two weeks out
    """
    if days < 0:
        return None
    for limit, urgency in URGENCY_THRESHOLDS:
        if days <= limit:
            return urgency
    return None


def classify_stale_draft(age_days: int) -> DeadlineUrgency | None:
    """Urgency for a draft that has sat untouched for ``age_days``."""
    if age_days >= VERY_STALE_DRAFT_DAYS:
        return "medium"
    if age_days >= STALE_DRAFT_DAYS:
        return "low"
    return None
