"""Dashboard metrics and the health band derived from them."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from mom.domains.meetings.domain_logic.models import HealthStatus, Metrics

# Activity score weights: fixed policy, score clamped to 100.
WEEKLY_MEETING_WEIGHT = 10
ATTENDANCE_WEIGHT = 0.3
COMPLETION_WEIGHT = 0.2
MAX_ACTIVITY_SCORE = 100.0

# (lower bound, band, colour, message), evaluated top-down; anything below
# the last bound is "poor".
HEALTH_BANDS = [
    (80.0, "excellent", "green", "Your organization is highly active and efficient!"),
    (60.0, "good", "teal", "Good performance with room for improvement."),
    (40.0, "fair", "yellow", "Consider increasing meeting activity and attendance."),
]
POOR_BAND = ("poor", "red", "Low activity detected. Review your meeting processes.")


def compute_metrics(
    overview: Mapping[str, Any],
    attendance_stats: Mapping[str, Any] | None,
    status_stats: Sequence[Mapping[str, Any]] | None,
) -> Metrics:
    """Completion rate, attendance rate, activity score and growth rate.

    Args:
        overview: Dashboard overview counts (``totalMeetings``,
            ``meetingsThisWeek``, ``meetingsThisMonth``, ...).
        attendance_stats: ``totalMembers`` / ``presentMembers``.
        status_stats: ``[{"_id": status, "count": n}]``; the ``Completed``
            entry gives the completed count. Falls back to
            ``overview["completedMeetings"]`` when absent.
    """
    total_meetings = _count(overview.get("totalMeetings"))
    completed = _completed_count(overview, status_stats)
    completion_rate = completed / total_meetings * 100 if total_meetings > 0 else 0.0

    attendance_stats = attendance_stats or {}
    total_members = _count(attendance_stats.get("totalMembers"))
    present = _count(attendance_stats.get("presentMembers"))
    attendance_rate = present / total_members * 100 if total_members > 0 else 0.0

    meetings_this_week = _count(overview.get("meetingsThisWeek"))
    activity_score = min(
        MAX_ACTIVITY_SCORE,
        meetings_this_week * WEEKLY_MEETING_WEIGHT
        + attendance_rate * ATTENDANCE_WEIGHT
        + completion_rate * COMPLETION_WEIGHT,
    )

    return Metrics(
        completion_rate=round(completion_rate, 2),
        attendance_rate=round(attendance_rate, 2),
        activity_score=round(activity_score, 2),
        growth_rate=compute_growth_rate(overview),
    )


def compute_growth_rate(overview: Mapping[str, Any]) -> float:
    """Weekly pace projected over a month, relative to the month so far."""
    this_month = _count(overview.get("meetingsThisMonth"))
    if this_month == 0:
        return 0.0
    projection = _count(overview.get("meetingsThisWeek")) * 4
    return round((projection - this_month) / this_month * 100, 2)


def compute_health(metrics: Metrics) -> HealthStatus:
    score = metrics.activity_score
    for lower_bound, band, color, message in HEALTH_BANDS:
        if score >= lower_bound:
            return HealthStatus(status=band, color=color, message=message)
    band, color, message = POOR_BAND
    return HealthStatus(status=band, color=color, message=message)


def _completed_count(
    overview: Mapping[str, Any], status_stats: Sequence[Mapping[str, Any]] | None
) -> int:
    for stat in status_stats or []:
        if stat.get("_id") == "Completed":
            return _count(stat.get("count"))
    return _count(overview.get("completedMeetings"))


def _count(value: Any) -> int | float:
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return int(number) if number.is_integer() else number
