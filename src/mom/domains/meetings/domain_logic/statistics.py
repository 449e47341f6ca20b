"""Counts and date windows derived from meeting, staff and member snapshots.

These build the same shapes the backend's dashboard endpoint returns
(``overview``, status stats, attendance stats), so metrics can be computed
from local store snapshots too.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone
from typing import Any

from mom.core.view.projector import parse_timestamp
from mom.domains.meetings.domain_logic.models import (
    FALLBACK_STATUS_COLOR,
    STATUS_COLORS,
    meeting_status,
    meeting_type_name,
)


def week_range(offset: int = 0, today: date | None = None) -> tuple[date, date]:
    """Monday..Sunday of the week ``offset`` weeks from the current one."""
    today = today or datetime.now(timezone.utc).date()
    monday = today - timedelta(days=today.weekday()) + timedelta(weeks=offset)
    return monday, monday + timedelta(days=6)


def calculate_meeting_stats(
    meetings: Sequence[dict[str, Any]], now: datetime | None = None
) -> dict[str, Any]:
    """Totals for the meeting manager header cards.

    Upcoming means in the future and neither completed nor cancelled;
    "this week" means within the next seven days.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    today = now.date()
    week_ahead = now + timedelta(days=7)

    by_status: dict[str, int] = {}
    by_type: dict[str, int] = {}
    upcoming = today_count = this_week = completed = 0

    for meeting in meetings:
        status = meeting_status(meeting)
        by_status[status] = by_status.get(status, 0) + 1
        type_name = meeting_type_name(meeting) or "Unknown"
        by_type[type_name] = by_type.get(type_name, 0) + 1

        when = parse_timestamp(meeting.get("meetingDate"))
        if when is not None:
            if when >= now and status not in ("Completed", "Cancelled"):
                upcoming += 1
            if when.date() == today:
                today_count += 1
            if now <= when <= week_ahead:
                this_week += 1
        if status == "Completed":
            completed += 1

    return {
        "totalMeetings": len(meetings),
        "byStatus": by_status,
        "byType": by_type,
        "upcomingMeetings": upcoming,
        "todayMeetings": today_count,
        "thisWeekMeetings": this_week,
        "completedMeetings": completed,
    }


def calculate_staff_stats(
    staff: Sequence[dict[str, Any]], now: datetime | None = None
) -> dict[str, Any]:
    """Totals for the staff manager header cards."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    cutoff = now - timedelta(days=30)

    by_role: dict[str, int] = {}
    by_department: dict[str, int] = {}
    recently_added = 0
    for member in staff:
        if member.get("role"):
            by_role[member["role"]] = by_role.get(member["role"], 0) + 1
        if member.get("department"):
            dept = member["department"]
            by_department[dept] = by_department.get(dept, 0) + 1
        created = parse_timestamp(member.get("createdAt") or member.get("created"))
        if created is not None and created > cutoff:
            recently_added += 1

    return {
        "totalStaff": len(staff),
        "byRole": by_role,
        "byDepartment": by_department,
        "recentlyAdded": recently_added,
        "activeStaff": len(staff),
    }


def status_stats_from_meetings(meetings: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    """``[{"_id": status, "count": n}, ...]`` in first-seen order."""
    counts: dict[str, int] = {}
    for meeting in meetings:
        status = meeting_status(meeting)
        counts[status] = counts.get(status, 0) + 1
    return [{"_id": status, "count": count} for status, count in counts.items()]


def attendance_stats_from_members(members: Sequence[dict[str, Any]]) -> dict[str, Any]:
    total = len(members)
    present = sum(1 for m in members if m.get("isPresent"))
    return {
        "totalMembers": total,
        "presentMembers": present,
        "attendanceRate": round(present / total * 100, 2) if total else 0.0,
    }


def overview_from_collections(
    meetings: Sequence[dict[str, Any]],
    staff: Sequence[dict[str, Any]],
    now: datetime | None = None,
) -> dict[str, Any]:
    """Dashboard overview counts computed from local snapshots."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    monday, sunday = week_range(0, now.date())

    this_week = this_month = upcoming = 0
    status_counts: dict[str, int] = {}
    for meeting in meetings:
        status = meeting_status(meeting)
        status_counts[status] = status_counts.get(status, 0) + 1
        when = parse_timestamp(meeting.get("meetingDate"))
        if when is None:
            continue
        if monday <= when.date() <= sunday:
            this_week += 1
        if (when.year, when.month) == (now.year, now.month):
            this_month += 1
        if when >= now and status not in ("Completed", "Cancelled"):
            upcoming += 1

    return {
        "totalMeetings": len(meetings),
        "totalStaff": len(staff),
        "meetingsThisMonth": this_month,
        "meetingsThisWeek": this_week,
        "upcomingMeetings": upcoming,
        "completedMeetings": status_counts.get("Completed", 0),
        "cancelledMeetings": status_counts.get("Cancelled", 0),
        "scheduledMeetings": status_counts.get("Scheduled", 0),
    }


def format_status_breakdown(status_stats: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    """Status chart entries: name, value and colour."""
    return [
        {
            "name": stat.get("_id"),
            "value": stat.get("count", 0),
            "color": STATUS_COLORS.get(stat.get("_id"), FALLBACK_STATUS_COLOR),
        }
        for stat in status_stats
    ]
