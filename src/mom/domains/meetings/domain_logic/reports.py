"""Report rows and export payloads.

Reports are flat, string-valued rows plus an ordered column list. Rendering
to CSV/PDF/XLSX is left to whatever implements ``ReportWriter``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from mom.core.errors import ValidationError
from mom.core.store.record_store import field_value
from mom.core.view.projector import parse_timestamp
from mom.domains.meetings.domain_logic.models import (
    AggregationResult,
    EntityStat,
    meeting_status,
    meeting_type_name,
)


@dataclass(frozen=True)
class Column:
    """One export column. ``accessor`` is a dotted field path or a callable."""

    key: str
    title: str
    accessor: str | Callable[[Any], Any] | None = None

    def value_of(self, item: Any) -> Any:
        accessor = self.accessor if self.accessor is not None else self.key
        if callable(accessor):
            return accessor(item)
        if isinstance(item, dict):
            return field_value(item, accessor)
        return getattr(item, accessor, None)


@dataclass
class ExportPayload:
    """Rows ready for a writer.

    ``caveat`` and ``gaps`` are set when the rows come from a partial
    aggregation and must travel with the export.
    """

    title: str
    columns: list[Column]
    rows: list[dict[str, str]] = field(default_factory=list)
    caveat: str | None = None
    gaps: list[dict[str, str]] = field(default_factory=list)

    def headers(self) -> list[str]:
        return [c.title for c in self.columns]

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "columns": [{"key": c.key, "title": c.title} for c in self.columns],
            "rows": self.rows,
            "row_count": len(self.rows),
            "caveat": self.caveat,
            "gaps": list(self.gaps),
        }


class ReportWriter(Protocol):
    """Renders a payload to some file format (CSV, PDF, spreadsheet)."""

    def write(self, title: str, columns: Sequence[Column], rows: Sequence[dict[str, str]]) -> Any: ...


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{value:.2f}".rstrip("0").rstrip(".")
    return str(value)


def to_rows(items: Iterable[Any], columns: Sequence[Column]) -> list[dict[str, str]]:
    """Flatten items into ``{column.key: text}`` rows, one per item."""
    return [{c.key: format_cell(c.value_of(item)) for c in columns} for item in items]


# ---------------------------------------------------------------------------
# Accessors
# ---------------------------------------------------------------------------

def _date_text(path: str, missing: str = "") -> Callable[[dict[str, Any]], str]:
    def accessor(record: dict[str, Any]) -> str:
        when = parse_timestamp(field_value(record, path))
        return when.date().isoformat() if when is not None else missing

    return accessor


def _participant_count(meeting: dict[str, Any]) -> int:
    participants = meeting.get("participants")
    if participants:
        return len(participants)
    return int(meeting.get("memberCount") or 0)


def _duration(meeting: dict[str, Any]) -> Any:
    for key in ("meetingDuration", "duration"):
        if meeting.get(key) not in (None, ""):
            return meeting[key]
    return "N/A"


# ---------------------------------------------------------------------------
# Column sets
# ---------------------------------------------------------------------------

SUMMARY_COLUMNS = [
    Column("meeting", "Meeting", "meetingTitle"),
    Column("date", "Date", _date_text("meetingDate", "N/A")),
    Column("participants", "Participants", _participant_count),
    Column("duration", "Duration", _duration),
    Column("status", "Status", meeting_status),
]

ATTENDANCE_COLUMNS = [
    Column("name", "Participant", "name"),
    Column("totalMeetings", "Total Meetings", "counted"),
    Column("attended", "Attended", "matched"),
    Column("absent", "Absent", "absent"),
    Column("percentage", "Percentage", lambda s: f"{s.rate_percent}%"),
]

CANCELLED_COLUMNS = [
    Column("meeting", "Meeting", "meetingTitle"),
    Column("scheduledDate", "Scheduled Date", _date_text("meetingDate", "N/A")),
    Column("reason", "Reason", lambda m: m.get("cancellationReason") or "No reason provided"),
    Column("cancelledBy", "Cancelled By", lambda m: m.get("cancelledBy") or "Unknown"),
]

MEETING_COLUMNS = [
    Column("title", "Title", "meetingTitle"),
    Column("type", "Type", meeting_type_name),
    Column("date", "Date", _date_text("meetingDate")),
    Column("time", "Time", "meetingTime"),
    Column("duration", "Duration", "duration"),
    Column("location", "Location", "location"),
    Column("status", "Status", meeting_status),
    Column("description", "Description", "meetingDescription"),
]

STAFF_COLUMNS = [
    Column("name", "Name", "staffName"),
    Column("email", "Email", "emailAddress"),
    Column("mobile", "Mobile", "mobileNo"),
    Column("department", "Department", "department"),
    Column("role", "Role", "role"),
    Column("designation", "Designation", "designation"),
    Column("createdAt", "Created At", _date_text("createdAt")),
]


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def summary_report(meetings: Sequence[dict[str, Any]]) -> ExportPayload:
    return ExportPayload("Meeting Summary Report", SUMMARY_COLUMNS, to_rows(meetings, SUMMARY_COLUMNS))


def attendance_report(aggregation: AggregationResult) -> ExportPayload:
    """Only staff seen in at least one meeting get a row."""
    stats: list[EntityStat] = [s for s in aggregation.per_entity if s.counted > 0]
    return ExportPayload(
        "Attendance Report",
        ATTENDANCE_COLUMNS,
        to_rows(stats, ATTENDANCE_COLUMNS),
        caveat=aggregation.caveat,
        gaps=[{"meeting_id": g.meeting_id, "message": g.message} for g in aggregation.gaps],
    )


def cancelled_report(meetings: Sequence[dict[str, Any]]) -> ExportPayload:
    cancelled = [m for m in meetings if meeting_status(m) == "Cancelled"]
    return ExportPayload(
        "Cancelled Meeting Report", CANCELLED_COLUMNS, to_rows(cancelled, CANCELLED_COLUMNS)
    )


def meetings_export(meetings: Sequence[dict[str, Any]]) -> ExportPayload:
    return ExportPayload("Meetings", MEETING_COLUMNS, to_rows(meetings, MEETING_COLUMNS))


def staff_export(staff: Sequence[dict[str, Any]]) -> ExportPayload:
    return ExportPayload("Staff", STAFF_COLUMNS, to_rows(staff, STAFF_COLUMNS))


REPORT_TYPES = ("summary", "attendance", "cancelled", "meetings", "staff")


def build_export(
    report_type: str,
    *,
    meetings: Sequence[dict[str, Any]] | None = None,
    staff: Sequence[dict[str, Any]] | None = None,
    aggregation: AggregationResult | None = None,
) -> ExportPayload:
    """Build the payload for ``report_type``.

    Raises:
        ValidationError: Unknown report type, or the input it needs is missing.
    """
    if report_type not in REPORT_TYPES:
        raise ValidationError(
            f"Unknown report type {report_type!r}; expected one of {', '.join(REPORT_TYPES)}"
        )

    if report_type == "attendance":
        if aggregation is None:
            raise ValidationError("The attendance report needs an aggregation result")
        return attendance_report(aggregation)
    if report_type == "staff":
        return staff_export(staff or [])

    meetings = meetings or []
    if report_type == "summary":
        return summary_report(meetings)
    if report_type == "cancelled":
        return cancelled_report(meetings)
    return meetings_export(meetings)
