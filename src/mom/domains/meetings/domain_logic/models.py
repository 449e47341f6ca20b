"""Meeting-domain constants, collection view specs and result types."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Literal

from mom.core.errors import AggregationGap
from mom.core.store.record_store import field_value
from mom.core.view.projector import CollectionViewSpec, SortKey

# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

MEETING_STATUSES = ["Scheduled", "InProgress", "Completed", "Cancelled"]
DEFAULT_MEETING_STATUS = "Scheduled"

# Dashboard colours per meeting status (status breakdown chart)
STATUS_COLORS = {
    "Scheduled": "#14b8a6",
    "Completed": "#22c55e",
    "Cancelled": "#ef4444",
    "InProgress": "#f59e0b",
    "In Progress": "#f59e0b",
}
FALLBACK_STATUS_COLOR = "#6b7280"

PRESENCE_RANKS = {True: 0, False: 1}
STATUS_RANKS = {status: rank for rank, status in enumerate(MEETING_STATUSES)}


def meeting_status(meeting: dict[str, Any]) -> str:
    """Status of a meeting, whichever field the backend filled in."""
    for key in ("status", "meetingStatus", "intelligentStatus"):
        value = meeting.get(key)
        if value:
            return str(value)
    return DEFAULT_MEETING_STATUS


def meeting_type_name(meeting: dict[str, Any]) -> str:
    """Meeting type label; the type may be an id string or a populated object."""
    value = meeting.get("meetingTypeId")
    if isinstance(value, dict):
        return str(value.get("meetingTypeName") or "")
    return str(value or "")


def member_staff_id(member: dict[str, Any]) -> str | None:
    """Staff id of a meeting-member record (populated object or plain id)."""
    value = member.get("staffId")
    if isinstance(value, dict):
        value = value.get("_id")
    return str(value) if value not in (None, "") else None


# ---------------------------------------------------------------------------
# Collection view specs
# ---------------------------------------------------------------------------

STAFF_VIEW = CollectionViewSpec(
    name="staff",
    search_fields=("staffName", "emailAddress", "mobileNo", "department", "role", "designation"),
    sort_keys={
        "name": SortKey("staffName"),
        "email": SortKey("emailAddress"),
        "department": SortKey("department"),
        "role": SortKey("role"),
        "date": SortKey("createdAt", kind="date"),
    },
    default_sort="name",
)

MEETING_VIEW = CollectionViewSpec(
    name="meetings",
    search_fields=(
        "meetingTitle",
        "meetingDescription",
        "meetingTypeId",
        "meetingTypeId.meetingTypeName",
        "location",
        "agenda",
    ),
    sort_keys={
        "title": SortKey("meetingTitle"),
        "date": SortKey("meetingDate", kind="date"),
        "type": SortKey("meetingTypeId.meetingTypeName"),
        "status": SortKey("status", kind="rank", ranks=STATUS_RANKS),
        "duration": SortKey("duration", kind="number"),
    },
    default_sort="date",
    default_direction="desc",
)

PARTICIPANT_VIEW = CollectionViewSpec(
    name="participants",
    search_fields=("staffId.staffName", "staffId.emailAddress", "staffId.designation"),
    sort_keys={
        "name": SortKey("staffId.staffName"),
        "status": SortKey("isPresent", kind="rank", ranks=PRESENCE_RANKS),
    },
    default_sort="name",
)


# ---------------------------------------------------------------------------
# Aggregation results
# ---------------------------------------------------------------------------

def rate_of(matched: int, counted: int) -> float:
    return matched / counted if counted > 0 else 0.0


def whole_percent(rate: float) -> int:
    """Round a 0-1 ratio to the nearest whole percent, halves up."""
    return int(math.floor(rate * 100 + 0.5))


@dataclass
class EntityStat:
    """Attendance counts for one staff member across the joined meetings."""

    entity_id: str
    name: str
    counted: int = 0
    matched: int = 0

    @property
    def rate(self) -> float:
        return rate_of(self.matched, self.counted)

    @property
    def rate_percent(self) -> int:
        return whole_percent(self.rate)

    @property
    def absent(self) -> int:
        return self.counted - self.matched


@dataclass
class AggregationTotals:
    counted: int = 0
    matched: int = 0

    @property
    def rate(self) -> float:
        return rate_of(self.matched, self.counted)

    @property
    def rate_percent(self) -> int:
        return whole_percent(self.rate)


@dataclass
class AggregationResult:
    """Per-staff and overall attendance over a set of meetings.

    ``gaps`` lists meetings whose membership could not be fetched; they are
    excluded from every count, so ``coverage`` below 1.0 means the numbers
    are a partial picture.
    """

    per_entity: list[EntityStat] = field(default_factory=list)
    totals: AggregationTotals = field(default_factory=AggregationTotals)
    gaps: list[AggregationGap] = field(default_factory=list)
    meetings_considered: int = 0
    meetings_fetched: int = 0
    no_meeting_entity_ids: list[str] = field(default_factory=list)

    @property
    def has_gaps(self) -> bool:
        return bool(self.gaps)

    @property
    def coverage(self) -> float:
        if self.meetings_considered == 0:
            return 1.0
        return self.meetings_fetched / self.meetings_considered

    @property
    def caveat(self) -> str | None:
        """Visible note for partial reports, None when every meeting was read."""
        if not self.gaps:
            return None
        return (
            f"Attendance for {len(self.gaps)} of {self.meetings_considered} meeting(s) "
            "could not be loaded; those meetings are excluded from every count."
        )

    def meeting_counts(self) -> dict[str, int]:
        """Fetched meetings per staff id, zero for staff in none of them."""
        counts = {s.entity_id: s.counted for s in self.per_entity}
        for entity_id in self.no_meeting_entity_ids:
            counts[entity_id] = 0
        return counts

    def to_dict(self) -> dict[str, Any]:
        return {
            "per_entity": [
                {
                    "entity_id": s.entity_id,
                    "name": s.name,
                    "counted": s.counted,
                    "matched": s.matched,
                    "absent": s.absent,
                    "rate": s.rate,
                    "rate_percent": s.rate_percent,
                }
                for s in self.per_entity
            ],
            "totals": {
                "counted": self.totals.counted,
                "matched": self.totals.matched,
                "rate": self.totals.rate,
                "rate_percent": self.totals.rate_percent,
            },
            "meetings_considered": self.meetings_considered,
            "meetings_fetched": self.meetings_fetched,
            "coverage": round(self.coverage, 4),
            "caveat": self.caveat,
            "gaps": [{"meeting_id": g.meeting_id, "message": g.message} for g in self.gaps],
            "no_meeting_entity_ids": list(self.no_meeting_entity_ids),
        }


# ---------------------------------------------------------------------------
# Metrics, health and alerts
# ---------------------------------------------------------------------------

HealthBand = Literal["excellent", "good", "fair", "poor"]
AlertKind = Literal["info", "warning", "error", "success"]


@dataclass
class Metrics:
    """Dashboard metrics, percentages in 0-100."""

    completion_rate: float
    attendance_rate: float
    activity_score: float
    growth_rate: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "completion_rate": self.completion_rate,
            "attendance_rate": self.attendance_rate,
            "activity_score": self.activity_score,
            "growth_rate": self.growth_rate,
        }


@dataclass
class HealthStatus:
    status: HealthBand
    color: str
    message: str


@dataclass
class Alert:
    """A generated alert. ``rule_id`` is the stable dismissal key."""

    rule_id: str
    kind: AlertKind
    title: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "rule_id": self.rule_id,
            "kind": self.kind,
            "title": self.title,
            "message": self.message,
        }


def staff_display_name(staff: dict[str, Any]) -> str:
    return str(field_value(staff, "staffName") or staff.get("_id") or "")
