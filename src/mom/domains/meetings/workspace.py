"""Explicit store handles and screens for the meeting collections.

The workspace owns one ``RecordStore`` per collection (staff, meetings,
participants of the selected meeting) and the ``CollectionScreen`` that
views each one. Operations from the management screens, the dashboard and
the reports page are methods here; the MCP tools are thin wrappers.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from typing import Any

from mom.core.bulk.coordinator import BulkResult
from mom.core.errors import ValidationError
from mom.core.storage.dismissals import DismissalStore
from mom.core.store.record_store import Record, RecordStore
from mom.core.view.projector import filter_by_date_range
from mom.core.view.screen import CollectionScreen
from mom.domains.meetings.connectors import MeetingDataSource
from mom.domains.meetings.domain_logic.aggregator import CrossCollectionAggregator, top_performers
from mom.domains.meetings.domain_logic.alerts import AlertRule, compute_alerts, visible_alerts
from mom.domains.meetings.domain_logic.metrics import compute_health, compute_metrics
from mom.domains.meetings.domain_logic.models import (
    MEETING_VIEW,
    PARTICIPANT_VIEW,
    STAFF_VIEW,
    AggregationResult,
)
from mom.domains.meetings.domain_logic.reports import REPORT_TYPES, ExportPayload, build_export
from mom.domains.meetings.domain_logic.statistics import (
    calculate_meeting_stats,
    calculate_staff_stats,
    format_status_breakdown,
    week_range,
)

logger = logging.getLogger(__name__)

COLLECTIONS = ("staff", "meetings", "participants")

# Bulk actions available per collection
BULK_ACTIONS = {
    "participants": ("mark_present", "mark_absent", "remove"),
    "meetings": ("delete",),
    "staff": ("delete",),
}

# Same cap the reports page uses when pulling meetings for a date range
REPORT_MEETING_LIMIT = 100


class MeetingWorkspace:
    """Stores, screens and operations for one user session.

    Usage::

        workspace = MeetingWorkspace(MomApiClient(settings.mom_api_base_url))
        await workspace.load("meetings")
        await workspace.select_meeting("665f...")
        result = await workspace.mark_all(True)
    """

    def __init__(
        self,
        source: MeetingDataSource,
        *,
        page_size: int = 10,
        max_concurrency: int = 1,
        dismissals: DismissalStore | None = None,
        alert_rules: list[AlertRule] | None = None,
    ) -> None:
        self._source = source
        self._page_size = page_size
        self._dismissals = dismissals
        self._alert_rules = alert_rules
        self._aggregator = CrossCollectionAggregator(
            source.list_members, max_concurrency=max_concurrency
        )

        self.staff = RecordStore("staff")
        self.meetings = RecordStore("meetings")
        self.participants = RecordStore("participants")
        self._selected_meeting_id: str | None = None

        self._screens: dict[str, CollectionScreen] = {
            "staff": CollectionScreen(
                self.staff, STAFF_VIEW, page_size=page_size, fetcher=source.list_staff
            ),
            "meetings": CollectionScreen(
                self.meetings, MEETING_VIEW, page_size=page_size, fetcher=source.list_meetings
            ),
            "participants": CollectionScreen(self.participants, PARTICIPANT_VIEW, page_size=page_size),
        }

    @property
    def source(self) -> MeetingDataSource:
        return self._source

    @property
    def selected_meeting_id(self) -> str | None:
        return self._selected_meeting_id

    def screen(self, collection: str) -> CollectionScreen:
        try:
            return self._screens[collection]
        except KeyError:
            raise ValidationError(
                f"Unknown collection {collection!r}; expected one of {', '.join(COLLECTIONS)}"
            ) from None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self, collection: str) -> CollectionScreen:
        """Fetch a collection into its store and return its screen."""
        screen = self.screen(collection)
        if collection == "participants" and self._selected_meeting_id is None:
            raise ValidationError("Select a meeting before loading participants")
        replaced = await screen.refresh()
        if not replaced:
            logger.debug("Discarded stale %s fetch; store changed meanwhile", collection)
        logger.info("Loaded %d %s record(s)", len(screen.store), collection)
        return screen

    async def select_meeting(self, meeting_id: str) -> CollectionScreen:
        """Open the participants screen for ``meeting_id``.

        The previous participants screen is closed and the store cleared
        first, so a slower fetch for an earlier meeting can no longer land.
        """
        if not meeting_id:
            raise ValidationError("meeting_id is required")

        self._screens["participants"].close()
        self.participants.clear()
        self._selected_meeting_id = meeting_id

        async def fetch_members() -> list[Record]:
            return await self._source.list_members(meeting_id)

        screen = CollectionScreen(
            self.participants, PARTICIPANT_VIEW, page_size=self._page_size, fetcher=fetch_members
        )
        self._screens["participants"] = screen
        await screen.refresh()
        return screen

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    async def toggle_attendance(self, member_id: str, remarks: str | None = None) -> Record:
        """Flip one participant's present/absent flag."""
        member = self.participants.get(member_id)
        if member is None:
            raise ValidationError(f"No participant {member_id!r} in the selected meeting")
        updated = await self._source.mark_attendance(
            member_id, not member.get("isPresent", False), remarks
        )
        merged = _merge_member(member, updated)
        self.participants.patch(merged)
        return self.participants.get(member_id) or merged

    async def mark_all(self, present: bool, ids: Iterable[str] | None = None) -> BulkResult:
        """Mark participants present or absent.

        Only participants whose flag differs are sent to the backend. With no
        ``ids`` the current selection is used, or every participant when
        nothing is selected.
        """
        screen = self.screen("participants")
        targets = self._participant_targets(screen, ids)
        changed = [
            member_id
            for member_id in targets
            if bool((self.participants.get(member_id) or {}).get("isPresent")) != present
        ]

        async def mark(member_id: str) -> dict[str, Any] | None:
            updated = await self._source.mark_attendance(member_id, present)
            current = self.participants.get(member_id) or {"_id": member_id}
            return _merge_member(current, updated or {"isPresent": present})

        return await screen.run_bulk(mark, ids=changed)

    async def remove_participants(self, ids: Iterable[str] | None = None) -> BulkResult:
        screen = self.screen("participants")
        targets = self._participant_targets(screen, ids, default_all=False)

        async def remove(member_id: str) -> None:
            await self._source.remove_member(member_id)

        return await screen.run_bulk(remove, ids=targets, removes=True)

    async def add_participants(self, staff_ids: list[str]) -> list[Record]:
        """Add staff to the selected meeting via the bulk endpoint, then refresh."""
        if self._selected_meeting_id is None:
            raise ValidationError("Select a meeting before adding participants")
        unique = [s for s in dict.fromkeys(staff_ids or []) if s]
        if not unique:
            raise ValidationError("staff_ids must not be empty")

        added = await self._source.add_members_bulk(self._selected_meeting_id, unique)
        logger.info(
            "Added %d participant(s) to meeting %s", len(added), self._selected_meeting_id
        )
        await self.screen("participants").refresh()
        return added

    # ------------------------------------------------------------------
    # Meetings and staff
    # ------------------------------------------------------------------

    async def delete_meetings(self, ids: Iterable[str] | None = None) -> BulkResult:
        screen = self.screen("meetings")

        async def delete(meeting_id: str) -> None:
            await self._source.delete_meeting(meeting_id)

        result = await screen.run_bulk(delete, ids=ids, removes=True)
        if self._selected_meeting_id in result.succeeded:
            self._screens["participants"].close()
            self.participants.clear()
            self._selected_meeting_id = None
        return result

    async def delete_staff(self, ids: Iterable[str] | None = None) -> BulkResult:
        screen = self.screen("staff")

        async def delete(staff_id: str) -> None:
            await self._source.delete_staff(staff_id)

        return await screen.run_bulk(delete, ids=ids, removes=True)

    async def run_bulk(
        self, collection: str, action: str, ids: Iterable[str] | None = None
    ) -> BulkResult:
        """Dispatch a named bulk action on a collection's selection (or ``ids``)."""
        self.screen(collection)
        actions = BULK_ACTIONS[collection]
        if action not in actions:
            raise ValidationError(
                f"Unknown action {action!r} for {collection}; expected one of {', '.join(actions)}"
            )
        if collection == "participants":
            if action == "mark_present":
                return await self.mark_all(True, ids)
            if action == "mark_absent":
                return await self.mark_all(False, ids)
            return await self.remove_participants(ids)
        if collection == "meetings":
            return await self.delete_meetings(ids)
        return await self.delete_staff(ids)

    def collection_stats(self, collection: str) -> dict[str, Any]:
        """Header-card totals for the staff or meetings screen."""
        if collection == "meetings":
            return calculate_meeting_stats(self.meetings.all())
        if collection == "staff":
            return calculate_staff_stats(self.staff.all())
        if collection == "participants":
            members = self.participants.all()
            present = sum(1 for m in members if m.get("isPresent"))
            return {"total": len(members), "present": present, "absent": len(members) - present}
        raise ValidationError(f"Unknown collection {collection!r}")

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def dashboard(self) -> dict[str, Any]:
        """Metrics, health band and alerts from the backend overview."""
        data = await self._source.get_overview()
        overview = data.get("overview") or {}
        status_stats = data.get("meetingStatusStats") or []
        metrics = compute_metrics(overview, data.get("attendanceStats"), status_stats)
        health = compute_health(metrics)
        alerts = compute_alerts(data, metrics, self._alert_rules)
        dismissed = self._dismissals.dismissed_ids() if self._dismissals else set()
        return {
            "overview": overview,
            "metrics": metrics,
            "health": health,
            "alerts": alerts,
            "visible_alerts": visible_alerts(alerts, dismissed),
            "status_breakdown": format_status_breakdown(status_stats),
        }

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def meetings_in_range(
        self,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
        *,
        week_offset: int = 0,
    ) -> tuple[list[Record], date | str, date | str]:
        """Meetings within ``[start_date, end_date]``; defaults to a Monday-Sunday week."""
        if start_date is None and end_date is None:
            start_date, end_date = week_range(week_offset)
        start_text = start_date.isoformat() if isinstance(start_date, date) else start_date
        end_text = end_date.isoformat() if isinstance(end_date, date) else end_date
        meetings = await self._source.list_meetings(
            limit=REPORT_MEETING_LIMIT, start_date=start_text, end_date=end_text
        )
        # the backend filter is not trusted to be day-inclusive
        return filter_by_date_range(meetings, "meetingDate", start_date, end_date), start_date, end_date

    async def attendance_report(
        self,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
        *,
        week_offset: int = 0,
    ) -> dict[str, Any]:
        meetings, start, end = await self.meetings_in_range(
            start_date, end_date, week_offset=week_offset
        )
        staff = await self._source.list_staff()
        result = await self._aggregator.aggregate_attendance(staff, meetings)
        return {
            "start_date": _day_text(start),
            "end_date": _day_text(end),
            "result": result,
            "top_performers": top_performers(result.per_entity),
        }

    async def staff_meeting_counts(
        self,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
        *,
        week_offset: int = 0,
    ) -> dict[str, Any]:
        """How many meetings in the range each staff member belongs to."""
        report = await self.attendance_report(start_date, end_date, week_offset=week_offset)
        result = report["result"]
        return {
            "start_date": report["start_date"],
            "end_date": report["end_date"],
            "counts": result.meeting_counts(),
            "caveat": result.caveat,
            "gaps": [{"meeting_id": g.meeting_id, "message": g.message} for g in result.gaps],
        }

    async def export_report(
        self,
        report_type: str,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
        *,
        week_offset: int = 0,
        selected_only: bool = False,
    ) -> ExportPayload:
        """Build an export payload.

        ``meetings`` and ``staff`` export the loaded collection: the current
        selection when ``selected_only`` is set and something is selected,
        otherwise every record matching the screen's search and filters.
        """
        if report_type not in REPORT_TYPES:
            raise ValidationError(
                f"Unknown report type {report_type!r}; expected one of {', '.join(REPORT_TYPES)}"
            )
        if report_type in ("meetings", "staff"):
            screen = self.screen(report_type)
            records = screen.selected_records() if selected_only else []
            if not records:
                records = screen.matching_records()
            return build_export(report_type, meetings=records, staff=records)

        if report_type == "attendance":
            report = await self.attendance_report(start_date, end_date, week_offset=week_offset)
            aggregation: AggregationResult = report["result"]
            return build_export("attendance", aggregation=aggregation)

        meetings, _, _ = await self.meetings_in_range(start_date, end_date, week_offset=week_offset)
        return build_export(report_type, meetings=meetings)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _participant_targets(
        self,
        screen: CollectionScreen,
        ids: Iterable[str] | None,
        *,
        default_all: bool = True,
    ) -> list[str]:
        if self._selected_meeting_id is None:
            raise ValidationError("Select a meeting first")
        if ids is not None:
            return list(ids)
        if screen.selection.selected:
            return list(screen.selection.selected)
        return self.participants.ids() if default_all else []


def _day_text(value: date | str | None) -> str | None:
    if isinstance(value, date):
        return value.isoformat()
    return value


def _merge_member(current: Record, updated: dict[str, Any]) -> Record:
    """Overlay a backend answer on the stored member row.

    The attendance endpoint may return ``staffId`` unpopulated; the stored
    populated object is kept in that case.
    """
    merged = {**current, **updated}
    if not isinstance(updated.get("staffId"), dict) and isinstance(current.get("staffId"), dict):
        merged["staffId"] = current["staffId"]
    return merged
