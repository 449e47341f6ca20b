"""Concrete MeetingDataSource implementations."""

from __future__ import annotations

import copy
import itertools
from datetime import datetime
from typing import Any

from mom.core.errors import TransportError, ValidationError
from mom.core.view.projector import filter_by_date_range
from mom.domains.meetings.connectors.mock_data import (
    get_mock_meetings,
    get_mock_members,
    get_mock_staff,
)
from mom.domains.meetings.domain_logic.models import meeting_status, member_staff_id
from mom.domains.meetings.domain_logic.statistics import (
    attendance_stats_from_members,
    overview_from_collections,
    status_stats_from_meetings,
)


class InMemoryMeetingDataSource:
    """Serves sample collections from memory. Always available.

    Mutations change the in-memory copies, so a session behaves like a
    small backend. Missing ids answer with a 404-style ``TransportError``.
    """

    def __init__(
        self,
        staff: list[dict[str, Any]] | None = None,
        meetings: list[dict[str, Any]] | None = None,
        members: dict[str, list[dict[str, Any]]] | None = None,
        *,
        now: datetime | None = None,
    ) -> None:
        self._staff = copy.deepcopy(staff if staff is not None else get_mock_staff())
        self._meetings = copy.deepcopy(meetings if meetings is not None else get_mock_meetings())
        source = members if members is not None else get_mock_members()
        self._members = {m["_id"]: copy.deepcopy(source.get(m["_id"], [])) for m in self._meetings}
        self._now = now
        self._ids = itertools.count(1)

    @property
    def data_source(self) -> str:
        return "mock"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_staff(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._staff)

    async def list_meetings(
        self,
        *,
        page: int | None = None,
        limit: int | None = None,
        search: str | None = None,
        status: str | None = None,
        meeting_type_id: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> list[dict[str, Any]]:
        rows = filter_by_date_range(self._meetings, "meetingDate", start_date, end_date)
        if status:
            rows = [m for m in rows if meeting_status(m) == status]
        if meeting_type_id:
            rows = [m for m in rows if _type_id(m) == meeting_type_id]
        if search:
            term = search.casefold()
            rows = [m for m in rows if term in str(m.get("meetingTitle", "")).casefold()]
        if sort_by:
            rows = sorted(
                rows, key=lambda m: str(m.get(sort_by) or ""), reverse=(sort_order == "desc")
            )
        if limit:
            start = ((page or 1) - 1) * limit
            rows = rows[start:start + limit]
        return copy.deepcopy(rows)

    async def list_members(self, meeting_id: str) -> list[dict[str, Any]]:
        return copy.deepcopy(self._members_of(meeting_id))

    async def get_attendance_stats(self, meeting_id: str) -> dict[str, Any]:
        stats = attendance_stats_from_members(self._members_of(meeting_id))
        stats["meetingId"] = meeting_id
        return stats

    async def get_overview(self) -> dict[str, Any]:
        all_members = [m for rows in self._members.values() for m in rows]
        return {
            "overview": overview_from_collections(self._meetings, self._staff, self._now),
            "meetingStatusStats": status_stats_from_meetings(self._meetings),
            "attendanceStats": attendance_stats_from_members(all_members),
        }

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def mark_attendance(
        self, member_id: str, is_present: bool, remarks: str | None = None
    ) -> dict[str, Any]:
        member = self._find_member(member_id)
        member["isPresent"] = bool(is_present)
        if remarks is not None:
            member["remarks"] = remarks
        return copy.deepcopy(member)

    async def add_member(
        self, meeting_id: str, staff_id: str, is_present: bool = False
    ) -> dict[str, Any]:
        rows = self._members_of(meeting_id)
        if any(member_staff_id(m) == staff_id for m in rows):
            raise TransportError(
                f"Staff {staff_id} is already a member of meeting {meeting_id}",
                status_code=409,
            )
        person = self._find_staff(staff_id)
        member = {
            "_id": f"mm-new-{next(self._ids)}",
            "meetingId": meeting_id,
            "staffId": {
                "_id": staff_id,
                "staffName": person.get("staffName"),
                "emailAddress": person.get("emailAddress"),
                "designation": person.get("designation"),
            },
            "isPresent": bool(is_present),
            "remarks": "",
        }
        rows.append(member)
        return copy.deepcopy(member)

    async def add_members_bulk(
        self, meeting_id: str, staff_ids: list[str]
    ) -> list[dict[str, Any]]:
        """Add every staff id not already in the meeting; existing ones are skipped."""
        if not staff_ids:
            raise ValidationError("staff_ids must not be empty")
        existing = {member_staff_id(m) for m in self._members_of(meeting_id)}
        added = []
        for staff_id in dict.fromkeys(staff_ids):
            if staff_id in existing:
                continue
            added.append(await self.add_member(meeting_id, staff_id))
        return added

    async def remove_member(self, member_id: str) -> None:
        for rows in self._members.values():
            for i, member in enumerate(rows):
                if member["_id"] == member_id:
                    del rows[i]
                    return
        raise TransportError(f"Meeting member {member_id} not found", status_code=404)

    async def delete_meeting(self, meeting_id: str) -> None:
        self._members_of(meeting_id)
        self._meetings = [m for m in self._meetings if m["_id"] != meeting_id]
        del self._members[meeting_id]

    async def delete_staff(self, staff_id: str) -> None:
        self._find_staff(staff_id)
        self._staff = [s for s in self._staff if s["_id"] != staff_id]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _members_of(self, meeting_id: str) -> list[dict[str, Any]]:
        try:
            return self._members[meeting_id]
        except KeyError:
            raise TransportError(f"Meeting {meeting_id} not found", status_code=404) from None

    def _find_member(self, member_id: str) -> dict[str, Any]:
        for rows in self._members.values():
            for member in rows:
                if member["_id"] == member_id:
                    return member
        raise TransportError(f"Meeting member {member_id} not found", status_code=404)

    def _find_staff(self, staff_id: str) -> dict[str, Any]:
        for person in self._staff:
            if person["_id"] == staff_id:
                return person
        raise TransportError(f"Staff {staff_id} not found", status_code=404)


def _type_id(meeting: dict[str, Any]) -> str | None:
    value = meeting.get("meetingTypeId")
    if isinstance(value, dict):
        return value.get("_id")
    return value
