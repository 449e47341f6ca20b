"""Meeting data connectors — abstraction layer over the backend."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MeetingDataSource(Protocol):
    """Abstract interface for staff, meeting and membership data.

    The workspace calls these methods without knowing whether data comes
    from the REST backend or an in-memory sample set.
    """

    async def list_staff(self) -> list[dict[str, Any]]:
        """All staff records."""
        ...

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
        """Meetings, optionally narrowed server-side."""
        ...

    async def list_members(self, meeting_id: str) -> list[dict[str, Any]]:
        """Membership rows of one meeting, ``staffId`` populated."""
        ...

    async def get_attendance_stats(self, meeting_id: str) -> dict[str, Any]:
        ...

    async def get_overview(self) -> dict[str, Any]:
        """Dashboard data: overview counts, status stats, attendance stats."""
        ...

    async def mark_attendance(
        self, member_id: str, is_present: bool, remarks: str | None = None
    ) -> dict[str, Any]:
        ...

    async def add_member(
        self, meeting_id: str, staff_id: str, is_present: bool = False
    ) -> dict[str, Any]:
        ...

    async def add_members_bulk(
        self, meeting_id: str, staff_ids: list[str]
    ) -> list[dict[str, Any]]:
        ...

    async def remove_member(self, member_id: str) -> None:
        ...

    async def delete_meeting(self, meeting_id: str) -> None:
        ...

    async def delete_staff(self, staff_id: str) -> None:
        ...

    @property
    def data_source(self) -> str:
        """Label for the active data source: 'rest' or 'mock'."""
        ...
