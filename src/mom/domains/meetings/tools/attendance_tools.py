"""MCP tools for a meeting's participants and their attendance."""

from __future__ import annotations

import logging

from fastmcp import Context, FastMCP

from mom.domains.meetings.tools.responses import error_response, ok, view_payload
from mom.domains.meetings.workspace import MeetingWorkspace

logger = logging.getLogger(__name__)


def register_attendance_tools(mcp: FastMCP, workspace: MeetingWorkspace) -> None:
    """Register participant and attendance tools on the MCP server."""

    @mcp.tool
    async def select_meeting(ctx: Context, meeting_id: str) -> str:
        """Open a meeting's participant list.

        Replaces the previously selected meeting; its participant selection
        is dropped.

        Args:
            meeting_id: The meeting's ``_id``.
        """
        try:
            screen = await workspace.select_meeting(meeting_id)
            return ok({
                "meeting_id": meeting_id,
                **view_payload("participants", screen.view()),
                "stats": workspace.collection_stats("participants"),
            })
        except Exception as exc:
            return error_response(exc, "select_meeting")

    @mcp.tool
    async def toggle_attendance(
        ctx: Context,
        member_id: str,
        remarks: str | None = None,
    ) -> str:
        """Flip one participant between present and absent.

        Args:
            member_id: The meeting-member ``_id`` (not the staff id).
            remarks: Optional note stored with the attendance mark.
        """
        try:
            member = await workspace.toggle_attendance(member_id, remarks)
            logger.info(
                "Marked %s %s", member_id, "present" if member.get("isPresent") else "absent"
            )
            return ok({
                "member": member,
                "stats": workspace.collection_stats("participants"),
            })
        except Exception as exc:
            return error_response(exc, "toggle_attendance")

    @mcp.tool
    async def add_participants(ctx: Context, staff_ids: list[str]) -> str:
        """Add staff members to the selected meeting in one request.

        Staff already in the meeting are skipped by the backend. The
        participant list is re-fetched afterwards.

        Args:
            staff_ids: Staff ``_id`` values to add.
        """
        try:
            added = await workspace.add_participants(staff_ids)
            return ok({
                "meeting_id": workspace.selected_meeting_id,
                "added": added,
                "added_count": len(added),
                **view_payload("participants", workspace.screen("participants").view()),
            })
        except Exception as exc:
            return error_response(exc, "add_participants")
