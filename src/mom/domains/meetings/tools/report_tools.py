"""MCP tools for attendance reports and exports."""

from __future__ import annotations

from fastmcp import Context, FastMCP

from mom.domains.meetings.tools.responses import error_response, ok
from mom.domains.meetings.workspace import MeetingWorkspace


def register_report_tools(mcp: FastMCP, workspace: MeetingWorkspace) -> None:
    """Register report tools on the MCP server."""

    @mcp.tool
    async def attendance_report(
        ctx: Context,
        start_date: str | None = None,
        end_date: str | None = None,
        week_offset: int = 0,
    ) -> str:
        """Per-staff attendance over the meetings in a date range.

        Meetings whose participant list could not be read are left out of
        every count and listed under ``gaps``; ``caveat`` is set whenever
        that happened.

        Args:
            start_date: First day (YYYY-MM-DD), inclusive.
            end_date: Last day (YYYY-MM-DD), inclusive.
            week_offset: With no dates, report on this week (0), last week (-1), ...
        """
        try:
            report = await workspace.attendance_report(
                start_date, end_date, week_offset=week_offset
            )
            result = report["result"]
            return ok({
                "start_date": report["start_date"],
                "end_date": report["end_date"],
                **result.to_dict(),
                "has_gaps": result.has_gaps,
                "top_performers": [
                    {"entity_id": s.entity_id, "name": s.name, "rate_percent": s.rate_percent}
                    for s in report["top_performers"]
                ],
            })
        except Exception as exc:
            return error_response(exc, "attendance_report")

    @mcp.tool
    async def staff_meeting_counts(
        ctx: Context,
        start_date: str | None = None,
        end_date: str | None = None,
        week_offset: int = 0,
    ) -> str:
        """Number of meetings in a date range each staff member takes part in.

        Staff in none of them are listed with 0.

        Args:
            start_date: First day (YYYY-MM-DD), inclusive.
            end_date: Last day (YYYY-MM-DD), inclusive.
            week_offset: With no dates, count this week (0), last week (-1), ...
        """
        try:
            return ok(await workspace.staff_meeting_counts(
                start_date, end_date, week_offset=week_offset
            ))
        except Exception as exc:
            return error_response(exc, "staff_meeting_counts")

    @mcp.tool
    async def export_report(
        ctx: Context,
        report_type: str,
        start_date: str | None = None,
        end_date: str | None = None,
        week_offset: int = 0,
        selected_only: bool = False,
    ) -> str:
        """Build export rows (title, columns, rows) for a report or collection.

        Args:
            report_type: 'summary', 'attendance', 'cancelled', 'meetings' or 'staff'.
            start_date: First day (YYYY-MM-DD) for the date-ranged reports.
            end_date: Last day (YYYY-MM-DD) for the date-ranged reports.
            week_offset: With no dates, use this week (0), last week (-1), ...
            selected_only: For 'meetings'/'staff', export only the selection.
        """
        try:
            payload = await workspace.export_report(
                report_type,
                start_date,
                end_date,
                week_offset=week_offset,
                selected_only=selected_only,
            )
            return ok({"report_type": report_type, **payload.to_dict()})
        except Exception as exc:
            return error_response(exc, "export_report")
