"""MCP tools for dashboard metrics and alerts."""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastmcp import Context, FastMCP

from mom.core.errors import ValidationError
from mom.core.storage.dismissals import DismissalStore
from mom.domains.meetings.tools.responses import error_response, ok
from mom.domains.meetings.workspace import MeetingWorkspace

logger = logging.getLogger(__name__)


def register_dashboard_tools(
    mcp: FastMCP,
    workspace: MeetingWorkspace,
    dismissals: DismissalStore,
) -> None:
    """Register dashboard tools on the MCP server."""

    @mcp.tool
    async def dashboard_metrics(ctx: Context) -> str:
        """Completion rate, attendance rate, activity score, growth and health band."""
        try:
            dashboard = await workspace.dashboard()
            return ok({
                "overview": dashboard["overview"],
                "metrics": dashboard["metrics"].to_dict(),
                "health": asdict(dashboard["health"]),
                "status_breakdown": dashboard["status_breakdown"],
            })
        except Exception as exc:
            return error_response(exc, "dashboard_metrics")

    @mcp.tool
    async def dashboard_alerts(ctx: Context, include_dismissed: bool = False) -> str:
        """Alerts raised by the current metrics.

        Args:
            include_dismissed: Also list alerts the user dismissed.
        """
        try:
            dashboard = await workspace.dashboard()
            alerts = dashboard["alerts"] if include_dismissed else dashboard["visible_alerts"]
            dismissed = dismissals.dismissed_ids()
            return ok({
                "alerts": [
                    {**a.to_dict(), "dismissed": a.rule_id in dismissed} for a in alerts
                ],
                "hidden_count": len(dashboard["alerts"]) - len(dashboard["visible_alerts"]),
            })
        except Exception as exc:
            return error_response(exc, "dashboard_alerts")

    @mcp.tool
    async def dismiss_alert(ctx: Context, rule_id: str) -> str:
        """Hide an alert until it is restored.

        Args:
            rule_id: The alert's ``rule_id``, e.g. 'low_attendance'.
        """
        try:
            if not rule_id.strip():
                raise ValidationError("rule_id is required")
            dismissals.dismiss(rule_id)
            return ok({"rule_id": rule_id, "dismissed": sorted(dismissals.dismissed_ids())})
        except Exception as exc:
            return error_response(exc, "dismiss_alert")

    @mcp.tool
    async def restore_alerts(ctx: Context, rule_id: str | None = None) -> str:
        """Show dismissed alerts again.

        Args:
            rule_id: Restore only this alert; omit to restore all of them.
        """
        try:
            if rule_id:
                restored = 1 if dismissals.restore(rule_id) else 0
            else:
                restored = dismissals.restore_all()
            logger.info("Restored %d dismissed alert(s)", restored)
            return ok({"restored": restored, "dismissed": sorted(dismissals.dismissed_ids())})
        except Exception as exc:
            return error_response(exc, "restore_alerts")
