"""Integration tests for the Minutes-of-Meeting MCP server."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone

import pytest
from fastmcp import Client

from mom.core.server.app import create_app
from mom.core.storage.database import MomDatabase
from mom.core.storage.dismissals import DismissalStore
from mom.domains.meetings.connectors.providers import InMemoryMeetingDataSource


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _text(result) -> str:
    """First text block of a tool result (CallToolResult or a content list)."""
    content = getattr(result, "content", result)
    return content[0].text


def _call(client: Client, tool: str, args: dict | None = None) -> dict:
    """Call one tool in a fresh session and decode its JSON answer."""
    async def _go():
        async with client:
            return await client.call_tool(tool, args or {})
    return json.loads(_text(_run(_go())))


ALL_EXPECTED_TOOLS = [
    "health_check",
    "load_collection",
    "view_collection",
    "toggle_select",
    "select_all",
    "clear_selection",
    "run_bulk",
    "refresh",
    "select_meeting",
    "toggle_attendance",
    "add_participants",
    "dashboard_metrics",
    "dashboard_alerts",
    "dismiss_alert",
    "restore_alerts",
    "attendance_report",
    "staff_meeting_counts",
    "export_report",
]


@pytest.fixture
def dismissals():
    db = MomDatabase(":memory:")
    db.initialize()
    yield DismissalStore(db)
    db.close()


@pytest.fixture
def client(dismissals):
    """MCP client for a server backed by the sample collections."""
    source = InMemoryMeetingDataSource(now=datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc))
    mcp = create_app(data_source_override=source, dismissal_store_override=dismissals)
    return Client(mcp)


def test_server_starts_and_lists_tools(client):
    """Server should start and expose all registered tools."""
    async def _check():
        async with client:
            tools = await client.list_tools()
            tool_names = [t.name for t in tools]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in tool_names, f"Missing tool: {expected}"
    _run(_check())


def test_health_check_returns_ok(client):
    data = _call(client, "health_check")
    assert data["status"] == "ok"
    assert data["data_source"] == "mock"
    assert data["alert_rules_loaded"] == 4


def test_load_and_page_meetings(client):
    data = _call(client, "load_collection", {"collection": "meetings"})
    assert data["status"] == "ok"
    assert data["total_count"] == 5
    assert data["stats"]["totalMeetings"] == 5


def test_unknown_collection_is_validation_error(client):
    data = _call(client, "load_collection", {"collection": "rooms"})
    assert data == {
        "status": "error",
        "error_type": "validation_error",
        "message": "Unknown collection 'rooms'; expected one of staff, meetings, participants",
    }


def test_view_collection_search_and_sort(client):
    async def _go():
        async with client:
            await client.call_tool("load_collection", {"collection": "staff"})
            return await client.call_tool(
                "view_collection",
                {"collection": "staff", "search_term": "engineering", "sort_direction": "desc"},
            )
    data = json.loads(_text(_run(_go())))
    assert [r["staffName"] for r in data["page"]] == ["Chen Li", "Asha Rao"]
    assert data["total_count"] == 2


def test_view_collection_steps_through_pages(client):
    async def _go():
        async with client:
            await client.call_tool("load_collection", {"collection": "meetings"})
            first = await client.call_tool(
                "view_collection", {"collection": "meetings", "page_size": 2, "step": "next"}
            )
            last = await client.call_tool("view_collection", {"collection": "meetings", "page": 3})
            past_end = await client.call_tool(
                "view_collection", {"collection": "meetings", "step": "next"}
            )
            back = await client.call_tool(
                "view_collection", {"collection": "meetings", "step": "previous"}
            )
            bad = await client.call_tool(
                "view_collection", {"collection": "meetings", "step": "last"}
            )
            return first, last, past_end, back, bad
    first, last, past_end, back, bad = (json.loads(_text(r)) for r in _run(_go()))
    assert first["page_index"] == 2
    assert last["page_index"] == 3
    assert past_end["page_index"] == 3
    assert back["page_index"] == 2
    assert bad["error_type"] == "validation_error"


def test_attendance_workflow(client):
    async def _go():
        async with client:
            await client.call_tool("select_meeting", {"meeting_id": "m-1"})
            await client.call_tool("toggle_select", {"collection": "participants", "record_id": "mm-3"})
            return await client.call_tool(
                "run_bulk", {"collection": "participants", "action": "mark_present"}
            )
    data = json.loads(_text(_run(_go())))
    assert data["succeeded"] == ["mm-3"]
    assert data["partial_failure"] is None


def test_bulk_delete_reports_partial_failure(client):
    async def _go():
        async with client:
            await client.call_tool("load_collection", {"collection": "staff"})
            return await client.call_tool(
                "run_bulk", {"collection": "staff", "action": "delete", "ids": ["s-1", "s-9"]}
            )
    data = json.loads(_text(_run(_go())))
    assert data["succeeded"] == ["s-1"]
    assert data["failed"][0]["error_type"] == "transport_error"
    assert data["partial_failure"]["failed_count"] == 1
    assert data["partial_failure"]["error_type"] == "partial_batch_failure"


def test_dashboard_metrics(client):
    data = _call(client, "dashboard_metrics")
    assert data["metrics"]["completion_rate"] == 40.0
    assert data["health"]["status"] == "fair"


def test_dismiss_and_restore_alerts(client, dismissals):
    async def _go():
        async with client:
            await client.call_tool("dismiss_alert", {"rule_id": "low_attendance"})
            hidden = await client.call_tool("dashboard_alerts", {})
            everything = await client.call_tool("dashboard_alerts", {"include_dismissed": True})
            restored = await client.call_tool("restore_alerts", {})
            return hidden, everything, restored
    hidden, everything, restored = (json.loads(_text(r)) for r in _run(_go()))
    assert [a["rule_id"] for a in hidden["alerts"]] == ["low_completion"]
    assert hidden["hidden_count"] == 1
    assert [a["dismissed"] for a in everything["alerts"]] == [True, False]
    assert restored["restored"] == 1
    assert dismissals.dismissed_ids() == set()


def test_attendance_report(client):
    data = _call(
        client,
        "attendance_report",
        {"start_date": "2026-10-12", "end_date": "2026-10-18"},
    )
    assert data["totals"] == {"counted": 3, "matched": 2, "rate": 2 / 3, "rate_percent": 67}
    assert data["has_gaps"] is False
    assert data["no_meeting_entity_ids"] == ["s-3"]


def test_export_unknown_report_type(client):
    data = _call(client, "export_report", {"report_type": "weekly"})
    assert data["status"] == "error"
    assert data["error_type"] == "validation_error"


def test_export_cancelled(client):
    data = _call(
        client,
        "export_report",
        {"report_type": "cancelled", "start_date": "2026-10-01", "end_date": "2026-10-31"},
    )
    assert data["title"] == "Cancelled Meeting Report"
    assert data["rows"][0]["reason"] == "Venue unavailable"


def test_staff_meeting_counts(client):
    data = _call(
        client,
        "staff_meeting_counts",
        {"start_date": "2026-10-12", "end_date": "2026-10-18"},
    )
    assert data["status"] == "ok"
    assert data["counts"] == {"s-1": 1, "s-2": 1, "s-3": 0, "s-4": 1}
    assert data["gaps"] == []
