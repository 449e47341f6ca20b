"""Minutes-of-Meeting MCP server: application factory.

``create_app()`` builds a fresh server per call so integration tests can run
isolated instances. The module-level ``mcp`` is created lazily for
``fastmcp run`` discovery.
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from mom.core.api.client import MomApiClient
from mom.core.config.settings import Settings, get_settings
from mom.core.storage.database import IN_MEMORY, DatabaseError, MomDatabase
from mom.core.storage.dismissals import DismissalStore
from mom.domains.meetings.connectors import MeetingDataSource
from mom.domains.meetings.connectors.providers import InMemoryMeetingDataSource
from mom.domains.meetings.domain_logic.alerts import default_rules
from mom.domains.meetings.tools.attendance_tools import register_attendance_tools
from mom.domains.meetings.tools.collection_tools import register_collection_tools
from mom.domains.meetings.tools.dashboard_tools import register_dashboard_tools
from mom.domains.meetings.tools.report_tools import register_report_tools
from mom.domains.meetings.workspace import MeetingWorkspace

logger = logging.getLogger(__name__)

SERVER_NAME = "Minutes of Meeting"
SERVER_VERSION = "0.1.0"

_INSTRUCTIONS = (
    "Minutes-of-Meeting collection engine. Browse staff, meetings and "
    "participants with search, sort and paging; select records and run "
    "bulk attendance, removal and deletion actions; read dashboard "
    "metrics and alerts; build attendance reports and exports."
)


def build_data_source(settings: Settings) -> MeetingDataSource:
    """REST client for the configured backend, or the bundled sample data."""
    if settings.use_mock_data:
        logger.info("Using in-memory sample data")
        return InMemoryMeetingDataSource()
    logger.info("REST backend configured for %s", settings.mom_api_base_url)
    return MomApiClient(
        settings.mom_api_base_url,
        token=settings.mom_api_token,
        timeout=settings.mom_api_timeout_s,
    )


def open_dismissal_store(settings: Settings) -> DismissalStore:
    """Open the dismissal database, degrading to memory if the file is unusable."""
    database = MomDatabase(settings.db_path)
    try:
        database.initialize()
    except DatabaseError as exc:
        logger.error("%s", exc)
        logger.warning("Continuing with in-memory dismissals; they will not survive a restart")
        database = MomDatabase(IN_MEMORY)
        database.initialize()
    return DismissalStore(database)


def create_app(
    *,
    data_source_override: MeetingDataSource | None = None,
    dismissal_store_override: DismissalStore | None = None,
) -> FastMCP:
    """Create and configure the Minutes-of-Meeting MCP server.

    Args:
        data_source_override: Use this source instead of the configured one.
        dismissal_store_override: Use this store instead of opening ``DB_PATH``.
    """
    settings = get_settings()
    server = FastMCP(SERVER_NAME, instructions=_INSTRUCTIONS)

    source = (
        data_source_override
        if data_source_override is not None
        else build_data_source(settings)
    )
    dismissals = (
        dismissal_store_override
        if dismissal_store_override is not None
        else open_dismissal_store(settings)
    )
    rules = list(default_rules())
    workspace = MeetingWorkspace(
        source,
        page_size=settings.default_page_size,
        max_concurrency=settings.aggregation_max_concurrency,
        dismissals=dismissals,
        alert_rules=rules,
    )

    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "data_source": source.data_source,
            "alert_rules_loaded": len(rules),
            "dismissed_alerts": len(dismissals.dismissed_ids()),
            "selected_meeting_id": workspace.selected_meeting_id,
        }

    register_collection_tools(server, workspace)
    register_attendance_tools(server, workspace)
    register_dashboard_tools(server, workspace, dismissals)
    register_report_tools(server, workspace)
    logger.info("Meeting tools registered (%s data source)", source.data_source)

    return server


# Lazy: only created on attribute access, so importing create_app has no side effects.
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
