"""MCP tools for browsing collections, selecting records and bulk actions."""

from __future__ import annotations

from typing import Any

from fastmcp import Context, FastMCP

from mom.core.errors import ValidationError
from mom.domains.meetings.tools.responses import error_response, ok, view_payload
from mom.domains.meetings.workspace import MeetingWorkspace


def register_collection_tools(mcp: FastMCP, workspace: MeetingWorkspace) -> None:
    """Register collection view, selection and bulk tools on the MCP server."""

    @mcp.tool
    async def load_collection(ctx: Context, collection: str) -> str:
        """Fetch a collection from the backend and show its first page.

        Args:
            collection: One of 'staff', 'meetings' or 'participants'
                (participants need a selected meeting).
        """
        try:
            screen = await workspace.load(collection)
            return ok({
                **view_payload(collection, screen.view()),
                "stats": workspace.collection_stats(collection),
                "data_source": workspace.source.data_source,
            })
        except Exception as exc:
            return error_response(exc, "load_collection")

    @mcp.tool
    async def view_collection(
        ctx: Context,
        collection: str,
        search_term: str | None = None,
        filters: dict[str, Any] | None = None,
        clear_filters: bool = False,
        sort_key: str | None = None,
        sort_direction: str | None = None,
        page: int | None = None,
        page_size: int | None = None,
        step: str | None = None,
    ) -> str:
        """Change search, filters, sort or page of a collection and show the page.

        Changing search, filters, sort or page size goes back to page 1.

        Args:
            collection: 'staff', 'meetings' or 'participants'.
            search_term: Case-insensitive substring over the searchable fields.
            filters: Exact-match filters, field path -> value (null removes one).
            clear_filters: Drop every filter before applying ``filters``.
            sort_key: Sort key name, e.g. 'name', 'date', 'status'.
            sort_direction: 'asc' or 'desc'.
            page: 1-based page index; clamped into range.
            page_size: Rows per page (at least 1).
            step: 'next' or 'previous' page, applied after ``page``.
        """
        try:
            screen = workspace.screen(collection)
            if sort_direction not in (None, "asc", "desc"):
                raise ValidationError("sort_direction must be 'asc' or 'desc'")
            if step not in (None, "next", "previous"):
                raise ValidationError("step must be 'next' or 'previous'")
            if clear_filters:
                screen.clear_filters()
            for field_path, value in (filters or {}).items():
                screen.set_filter(field_path, value)
            if search_term is not None:
                screen.set_search_term(search_term)
            if sort_key is not None:
                screen.set_sort(sort_key, sort_direction)
            elif sort_direction is not None and sort_direction != screen.params.sort_direction:
                screen.toggle_sort_direction()
            if page_size is not None:
                screen.set_page_size(page_size)
            if page is not None:
                screen.set_page(page)
            if step == "next":
                screen.next_page()
            elif step == "previous":
                screen.previous_page()
            return ok(view_payload(collection, screen.view()))
        except Exception as exc:
            return error_response(exc, "view_collection")

    @mcp.tool
    async def toggle_select(ctx: Context, collection: str, record_id: str) -> str:
        """Select or deselect one record.

        Args:
            collection: 'staff', 'meetings' or 'participants'.
            record_id: The record's ``_id``.
        """
        try:
            screen = workspace.screen(collection)
            selected = screen.toggle_select(record_id)
            return ok({
                "collection": collection,
                "record_id": record_id,
                "selected": selected,
                "selection": list(screen.selection.selected),
            })
        except Exception as exc:
            return error_response(exc, "toggle_select")

    @mcp.tool
    async def select_all(ctx: Context, collection: str, scope: str = "page") -> str:
        """Select records in bulk.

        Args:
            collection: 'staff', 'meetings' or 'participants'.
            scope: 'page' toggles the current page (deselects it when already
                fully selected); 'matching' selects every record passing the
                current search and filters.
        """
        try:
            screen = workspace.screen(collection)
            if scope == "page":
                screen.toggle_select_page()
            elif scope == "matching":
                screen.select_all_matching()
            else:
                raise ValidationError("scope must be 'page' or 'matching'")
            return ok({"collection": collection, "selection": list(screen.selection.selected)})
        except Exception as exc:
            return error_response(exc, "select_all")

    @mcp.tool
    async def clear_selection(ctx: Context, collection: str) -> str:
        """Deselect every record of a collection."""
        try:
            workspace.screen(collection).clear_selection()
            return ok({"collection": collection, "selection": []})
        except Exception as exc:
            return error_response(exc, "clear_selection")

    @mcp.tool
    async def run_bulk(
        ctx: Context,
        collection: str,
        action: str,
        ids: list[str] | None = None,
    ) -> str:
        """Apply an action to the selected records, one at a time.

        Every record is attempted once; failures are listed per id and do
        not stop the rest.

        Args:
            collection: 'participants' (mark_present, mark_absent, remove),
                'meetings' (delete) or 'staff' (delete).
            action: The action name.
            ids: Explicit record ids instead of the current selection.
        """
        try:
            result = await workspace.run_bulk(collection, action, ids)
            error = result.error
            return ok({
                "collection": collection,
                "action": action,
                **result.to_dict(),
                "partial_failure": (
                    {
                        "error_type": error.error_type,
                        "failed_count": error.failed_count,
                        "total": error.total,
                        "first_message": error.first_message,
                    }
                    if error is not None
                    else None
                ),
                "view": view_payload(collection, workspace.screen(collection).view()),
            })
        except Exception as exc:
            return error_response(exc, "run_bulk")

    @mcp.tool
    async def refresh(ctx: Context, collection: str) -> str:
        """Re-fetch a collection, keeping search, sort and the still-valid selection."""
        try:
            screen = await workspace.load(collection)
            return ok(view_payload(collection, screen.view()))
        except Exception as exc:
            return error_response(exc, "refresh")
