"""REST client for the Minutes-of-Meeting backend.

Requests are blocking ``requests`` calls pushed onto a worker thread with
``asyncio.to_thread``, so a slow backend never stalls the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests

from mom.core.errors import TransportError, ValidationError

logger = logging.getLogger(__name__)


class MomApiClient:
    """Thin async wrapper over the backend's REST endpoints.

    Every method returns the decoded record (or list of records) or raises
    ``TransportError``. Envelopes of the form ``{"success": ..., "data": ...}``
    are unwrapped.

    Usage::

        api = MomApiClient("http://127.0.0.1:5000/api", token="...")
        members = await api.list_members("665f...")
        updated = await api.mark_attendance(members[0]["_id"], True)
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str = "",
        timeout: float = 15.0,
        session: Any | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session if session is not None else requests.Session()
        self._headers = {"Content-Type": "application/json"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def data_source(self) -> str:
        return "rest"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_staff(self) -> list[dict[str, Any]]:
        return _as_list(await self._call("GET", "/staff"))

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
        """List meetings; only the query parameters that are set are sent."""
        params = {
            "page": page,
            "limit": limit,
            "search": search,
            "status": status,
            "meetingTypeId": meeting_type_id,
            "startDate": start_date,
            "endDate": end_date,
            "sortBy": sort_by,
            "sortOrder": sort_order,
        }
        query = {k: v for k, v in params.items() if v not in (None, "")}
        return _as_list(await self._call("GET", "/meetings", params=query))

    async def list_members(self, meeting_id: str) -> list[dict[str, Any]]:
        _require(meeting_id, "meeting_id")
        return _as_list(await self._call("GET", f"/meetings/{meeting_id}/members"))

    async def get_attendance_stats(self, meeting_id: str) -> dict[str, Any]:
        _require(meeting_id, "meeting_id")
        return _as_dict(await self._call("GET", f"/meetings/{meeting_id}/attendance"))

    async def get_overview(self) -> dict[str, Any]:
        """Dashboard data: ``overview``, ``meetingStatusStats``, ``attendanceStats``, ..."""
        return _as_dict(await self._call("GET", "/dashboard/overview"))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def mark_attendance(
        self, member_id: str, is_present: bool, remarks: str | None = None
    ) -> dict[str, Any]:
        _require(member_id, "member_id")
        body: dict[str, Any] = {"isPresent": is_present}
        if remarks is not None:
            body["remarks"] = remarks
        return _as_dict(
            await self._call("PUT", f"/meeting-members/{member_id}/attendance", json=body)
        )

    async def add_member(
        self, meeting_id: str, staff_id: str, is_present: bool = False
    ) -> dict[str, Any]:
        _require(meeting_id, "meeting_id")
        _require(staff_id, "staff_id")
        return _as_dict(
            await self._call(
                "POST",
                f"/meetings/{meeting_id}/members",
                json={"staffId": staff_id, "isPresent": is_present},
            )
        )

    async def add_members_bulk(
        self, meeting_id: str, staff_ids: list[str]
    ) -> list[dict[str, Any]]:
        _require(meeting_id, "meeting_id")
        if not staff_ids:
            raise ValidationError("staff_ids must not be empty")
        return _as_list(
            await self._call(
                "POST",
                f"/meetings/{meeting_id}/members/bulk",
                json={"staffIds": list(staff_ids)},
            )
        )

    async def remove_member(self, member_id: str) -> None:
        _require(member_id, "member_id")
        await self._call("DELETE", f"/meeting-members/{member_id}")

    async def delete_meeting(self, meeting_id: str) -> None:
        _require(meeting_id, "meeting_id")
        await self._call("DELETE", f"/meetings/{meeting_id}")

    async def delete_staff(self, staff_id: str) -> None:
        _require(staff_id, "staff_id")
        await self._call("DELETE", f"/staff/{staff_id}")

    def close(self) -> None:
        self._session.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        return await asyncio.to_thread(self._request, method, path, **kwargs)

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self._base_url}{path}"
        logger.debug("%s %s", method, url)

        try:
            response = self._session.request(
                method, url, headers=self._headers, timeout=self._timeout, **kwargs
            )
        except requests.RequestException as exc:
            logger.warning("Request %s %s failed: %s", method, url, exc)
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise TransportError(
                f"{method} {path} returned HTTP {response.status_code}: "
                f"{_error_message(response)}",
                status_code=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return None

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(
                f"{method} {path} returned a non-JSON body",
                status_code=response.status_code,
            ) from exc

        return _unwrap(payload)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _require(value: str, name: str) -> None:
    if not value or not str(value).strip():
        raise ValidationError(f"{name} is required")


def _unwrap(payload: Any) -> Any:
    """Strip the backend's ``{"success": ..., "data": ...}`` envelope."""
    if isinstance(payload, dict) and "data" in payload:
        if payload.get("success") is False:
            raise TransportError(_format_message(payload))
        return payload["data"]
    return payload


def _as_list(payload: Any) -> list[dict[str, Any]]:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise TransportError(f"Expected a JSON array, got {type(payload).__name__}")
    return payload


def _as_dict(payload: Any) -> dict[str, Any]:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise TransportError(f"Expected a JSON object, got {type(payload).__name__}")
    return payload


def _error_message(response: Any) -> str:
    try:
        body = response.json()
    except ValueError:
        return (response.text or "").strip()[:200] or "no body"
    return _format_message(body)


def _format_message(body: Any) -> str:
    if isinstance(body, dict):
        msg = body.get("message") or body.get("error")
        if isinstance(msg, str) and msg:
            return msg
    return str(body)[:200]
