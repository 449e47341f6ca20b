"""Tests for MomApiClient — requests wiring, envelopes and error mapping."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest
import requests

from mom.core.api.client import MomApiClient
from mom.core.errors import TransportError, ValidationError


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        if text is None and body is not None:
            text = json.dumps(body)
        self.text = text or ""
        self.content = self.text.encode()

    def json(self) -> Any:
        return json.loads(self.text)


class FakeSession:
    """Records requests and answers with queued responses."""

    def __init__(self, *responses: FakeResponse | Exception) -> None:
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


def _client(*responses, token: str = "") -> tuple[MomApiClient, FakeSession]:
    session = FakeSession(*responses)
    return MomApiClient("http://backend/api/", token=token, session=session), session


class TestRequests:
    def test_envelope_unwrapped(self):
        client, session = _client(FakeResponse(body={"success": True, "data": [{"_id": "s-1"}]}))
        assert _run(client.list_staff()) == [{"_id": "s-1"}]
        assert session.requests[0]["url"] == "http://backend/api/staff"
        assert session.requests[0]["method"] == "GET"

    def test_bare_payload_accepted(self):
        client, _ = _client(FakeResponse(body=[{"_id": "mm-1"}]))
        assert _run(client.list_members("m-1")) == [{"_id": "mm-1"}]

    def test_bearer_token_and_timeout(self):
        client, session = _client(FakeResponse(body={"data": {}}), token="secret")
        _run(client.get_overview())
        sent = session.requests[0]
        assert sent["headers"]["Authorization"] == "Bearer secret"
        assert sent["timeout"] == 15.0

    def test_meeting_query_drops_unset_params(self):
        client, session = _client(FakeResponse(body={"data": []}))
        _run(client.list_meetings(limit=100, start_date="2026-10-12", status=""))
        assert session.requests[0]["params"] == {"limit": 100, "startDate": "2026-10-12"}

    def test_mark_attendance_body(self):
        client, session = _client(FakeResponse(body={"data": {"_id": "mm-1", "isPresent": True}}))
        result = _run(client.mark_attendance("mm-1", True, remarks="late"))
        assert result["isPresent"] is True
        sent = session.requests[0]
        assert sent["method"] == "PUT"
        assert sent["url"].endswith("/meeting-members/mm-1/attendance")
        assert sent["json"] == {"isPresent": True, "remarks": "late"}

    def test_bulk_add_uses_bulk_endpoint(self):
        client, session = _client(FakeResponse(body={"data": [{"_id": "mm-9"}]}))
        _run(client.add_members_bulk("m-1", ["s-1", "s-2"]))
        sent = session.requests[0]
        assert sent["url"].endswith("/meetings/m-1/members/bulk")
        assert sent["json"] == {"staffIds": ["s-1", "s-2"]}

    def test_delete_with_empty_body(self):
        client, _ = _client(FakeResponse(status_code=204))
        assert _run(client.delete_meeting("m-1")) is None

    def test_close_closes_session(self):
        client, session = _client()
        client.close()
        assert session.closed


class TestValidation:
    def test_empty_bulk_add_rejected_before_request(self):
        client, session = _client()
        with pytest.raises(ValidationError):
            _run(client.add_members_bulk("m-1", []))
        assert session.requests == []

    def test_missing_id_rejected(self):
        client, _ = _client()
        with pytest.raises(ValidationError, match="member_id"):
            _run(client.remove_member(""))


class TestErrors:
    def test_non_2xx_raises_with_status(self):
        client, _ = _client(FakeResponse(status_code=404, body={"message": "Meeting not found"}))
        with pytest.raises(TransportError, match="Meeting not found") as info:
            _run(client.list_members("m-x"))
        assert info.value.status_code == 404

    def test_connection_error(self):
        client, _ = _client(requests.ConnectionError("refused"))
        with pytest.raises(TransportError, match="refused"):
            _run(client.list_staff())

    def test_timeout(self):
        client, _ = _client(requests.Timeout("read timed out"))
        with pytest.raises(TransportError):
            _run(client.list_staff())

    def test_non_json_body(self):
        client, _ = _client(FakeResponse(text="<html>oops</html>"))
        with pytest.raises(TransportError, match="non-JSON"):
            _run(client.list_staff())

    def test_success_false_envelope(self):
        client, _ = _client(FakeResponse(body={"success": False, "data": None, "message": "denied"}))
        with pytest.raises(TransportError, match="denied"):
            _run(client.list_staff())

    def test_wrong_shape(self):
        client, _ = _client(FakeResponse(body={"data": {"not": "a list"}}))
        with pytest.raises(TransportError, match="JSON array"):
            _run(client.list_staff())

    def test_data_source_label(self):
        client, _ = _client()
        assert client.data_source == "rest"
