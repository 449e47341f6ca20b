"""Shared test fixtures for the Minutes-of-Meeting engine tests."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("USE_MOCK_DATA", "true")
    monkeypatch.setenv("DB_PATH", ":memory:")
    monkeypatch.setenv("MOM_API_TOKEN", "")
    monkeypatch.setenv("MOM_API_BASE_URL", "http://127.0.0.1:5999/api")
    for name in ("MOM_HOST", "MOM_TRANSPORT", "MOM_ALLOW_INSECURE_BIND", "AGGREGATION_MAX_CONCURRENCY"):
        monkeypatch.delenv(name, raising=False)

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from mom.core.errors import TransportError  # noqa: E402
from mom.core.storage.database import MomDatabase  # noqa: E402
from mom.core.storage.dismissals import DismissalStore  # noqa: E402
from mom.domains.meetings.connectors.providers import InMemoryMeetingDataSource  # noqa: E402
from mom.domains.meetings.workspace import MeetingWorkspace  # noqa: E402

# Thursday of the sample week (Mon 2026-10-12 .. Sun 2026-10-18)
FIXED_NOW = datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc)


class FlakyMembersSource(InMemoryMeetingDataSource):
    """Sample source whose member fetch fails for chosen meetings."""

    def __init__(self, failing_meetings: set[str], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.failing_meetings = set(failing_meetings)
        self.member_calls: list[str] = []

    async def list_members(self, meeting_id: str) -> list[dict[str, Any]]:
        self.member_calls.append(meeting_id)
        if meeting_id in self.failing_meetings:
            raise TransportError(f"GET /meetings/{meeting_id}/members returned HTTP 500: boom",
                                 status_code=500)
        return await super().list_members(meeting_id)


# ---------------------------------------------------------------------------
# Data sources and workspace
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_source() -> InMemoryMeetingDataSource:
    """Sample collections with the clock pinned to FIXED_NOW."""
    return InMemoryMeetingDataSource(now=FIXED_NOW)


@pytest.fixture
def mom_db():
    """Create an in-memory MomDatabase for testing."""
    db = MomDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def dismissal_store(mom_db) -> DismissalStore:
    return DismissalStore(mom_db)


@pytest.fixture
def workspace(mock_source, dismissal_store) -> MeetingWorkspace:
    return MeetingWorkspace(mock_source, page_size=2, dismissals=dismissal_store)


@pytest.fixture
def flaky_source():
    """Factory: sample source whose member fetch fails for the given meetings."""
    def _make(*failing_meetings: str) -> FlakyMembersSource:
        return FlakyMembersSource(set(failing_meetings), now=FIXED_NOW)

    return _make
