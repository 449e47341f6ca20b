"""Tests for the application factory's wiring helpers."""

from __future__ import annotations

from mom.core.api.client import MomApiClient
from mom.core.config.settings import Settings
from mom.core.server.app import build_data_source, open_dismissal_store
from mom.domains.meetings.connectors.providers import InMemoryMeetingDataSource


class TestDataSource:
    def test_mock_data(self):
        source = build_data_source(Settings(_env_file=None, use_mock_data=True))
        assert isinstance(source, InMemoryMeetingDataSource)

    def test_rest_client(self):
        source = build_data_source(
            Settings(_env_file=None, use_mock_data=False, mom_api_base_url="http://10.0.0.5/api")
        )
        assert isinstance(source, MomApiClient)
        assert source.data_source == "rest"
        source.close()


class TestDismissalStore:
    def test_file_store(self, tmp_path):
        path = tmp_path / "dismissals.db"
        store = open_dismissal_store(Settings(_env_file=None, db_path=str(path)))
        store.dismiss("low_attendance")
        assert path.exists()

    def test_unusable_path_falls_back_to_memory(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        store = open_dismissal_store(Settings(_env_file=None, db_path=str(blocker / "d.db")))
        store.dismiss("low_attendance")
        assert store.is_dismissed("low_attendance")
