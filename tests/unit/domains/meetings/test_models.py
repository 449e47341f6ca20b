"""Tests for meeting-domain helpers and result types."""

from __future__ import annotations

from mom.core.errors import AggregationGap
from mom.domains.meetings.domain_logic.models import (
    AggregationResult,
    EntityStat,
    meeting_status,
    meeting_type_name,
    member_staff_id,
    staff_display_name,
    whole_percent,
)


class TestFieldHelpers:
    def test_meeting_status_fallbacks(self):
        assert meeting_status({"status": "Completed"}) == "Completed"
        assert meeting_status({"meetingStatus": "Cancelled"}) == "Cancelled"
        assert meeting_status({"intelligentStatus": "InProgress"}) == "InProgress"
        assert meeting_status({}) == "Scheduled"

    def test_meeting_type_name(self):
        assert meeting_type_name({"meetingTypeId": {"meetingTypeName": "Board"}}) == "Board"
        assert meeting_type_name({"meetingTypeId": "t-1"}) == "t-1"
        assert meeting_type_name({}) == ""

    def test_member_staff_id(self):
        assert member_staff_id({"staffId": {"_id": "s-1"}}) == "s-1"
        assert member_staff_id({"staffId": "s-2"}) == "s-2"
        assert member_staff_id({"staffId": None}) is None
        assert member_staff_id({}) is None

    def test_staff_display_name(self):
        assert staff_display_name({"_id": "s-1", "staffName": "Asha"}) == "Asha"
        assert staff_display_name({"_id": "s-1"}) == "s-1"


class TestPercent:
    def test_halves_round_up(self):
        assert whole_percent(0.375) == 38
        assert whole_percent(0.125) == 13
        assert whole_percent(2 / 3) == 67
        assert whole_percent(0.0) == 0
        assert whole_percent(1.0) == 100

    def test_entity_stat_rates(self):
        stat = EntityStat("s-1", "Asha", counted=3, matched=1)
        assert stat.absent == 2
        assert stat.rate_percent == 33
        assert EntityStat("s-2", "Ben").rate == 0.0


class TestAggregationResult:
    def test_caveat_only_with_gaps(self):
        clean = AggregationResult(meetings_considered=2, meetings_fetched=2)
        assert clean.caveat is None
        assert clean.coverage == 1.0

        partial = AggregationResult(
            gaps=[AggregationGap("m-2", "HTTP 500")],
            meetings_considered=4,
            meetings_fetched=3,
        )
        assert partial.has_gaps
        assert partial.coverage == 0.75
        assert "1 of 4" in partial.caveat
