"""Tests for the view projector — filter, sort, paginate."""

from __future__ import annotations

from datetime import date

import pytest

from mom.core.errors import ValidationError
from mom.core.view.projector import (
    CollectionViewSpec,
    SortKey,
    ViewParameters,
    filter_by_date_range,
    filtered,
    parse_timestamp,
    project,
    sort_records,
)

SPEC = CollectionViewSpec(
    name="people",
    search_fields=("name", "team.name"),
    sort_keys={
        "name": SortKey("name"),
        "score": SortKey("score", kind="number"),
        "joined": SortKey("joined", kind="date"),
        "present": SortKey("present", kind="rank", ranks={True: 0, False: 1}),
    },
)


def _records(n: int = 7) -> list[dict]:
    return [
        {"_id": str(i), "name": f"Person {i}", "score": i % 3, "team": {"name": "Blue" if i % 2 else "Red"}}
        for i in range(1, n + 1)
    ]


class TestPagination:
    @pytest.mark.parametrize("page_size", [1, 2, 3, 7, 10])
    def test_pages_partition_filtered_set(self, page_size):
        records = _records()
        params = ViewParameters(page_size=page_size)
        first = project(records, params, SPEC)
        seen = []
        for page_index in range(1, first.total_pages + 1):
            result = project(records, params.with_page(page_index), SPEC)
            assert len(result.page) <= page_size
            seen.extend(r["_id"] for r in result.page)
        assert seen == [r["_id"] for r in records]

    def test_total_pages(self):
        result = project(_records(7), ViewParameters(page_size=3), SPEC)
        assert result.total_count == 7
        assert result.total_pages == 3

    def test_page_index_clamped_high(self):
        result = project(_records(7), ViewParameters(page_size=3, page_index=9), SPEC)
        assert result.page_index == 3
        assert [r["_id"] for r in result.page] == ["7"]
        assert result.has_next is False
        assert result.has_previous is True

    def test_page_index_clamped_low(self):
        result = project(_records(7), ViewParameters(page_size=3, page_index=0), SPEC)
        assert result.page_index == 1

    def test_empty_input(self):
        result = project([], ViewParameters(page_index=4), SPEC)
        assert result.page == []
        assert result.total_count == 0
        assert result.total_pages == 0
        assert result.page_index == 1

    def test_bad_page_size_rejected(self):
        with pytest.raises(ValidationError):
            project(_records(), ViewParameters(page_size=0), SPEC)
        with pytest.raises(ValidationError):
            ViewParameters().with_page_size(0)


class TestFiltering:
    def test_search_is_case_insensitive_substring(self):
        params = ViewParameters(search_term="  PERSON 3 ")
        assert [r["_id"] for r in filtered(_records(), params, SPEC)] == ["3"]

    def test_search_reads_nested_fields(self):
        params = ViewParameters(search_term="blue")
        assert [r["_id"] for r in filtered(_records(), params, SPEC)] == ["1", "3", "5", "7"]

    def test_missing_field_never_matches(self):
        records = [{"_id": "x"}, {"_id": "y", "name": "Yan"}]
        assert [r["_id"] for r in filtered(records, ViewParameters(search_term="y"), SPEC)] == ["y"]

    def test_filters_match_exactly(self):
        params = ViewParameters().with_filter("score", 0)
        assert [r["_id"] for r in filtered(_records(), params, SPEC)] == ["3", "6"]

    def test_none_removes_filter(self):
        params = ViewParameters().with_filter("score", 0).with_filter("score", None)
        assert params.filters == {}


class TestParameterChanges:
    def test_changes_reset_to_first_page(self):
        params = ViewParameters(page_index=3)
        assert params.with_search("x").page_index == 1
        assert params.with_filter("a", 1).page_index == 1
        assert params.with_sort("name").page_index == 1
        assert params.with_page_size(5).page_index == 1
        assert params.toggled_direction().page_index == 1
        assert params.cleared_filters().page_index == 1

    def test_with_page_keeps_other_fields(self):
        params = ViewParameters(search_term="x", page_size=5).with_page(2)
        assert (params.search_term, params.page_size, params.page_index) == ("x", 5, 2)

    def test_unknown_sort_key(self):
        with pytest.raises(ValidationError, match="Unknown sort key"):
            filtered(_records(), ViewParameters(sort_key="height"), SPEC)

    def test_bad_direction(self):
        with pytest.raises(ValidationError):
            ViewParameters().with_sort("name", "sideways")


class TestSorting:
    def test_number_sort_is_stable_ascending(self):
        rows = sort_records(_records(), SPEC.sort_key("score"))
        assert [r["_id"] for r in rows] == ["3", "6", "1", "4", "7", "2", "5"]

    def test_descending_keeps_ties_in_original_order(self):
        rows = sort_records(_records(), SPEC.sort_key("score"), "desc")
        assert [r["_id"] for r in rows] == ["2", "5", "1", "4", "7", "3", "6"]

    def test_sort_is_idempotent(self):
        key = SPEC.sort_key("score")
        once = sort_records(_records(), key, "desc")
        assert sort_records(once, key, "desc") == once

    def test_rank_sort_puts_present_first_and_unknown_last(self):
        records = [
            {"_id": "a", "present": False},
            {"_id": "b"},
            {"_id": "c", "present": True},
        ]
        rows = sort_records(records, SPEC.sort_key("present"))
        assert [r["_id"] for r in rows] == ["c", "a", "b"]

    def test_missing_dates_sort_first(self):
        records = [
            {"_id": "late", "joined": "2026-03-01T00:00:00Z"},
            {"_id": "none"},
            {"_id": "early", "joined": "2025-12-31"},
        ]
        rows = sort_records(records, SPEC.sort_key("joined"))
        assert [r["_id"] for r in rows] == ["none", "early", "late"]

    def test_text_sort_ignores_case(self):
        records = [{"_id": "1", "name": "bravo"}, {"_id": "2", "name": "Alpha"}]
        rows = sort_records(records, SPEC.sort_key("name"))
        assert [r["_id"] for r in rows] == ["2", "1"]


class TestDateHelpers:
    def test_parse_z_suffix(self):
        parsed = parse_timestamp("2026-10-05T10:00:00Z")
        assert parsed.utcoffset().total_seconds() == 0
        assert parsed.hour == 10

    def test_parse_garbage(self):
        assert parse_timestamp("not a date") is None
        assert parse_timestamp(None) is None

    def test_date_range_is_inclusive(self):
        records = [
            {"_id": "before", "d": "2026-10-11T23:00:00Z"},
            {"_id": "start", "d": "2026-10-12T00:00:00Z"},
            {"_id": "end", "d": "2026-10-18T23:59:00Z"},
            {"_id": "after", "d": "2026-10-19T00:00:00Z"},
            {"_id": "undated"},
        ]
        kept = filter_by_date_range(records, "d", date(2026, 10, 12), "2026-10-18")
        assert [r["_id"] for r in kept] == ["start", "end"]

    def test_no_bounds_keeps_everything(self):
        records = [{"_id": "undated"}]
        assert filter_by_date_range(records, "d") == records

    def test_invalid_bound(self):
        with pytest.raises(ValidationError):
            filter_by_date_range([], "d", "tomorrow")
