"""View projection: filter -> sort -> paginate over a record snapshot.

Everything here is a pure function of its inputs. A ``CollectionViewSpec``
describes one collection (which fields are searchable, which sort keys exist
and how they compare); ``ViewParameters`` carries what the user picked.
"""

from __future__ import annotations

import locale
import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, Literal

from mom.core.errors import ValidationError
from mom.core.store.record_store import Record, field_value

SortKind = Literal["text", "date", "number", "rank"]
SortDirection = Literal["asc", "desc"]


# ---------------------------------------------------------------------------
# Specs and parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SortKey:
    """How one sort key reads and compares a record field."""

    field: str
    kind: SortKind = "text"
    # rank tables: value -> rank, lower sorts first; unknown values go last
    ranks: Mapping[Any, int] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class CollectionViewSpec:
    """Searchable fields and sort keys of a collection."""

    name: str
    search_fields: tuple[str, ...]
    sort_keys: Mapping[str, SortKey] = field(compare=False, hash=False)
    default_sort: str = ""
    default_direction: SortDirection = "asc"

    def sort_key(self, name: str) -> SortKey:
        try:
            return self.sort_keys[name]
        except KeyError:
            valid = ", ".join(sorted(self.sort_keys))
            raise ValidationError(
                f"Unknown sort key {name!r} for {self.name}. Valid: {valid}"
            ) from None

    def default_parameters(self, page_size: int = 10) -> ViewParameters:
        return ViewParameters(
            sort_key=self.default_sort or None,
            sort_direction=self.default_direction,
            page_size=page_size,
        )


@dataclass(frozen=True)
class ViewParameters:
    """User-controlled view state. Immutable; use the ``with_*`` helpers.

    Changing the search term, filters, sort or page size returns to page 1.
    """

    search_term: str = ""
    filters: Mapping[str, Any] = field(default_factory=dict, hash=False)
    sort_key: str | None = None
    sort_direction: SortDirection = "asc"
    page_index: int = 1
    page_size: int = 10

    def with_search(self, term: str) -> ViewParameters:
        return replace(self, search_term=term or "", page_index=1)

    def with_filter(self, field_path: str, value: Any) -> ViewParameters:
        """Set an exact-match filter; ``None`` removes it."""
        filters = dict(self.filters)
        if value is None:
            filters.pop(field_path, None)
        else:
            filters[field_path] = value
        return replace(self, filters=filters, page_index=1)

    def cleared_filters(self) -> ViewParameters:
        return replace(self, filters={}, search_term="", page_index=1)

    def with_sort(
        self, sort_key: str, direction: SortDirection | None = None
    ) -> ViewParameters:
        if direction is None:
            direction = self.sort_direction
        if direction not in ("asc", "desc"):
            raise ValidationError("sort direction must be 'asc' or 'desc'")
        return replace(self, sort_key=sort_key, sort_direction=direction, page_index=1)

    def toggled_direction(self) -> ViewParameters:
        flipped: SortDirection = "desc" if self.sort_direction == "asc" else "asc"
        return replace(self, sort_direction=flipped, page_index=1)

    def with_page(self, page_index: int) -> ViewParameters:
        return replace(self, page_index=page_index)

    def with_page_size(self, page_size: int) -> ViewParameters:
        if page_size < 1:
            raise ValidationError("page_size must be at least 1")
        return replace(self, page_size=page_size, page_index=1)


@dataclass
class ProjectionResult:
    """One page of a projected view.

    ``page_index`` is the corrected index actually used, which differs from
    the requested one when the request fell outside ``[1, total_pages]``.
    """

    page: list[Record]
    total_count: int
    total_pages: int
    page_index: int

    @property
    def has_next(self) -> bool:
        return self.page_index < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page_index > 1


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------

def project(
    records: Sequence[Record],
    params: ViewParameters,
    spec: CollectionViewSpec,
) -> ProjectionResult:
    """Filter, sort and paginate ``records``."""
    if params.page_size < 1:
        raise ValidationError("page_size must be at least 1")

    rows = filtered(records, params, spec)
    total = len(rows)
    if total == 0:
        return ProjectionResult(page=[], total_count=0, total_pages=0, page_index=1)

    total_pages = math.ceil(total / params.page_size)
    page_index = min(max(params.page_index, 1), total_pages)
    start = (page_index - 1) * params.page_size
    return ProjectionResult(
        page=rows[start:start + params.page_size],
        total_count=total,
        total_pages=total_pages,
        page_index=page_index,
    )


def filtered(
    records: Iterable[Record],
    params: ViewParameters,
    spec: CollectionViewSpec,
) -> list[Record]:
    """Every record matching the filters and search term, sorted."""
    term = (params.search_term or "").strip().casefold()
    rows = [
        r for r in records
        if _matches_filters(r, params.filters) and _matches_search(r, term, spec.search_fields)
    ]
    if params.sort_key:
        rows = sort_records(rows, spec.sort_key(params.sort_key), params.sort_direction)
    return rows


def sort_records(
    records: Iterable[Record], key: SortKey, direction: SortDirection = "asc"
) -> list[Record]:
    """Stable sort; equal keys keep their relative order in both directions."""
    return sorted(records, key=_key_function(key), reverse=(direction == "desc"))


def filter_by_date_range(
    records: Iterable[Record],
    field_path: str,
    start: date | str | None = None,
    end: date | str | None = None,
) -> list[Record]:
    """Keep records whose date field falls within ``[start, end]`` (inclusive days)."""
    start_day = _as_day(start)
    end_day = _as_day(end)
    if start_day is None and end_day is None:
        return list(records)

    kept = []
    for record in records:
        parsed = parse_timestamp(field_value(record, field_path))
        if parsed is None:
            continue
        day = parsed.date()
        if start_day is not None and day < start_day:
            continue
        if end_day is not None and day > end_day:
            continue
        kept.append(record)
    return kept


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 date/timestamp into an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _matches_filters(record: Record, filters: Mapping[str, Any]) -> bool:
    return all(field_value(record, path) == expected for path, expected in filters.items())


def _matches_search(record: Record, term: str, search_fields: Sequence[str]) -> bool:
    if not term:
        return True
    for path in search_fields:
        value = field_value(record, path)
        if value is None or isinstance(value, (dict, list)):
            continue
        if term in str(value).casefold():
            return True
    return False


def _key_function(key: SortKey) -> Callable[[Record], Any]:
    if key.kind == "text":
        return lambda r: _text_key(field_value(r, key.field))
    if key.kind == "date":
        return lambda r: _date_key(field_value(r, key.field))
    if key.kind == "number":
        return lambda r: _number_key(field_value(r, key.field))
    if key.kind == "rank":
        fallback = len(key.ranks)
        return lambda r: key.ranks.get(field_value(r, key.field), fallback)
    raise ValidationError(f"Unknown sort kind: {key.kind!r}")


def _text_key(value: Any) -> str:
    text = "" if value is None else str(value)
    return locale.strxfrm(text.casefold())


def _date_key(value: Any) -> tuple[int, float]:
    parsed = parse_timestamp(value)
    if parsed is None:
        return (0, 0.0)
    return (1, parsed.timestamp())


def _number_key(value: Any) -> tuple[int, float]:
    if isinstance(value, bool) or value is None:
        return (0, 0.0)
    try:
        return (1, float(value))
    except (TypeError, ValueError):
        return (0, 0.0)


def _as_day(value: date | str | None) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValidationError(f"Invalid date: {value!r}")
    return parsed.date()
