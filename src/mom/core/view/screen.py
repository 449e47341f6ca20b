"""Per-screen view state over a shared record store.

A ``CollectionScreen`` owns its ``ViewParameters`` and ``SelectionTracker``
and borrows the ``RecordStore`` handle. Screens are created when a view is
opened and closed when it goes away; a closed screen ignores late results
from work it started.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from mom.core.bulk.coordinator import BulkMutationCoordinator, BulkResult, Mutation
from mom.core.errors import ValidationError
from mom.core.store.record_store import Record, RecordStore
from mom.core.view.projector import (
    CollectionViewSpec,
    ProjectionResult,
    SortDirection,
    ViewParameters,
    filtered,
    project,
)
from mom.core.view.selection import SelectionTracker

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[list[Record]]]


@dataclass
class ViewState:
    """Everything a caller needs to render one screen."""

    projection: ProjectionResult
    params: ViewParameters
    selected: tuple[str, ...]
    page_all_selected: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.projection.page,
            "total_count": self.projection.total_count,
            "total_pages": self.projection.total_pages,
            "page_index": self.projection.page_index,
            "search_term": self.params.search_term,
            "filters": dict(self.params.filters),
            "sort_key": self.params.sort_key,
            "sort_direction": self.params.sort_direction,
            "page_size": self.params.page_size,
            "selected": list(self.selected),
            "page_all_selected": self.page_all_selected,
        }


class CollectionScreen:
    """View parameters, selection and bulk actions for one collection."""

    def __init__(
        self,
        store: RecordStore,
        spec: CollectionViewSpec,
        *,
        page_size: int = 10,
        fetcher: Fetcher | None = None,
    ) -> None:
        self._store = store
        self._spec = spec
        self._fetcher = fetcher
        self._params = spec.default_parameters(page_size)
        self._selection = SelectionTracker()
        self._coordinator = BulkMutationCoordinator(store, is_live=lambda: self._open)
        self._open = True

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def spec(self) -> CollectionViewSpec:
        return self._spec

    @property
    def params(self) -> ViewParameters:
        return self._params

    @property
    def selection(self) -> SelectionTracker:
        return self._selection

    @property
    def is_open(self) -> bool:
        return self._open

    def close(self) -> None:
        """Detach the screen; in-flight work finishes but its results are ignored here."""
        self._open = False
        self._selection.clear()

    # ------------------------------------------------------------------
    # View parameters
    # ------------------------------------------------------------------

    def set_search_term(self, term: str) -> None:
        self._params = self._params.with_search(term)

    def set_filter(self, field_path: str, value: Any) -> None:
        self._params = self._params.with_filter(field_path, value)

    def clear_filters(self) -> None:
        self._params = self._params.cleared_filters()

    def set_sort(self, sort_key: str, direction: SortDirection | None = None) -> None:
        self._spec.sort_key(sort_key)
        self._params = self._params.with_sort(sort_key, direction)

    def toggle_sort_direction(self) -> None:
        self._params = self._params.toggled_direction()

    def set_page(self, page_index: int) -> None:
        self._params = self._params.with_page(page_index)

    def set_page_size(self, page_size: int) -> None:
        self._params = self._params.with_page_size(page_size)

    def next_page(self) -> None:
        self.set_page(self.view().projection.page_index + 1)

    def previous_page(self) -> None:
        self.set_page(max(self._params.page_index - 1, 1))

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def view(self) -> ViewState:
        """Project the current snapshot, pruning stale selections first."""
        records = self._store.all()
        stale = self._selection.prune(self._store.ids())
        if stale:
            logger.debug("Pruned %d stale selection(s) from %s", len(stale), self._store.name)

        projection = project(records, self._params, self._spec)
        if projection.page_index != self._params.page_index:
            self._params = self._params.with_page(projection.page_index)

        page_ids = self._page_ids(projection)
        return ViewState(
            projection=projection,
            params=self._params,
            selected=self._selection.selected,
            page_all_selected=self._selection.all_selected(page_ids),
        )

    def matching_ids(self) -> list[str]:
        """Ids of every record passing the current search and filters."""
        return [self._store.id_of(r) for r in filtered(self._store.all(), self._params, self._spec)]

    def matching_records(self) -> list[Record]:
        return filtered(self._store.all(), self._params, self._spec)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def toggle_select(self, record_id: str) -> bool:
        if record_id not in self._store:
            raise ValidationError(f"No record {record_id!r} in {self._store.name}")
        return self._selection.toggle(record_id)

    def toggle_select_page(self) -> None:
        self._selection.toggle_all(self._page_ids(self.view().projection))

    def select_all_matching(self) -> None:
        self._selection.select_all(self.matching_ids())

    def clear_selection(self) -> None:
        self._selection.clear()

    def selected_records(self) -> list[Record]:
        records = (self._store.get(i) for i in self._selection.selected)
        return [r for r in records if r is not None]

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Re-fetch the collection; skipped if the store changed meanwhile."""
        if self._fetcher is None:
            raise ValidationError(f"No fetcher configured for {self._store.name}")
        version = self._store.version
        records = await self._fetcher()
        replaced = self._store.replace_if_version(records, version)
        if replaced and self._open:
            self._selection.prune(self._store.ids())
        return replaced

    async def run_bulk(
        self,
        mutation: Mutation,
        *,
        ids: Iterable[str] | None = None,
        removes: bool = False,
    ) -> BulkResult:
        """Apply ``mutation`` to ``ids`` (default: the current selection)."""
        target = list(ids) if ids is not None else list(self._selection.selected)
        result = await self._coordinator.run_bulk(target, mutation, removes=removes)
        if removes and self._open:
            self._selection.discard(result.succeeded)
        return result

    def _page_ids(self, projection: ProjectionResult) -> list[str]:
        return [self._store.id_of(r) for r in projection.page]
