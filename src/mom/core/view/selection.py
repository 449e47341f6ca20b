"""Selection tracking, independent of any filtering or paging."""

from __future__ import annotations

from collections.abc import Iterable


class SelectionTracker:
    """Ordered set of selected record ids.

    The tracker knows nothing about filters: callers decide whether
    ``select_all`` gets the visible page or every matching id.
    """

    def __init__(self) -> None:
        # dict keeps insertion order, values unused
        self._ids: dict[str, None] = {}

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._ids

    @property
    def selected(self) -> tuple[str, ...]:
        return tuple(self._ids)

    def is_selected(self, record_id: str) -> bool:
        return record_id in self._ids

    def toggle(self, record_id: str) -> bool:
        """Flip one id; returns the new selected state."""
        if record_id in self._ids:
            del self._ids[record_id]
            return False
        self._ids[record_id] = None
        return True

    def select_all(self, ids: Iterable[str]) -> None:
        for record_id in ids:
            self._ids.setdefault(record_id, None)

    def deselect_all(self, ids: Iterable[str]) -> None:
        for record_id in ids:
            self._ids.pop(record_id, None)

    def all_selected(self, ids: Iterable[str]) -> bool:
        """True when ``ids`` is non-empty and every id is selected."""
        ids = list(ids)
        return bool(ids) and all(i in self._ids for i in ids)

    def toggle_all(self, ids: Iterable[str]) -> None:
        """Select ``ids`` unless they are all selected already, then deselect them."""
        ids = list(ids)
        if self.all_selected(ids):
            self.deselect_all(ids)
        else:
            self.select_all(ids)

    def discard(self, ids: Iterable[str]) -> None:
        """Forget ids of records that were deleted."""
        self.deselect_all(ids)

    def prune(self, existing_ids: Iterable[str]) -> list[str]:
        """Drop ids that no longer exist; returns the ids dropped."""
        existing = set(existing_ids)
        stale = [i for i in self._ids if i not in existing]
        for record_id in stale:
            del self._ids[record_id]
        return stale

    def clear(self) -> None:
        self._ids.clear()
