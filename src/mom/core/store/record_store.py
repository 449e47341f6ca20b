"""In-memory snapshot of one entity collection.

A ``RecordStore`` is passed by reference to every component that reads or
writes the collection. Writers follow a single-writer-per-mutation
convention: only the component that issued a remote mutation patches the
result back. ``version`` increases on every write so a refresh can be made
conditional with ``replace_if_version``.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from mom.core.errors import ValidationError

logger = logging.getLogger(__name__)

Record = dict[str, Any]

_MISSING = object()


def field_value(record: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """Read a dotted field path (``"staffId.staffName"``) from a record."""
    current: Any = record
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return default
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return default
    return current


class RecordStore:
    """Holds the last-fetched snapshot of a collection, keyed by record id.

    Usage::

        store = RecordStore("meetings")
        store.replace(await api.list_meetings())
        store.patch(updated_meeting)
        store.remove("665f...")
    """

    def __init__(self, name: str, *, id_field: str = "_id") -> None:
        self.name = name
        self.id_field = id_field
        self._records: dict[str, Record] = {}
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def id_of(self, record: Mapping[str, Any]) -> str:
        """Return the record's id, raising if it has none."""
        value = record.get(self.id_field)
        if value in (None, ""):
            raise ValidationError(
                f"Record in store {self.name!r} has no {self.id_field!r} field"
            )
        return str(value)

    # ------------------------------------------------------------------
    # Reads (copies only; callers never hold the stored dicts)
    # ------------------------------------------------------------------

    def get(self, record_id: str) -> Record | None:
        record = self._records.get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def all(self) -> list[Record]:
        """Snapshot of every record in fetch order."""
        return [copy.deepcopy(r) for r in self._records.values()]

    def ids(self) -> list[str]:
        return list(self._records)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def replace(self, records: Iterable[Mapping[str, Any]]) -> None:
        """Full replace from a fresh fetch."""
        fresh: dict[str, Record] = {}
        for record in records:
            fresh[self.id_of(record)] = copy.deepcopy(dict(record))
        self._records = fresh
        self._version += 1
        logger.debug("Store %s replaced: %d records (v%d)", self.name, len(fresh), self._version)

    def replace_if_version(
        self, records: Iterable[Mapping[str, Any]], expected_version: int
    ) -> bool:
        """Replace only if nothing wrote to the store since ``expected_version``."""
        if self._version != expected_version:
            logger.info(
                "Skipping stale refresh of %s (expected v%d, now v%d)",
                self.name,
                expected_version,
                self._version,
            )
            return False
        self.replace(records)
        return True

    def patch(self, record: Mapping[str, Any]) -> None:
        """Replace a single record by id, appending it if it is new."""
        record_id = self.id_of(record)
        self._records[record_id] = copy.deepcopy(dict(record))
        self._version += 1

    def remove(self, record_id: str) -> bool:
        """Drop a record; returns False if it was not present."""
        if self._records.pop(record_id, None) is None:
            return False
        self._version += 1
        return True

    def clear(self) -> None:
        self._records = {}
        self._version += 1
