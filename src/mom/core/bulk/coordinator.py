"""Serial bulk mutations with per-item outcomes.

One mutation is applied across many ids, strictly one remote call at a
time: call *i+1* is issued only after call *i* settled. A failure on one id
never stops the rest, and nothing is retried. Each success is written back
to the store immediately so views reflect progress as it happens.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from mom.core.errors import MomError, PartialBatchFailure, describe_error
from mom.core.store.record_store import RecordStore

logger = logging.getLogger(__name__)

Mutation = Callable[[str], Awaitable[dict[str, Any] | None]]


@dataclass
class BulkFailure:
    """One id whose mutation raised."""

    id: str
    error: BaseException

    @property
    def message(self) -> str:
        return describe_error(self.error)

    @property
    def error_type(self) -> str:
        if isinstance(self.error, MomError):
            return self.error.error_type
        return type(self.error).__name__


@dataclass
class BulkResult:
    """Complete succeeded/failed partition of a bulk run."""

    succeeded: list[str] = field(default_factory=list)
    failed: list[BulkFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def failed_ids(self) -> list[str]:
        return [f.id for f in self.failed]

    @property
    def error(self) -> PartialBatchFailure | None:
        """Single error summary for the caller, or None if nothing failed."""
        if not self.failed:
            return None
        return PartialBatchFailure(
            failed_count=len(self.failed),
            total=self.total,
            first_message=self.failed[0].message,
        )

    def summary(self) -> str:
        error = self.error
        if error is None:
            return f"{len(self.succeeded)} of {self.total} succeeded"
        return str(error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "succeeded": list(self.succeeded),
            "failed": [
                {"id": f.id, "error_type": f.error_type, "message": f.message}
                for f in self.failed
            ],
            "summary": self.summary(),
        }


class BulkMutationCoordinator:
    """Applies a mutation across ids and patches the owning store.

    Usage::

        coordinator = BulkMutationCoordinator(participants_store)
        result = await coordinator.run_bulk(
            ids, lambda member_id: api.mark_attendance(member_id, True)
        )
        if result.error:
            show_banner(result.summary())

    ``is_live`` is polled before every store write; once it returns False
    the remaining successes are still counted but no longer written back.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        is_live: Callable[[], bool] | None = None,
    ) -> None:
        self._store = store
        self._is_live = is_live or (lambda: True)

    @property
    def store(self) -> RecordStore:
        return self._store

    async def run_bulk(
        self,
        ids: Iterable[str],
        mutation: Mutation,
        *,
        removes: bool = False,
    ) -> BulkResult:
        """Run ``mutation`` for each id in order.

        Args:
            ids: Record ids to mutate. Each id is attempted exactly once.
            mutation: Coroutine function returning the replacement record, or
                None when the backend returns nothing (deletes).
            removes: When True a successful call with no returned record
                removes the id from the store.

        A replacement the store rejects (no id) fails that item only.
        """
        result = BulkResult()
        ordered = list(dict.fromkeys(ids))
        if not ordered:
            return result

        logger.info("Bulk run on %s: %d item(s)", self._store.name, len(ordered))
        for record_id in ordered:
            try:
                replacement = await mutation(record_id)
                if self._is_live():
                    self._apply(record_id, replacement, removes=removes)
                else:
                    logger.debug(
                        "Not writing %s back to %s: owner closed", record_id, self._store.name
                    )
            except Exception as exc:
                logger.warning(
                    "Bulk mutation failed for %s in %s: %s",
                    record_id,
                    self._store.name,
                    describe_error(exc),
                )
                result.failed.append(BulkFailure(id=record_id, error=exc))
                continue

            result.succeeded.append(record_id)

        if result.failed:
            logger.warning("Bulk run on %s: %s", self._store.name, result.summary())
        else:
            logger.info("Bulk run on %s: %s", self._store.name, result.summary())
        return result

    def _apply(
        self, record_id: str, replacement: dict[str, Any] | None, *, removes: bool
    ) -> None:
        if replacement:
            self._store.patch(replacement)
        elif removes:
            self._store.remove(record_id)
