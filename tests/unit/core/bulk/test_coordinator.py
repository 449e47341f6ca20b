"""Tests for BulkMutationCoordinator — serial runs with partial failure."""

from __future__ import annotations

import asyncio

from mom.core.bulk.coordinator import BulkMutationCoordinator
from mom.core.errors import PartialBatchFailure, TransportError
from mom.core.store.record_store import RecordStore


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _store() -> RecordStore:
    store = RecordStore("participants")
    store.replace([{"_id": i, "isPresent": False} for i in ("1", "2", "3")])
    return store


class RecordingMutation:
    """Marks members present; fails for ids in ``failing``."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, record_id: str):
        self.calls.append(record_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1
        if record_id in self.failing:
            raise TransportError(f"HTTP 500 for {record_id}", status_code=500)
        return {"_id": record_id, "isPresent": True}


class TestRunBulk:
    def test_empty_input_makes_no_calls(self):
        mutation = RecordingMutation()
        result = _run(BulkMutationCoordinator(_store()).run_bulk([], mutation))
        assert mutation.calls == []
        assert result.succeeded == []
        assert result.failed == []
        assert result.error is None

    def test_middle_failure_does_not_abort(self):
        store = _store()
        mutation = RecordingMutation(failing={"2"})
        result = _run(BulkMutationCoordinator(store).run_bulk(["1", "2", "3"], mutation))

        assert mutation.calls == ["1", "2", "3"]
        assert result.succeeded == ["1", "3"]
        assert result.failed_ids == ["2"]
        assert store.get("1")["isPresent"] is True
        assert store.get("2")["isPresent"] is False
        assert store.get("3")["isPresent"] is True

    def test_calls_are_serial(self):
        mutation = RecordingMutation()
        _run(BulkMutationCoordinator(_store()).run_bulk(["1", "2", "3"], mutation))
        assert mutation.max_in_flight == 1

    def test_duplicate_ids_attempted_once(self):
        mutation = RecordingMutation()
        _run(BulkMutationCoordinator(_store()).run_bulk(["1", "1", "2"], mutation))
        assert mutation.calls == ["1", "2"]

    def test_partial_failure_summary(self):
        mutation = RecordingMutation(failing={"2"})
        result = _run(BulkMutationCoordinator(_store()).run_bulk(["1", "2", "3"], mutation))
        assert isinstance(result.error, PartialBatchFailure)
        assert result.error.failed_count == 1
        assert result.error.total == 3
        assert result.summary() == "1 of 3 failed: HTTP 500 for 2"
        assert result.to_dict()["failed"][0]["error_type"] == "transport_error"

    def test_total_failure(self):
        mutation = RecordingMutation(failing={"1", "2", "3"})
        result = _run(BulkMutationCoordinator(_store()).run_bulk(["1", "2", "3"], mutation))
        assert result.succeeded == []
        assert result.summary().startswith("3 of 3 failed")

    def test_success_summary(self):
        result = _run(BulkMutationCoordinator(_store()).run_bulk(["1"], RecordingMutation()))
        assert result.ok
        assert result.summary() == "1 of 1 succeeded"


class TestRemovals:
    def test_none_with_removes_drops_record(self):
        store = _store()

        async def delete(record_id):
            return None

        result = _run(BulkMutationCoordinator(store).run_bulk(["1", "3"], delete, removes=True))
        assert result.succeeded == ["1", "3"]
        assert store.ids() == ["2"]

    def test_none_without_removes_leaves_store(self):
        store = _store()
        version = store.version

        async def noop(record_id):
            return None

        _run(BulkMutationCoordinator(store).run_bulk(["1"], noop))
        assert store.ids() == ["1", "2", "3"]
        assert store.version == version


class TestWriteBack:
    def test_replacement_without_id_fails_only_that_item(self):
        store = _store()

        async def mark(record_id):
            if record_id == "2":
                return {"isPresent": True}
            return {"_id": record_id, "isPresent": True}

        result = _run(BulkMutationCoordinator(store).run_bulk(["1", "2", "3"], mark))
        assert result.succeeded == ["1", "3"]
        assert result.failed_ids == ["2"]
        assert result.failed[0].error_type == "validation_error"
        assert store.get("3")["isPresent"] is True

    def test_no_writes_once_owner_is_gone(self):
        store = _store()
        live = {"open": True}

        async def mark(record_id):
            if record_id == "2":
                live["open"] = False
            return {"_id": record_id, "isPresent": True}

        coordinator = BulkMutationCoordinator(store, is_live=lambda: live["open"])
        result = _run(coordinator.run_bulk(["1", "2", "3"], mark))
        # remote calls still count as done
        assert result.succeeded == ["1", "2", "3"]
        assert store.get("1")["isPresent"] is True
        assert store.get("2")["isPresent"] is False
        assert store.get("3")["isPresent"] is False
