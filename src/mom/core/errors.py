"""Error taxonomy shared by the collection engine.

Transport and validation errors are raised to the initiating action.
Partial batch failures and aggregation gaps are carried on results instead,
so callers keep whatever succeeded.
"""

from __future__ import annotations


class MomError(Exception):
    """Base exception for all engine errors."""

    error_type = "mom_error"


class TransportError(MomError):
    """The backend was unreachable or answered with a non-2xx status."""

    error_type = "transport_error"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ValidationError(MomError):
    """Input was rejected before any remote call was made."""

    error_type = "validation_error"


class PartialBatchFailure(MomError):
    """One or more items of a bulk run failed.

    Never raised by the coordinator itself; attached to ``BulkResult.error``.
    """

    error_type = "partial_batch_failure"

    def __init__(self, *, failed_count: int, total: int, first_message: str) -> None:
        self.failed_count = failed_count
        self.total = total
        self.first_message = first_message
        super().__init__(f"{failed_count} of {total} failed: {first_message}")


class AggregationGap(MomError):
    """The membership fetch for one meeting failed during aggregation."""

    error_type = "aggregation_gap"

    def __init__(self, meeting_id: str, message: str) -> None:
        self.meeting_id = meeting_id
        self.message = message
        super().__init__(f"Meeting {meeting_id}: {message}")


def describe_error(exc: BaseException) -> str:
    """Human-readable message for an exception, never empty."""
    message = str(exc).strip()
    if message:
        return message
    return type(exc).__name__
