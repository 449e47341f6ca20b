"""Cross-collection attendance aggregation (staff x meetings x members).

Membership is fetched once per meeting. With ``max_concurrency=1`` the
fetches run one after another; higher values run them concurrently under a
semaphore. Either way a failed fetch only removes that meeting from the
counts and is reported as a gap; the rest of the report still comes back.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from mom.core.errors import AggregationGap, ValidationError, describe_error
from mom.domains.meetings.domain_logic.models import (
    AggregationResult,
    AggregationTotals,
    EntityStat,
    member_staff_id,
    staff_display_name,
)

logger = logging.getLogger(__name__)

MembershipFetcher = Callable[[str], Awaitable[list[dict[str, Any]]]]


class CrossCollectionAggregator:
    """Joins staff, meetings and meeting members into attendance statistics.

    Usage::

        aggregator = CrossCollectionAggregator(api.list_members, max_concurrency=4)
        result = await aggregator.aggregate_attendance(staff, meetings_in_range)
        if result.caveat:
            show_banner(result.caveat)
    """

    def __init__(
        self,
        membership_fetcher: MembershipFetcher,
        *,
        max_concurrency: int = 1,
    ) -> None:
        if max_concurrency < 1:
            raise ValidationError("max_concurrency must be at least 1")
        self._fetch = membership_fetcher
        self._max_concurrency = max_concurrency

    async def aggregate_attendance(
        self,
        staff: Sequence[dict[str, Any]],
        meetings: Sequence[dict[str, Any]],
    ) -> AggregationResult:
        """Count meetings attended per staff member.

        Args:
            staff: Staff records to report on, in display order.
            meetings: Meetings already narrowed to the reporting window.

        Returns:
            Per-staff rows for staff seen in at least one fetched meeting,
            overall totals, and any gaps from failed membership fetches.
        """
        memberships, gaps = await self._fetch_memberships(meetings)

        per_entity: list[EntityStat] = []
        no_meetings: list[str] = []
        for person in staff:
            staff_id = _require_id(person, "staff")
            stat = EntityStat(entity_id=staff_id, name=staff_display_name(person))
            for members_by_staff in memberships.values():
                member = members_by_staff.get(staff_id)
                if member is None:
                    continue
                stat.counted += 1
                if member.get("isPresent"):
                    stat.matched += 1
            if stat.counted == 0:
                no_meetings.append(staff_id)
            else:
                per_entity.append(stat)

        totals = AggregationTotals(
            counted=sum(s.counted for s in per_entity),
            matched=sum(s.matched for s in per_entity),
        )
        result = AggregationResult(
            per_entity=per_entity,
            totals=totals,
            gaps=gaps,
            meetings_considered=len(meetings),
            meetings_fetched=len(memberships),
            no_meeting_entity_ids=no_meetings,
        )
        logger.info(
            "Aggregated attendance: %d staff reported, %d/%d meetings read, %d gap(s)",
            len(per_entity),
            result.meetings_fetched,
            result.meetings_considered,
            len(gaps),
        )
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fetch_memberships(
        self, meetings: Sequence[dict[str, Any]]
    ) -> tuple[dict[str, dict[str, dict[str, Any]]], list[AggregationGap]]:
        """Fetch members for every meeting, indexed by staff id.

        Returns meeting_id -> {staff_id -> member} for successful fetches
        (in meeting order) and the gaps for failed ones.
        """
        meeting_ids = list(dict.fromkeys(_require_id(m, "meeting") for m in meetings))

        if self._max_concurrency == 1:
            outcomes = [await self._fetch_one(mid) for mid in meeting_ids]
        else:
            semaphore = asyncio.Semaphore(self._max_concurrency)

            async def bounded(mid: str):
                async with semaphore:
                    return await self._fetch_one(mid)

            outcomes = await asyncio.gather(*(bounded(mid) for mid in meeting_ids))

        memberships: dict[str, dict[str, dict[str, Any]]] = {}
        gaps: list[AggregationGap] = []
        for meeting_id, outcome in zip(meeting_ids, outcomes):
            if isinstance(outcome, AggregationGap):
                gaps.append(outcome)
            else:
                memberships[meeting_id] = outcome
        return memberships, gaps

    async def _fetch_one(
        self, meeting_id: str
    ) -> dict[str, dict[str, Any]] | AggregationGap:
        try:
            members = await self._fetch(meeting_id)
        except Exception as exc:
            logger.warning(
                "Excluding meeting %s from aggregation: %s", meeting_id, describe_error(exc)
            )
            return AggregationGap(meeting_id, describe_error(exc))

        by_staff: dict[str, dict[str, Any]] = {}
        for member in members or []:
            staff_id = member_staff_id(member)
            if staff_id is not None:
                # first membership row wins, as in the member list view
                by_staff.setdefault(staff_id, member)
        return by_staff


async def aggregate_attendance(
    staff: Sequence[dict[str, Any]],
    meetings: Sequence[dict[str, Any]],
    membership_fetcher: MembershipFetcher,
    *,
    max_concurrency: int = 1,
) -> AggregationResult:
    """Convenience wrapper around ``CrossCollectionAggregator``."""
    aggregator = CrossCollectionAggregator(membership_fetcher, max_concurrency=max_concurrency)
    return await aggregator.aggregate_attendance(staff, meetings)


def top_performers(stats: Sequence[EntityStat], limit: int = 5) -> list[EntityStat]:
    """Highest attendance rates first; ties keep their original order."""
    return sorted(stats, key=lambda s: s.rate, reverse=True)[:limit]


def _require_id(record: dict[str, Any], kind: str) -> str:
    value = record.get("_id")
    if value in (None, ""):
        raise ValidationError(f"{kind} record without an _id: {record!r}")
    return str(value)
