"""Priority bucketing, renumbering and the bounded-concurrency flush.

Priorities are bucket-local. A bucket groups the visible coupons of one
merchant (or of one merchant/market/site combination) in display order, and
each bucket is renumbered densely 1..N so that rank order matches display
order.
"""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

from couponadmin.exceptions import MalformedRecordError
from couponadmin.models.coupons import BucketMode, Coupon


logger = logging.getLogger(__name__)

SENTINEL_KEY = "none"
DEFAULT_CONCURRENCY = 4

KeyFunc = Callable[[Coupon], str]


# ============================================================================
# BUCKETING
# ============================================================================

def merchant_key(coupon: Coupon) -> str:
    return coupon.merchant_id or SENTINEL_KEY


def merchant_market_site_key(coupon: Coupon) -> str:
    parts = (coupon.merchant_id, coupon.market, coupon.site)
    return "|".join(part or SENTINEL_KEY for part in parts)


def key_for_mode(mode: BucketMode) -> KeyFunc:
    """Return the bucket key function for a bucket mode."""
    if mode == BucketMode.MERCHANT_MARKET_SITE:
        return merchant_market_site_key
    return merchant_key


def bucket_records(records: Iterable[Coupon], key: KeyFunc = merchant_key) -> Dict[str, List[Coupon]]:
    """
    Group records by bucket key, keeping input order inside each bucket.

    Records without a key land in the shared ``"none"`` bucket. A record
    without an id cannot be renumbered safely and raises
    ``MalformedRecordError``.
    """
    buckets: Dict[str, List[Coupon]] = {}
    for position, record in enumerate(records):
        if not getattr(record, "document_id", None):
            raise MalformedRecordError(f"Record at position {position} has no id")
        buckets.setdefault(key(record) or SENTINEL_KEY, []).append(record)
    return buckets


# ============================================================================
# DIFF
# ============================================================================

@dataclass(frozen=True)
class PriorityUpdate:
    """A record whose stored priority differs from its position."""
    document_id: str
    current: Optional[int]
    desired: int


def desired_priority(index: int, size: int, top_is_highest: bool = True) -> int:
    """Rank for the record at ``index`` (0 = top) of a bucket of ``size``."""
    return size - index if top_is_highest else index + 1


def compute_priority_updates(
    buckets: Dict[str, List[Coupon]],
    top_is_highest: bool = True,
) -> List[PriorityUpdate]:
    """Return only the records whose priority must change."""
    updates: List[PriorityUpdate] = []
    for records in buckets.values():
        size = len(records)
        for index, record in enumerate(records):
            desired = desired_priority(index, size, top_is_highest)
            if record.priority != desired:
                updates.append(PriorityUpdate(record.document_id, record.priority, desired))
    return updates


def apply_priority_patch(records: Sequence[Coupon], updates: Iterable[PriorityUpdate]) -> List[Coupon]:
    """Optimistically set new priorities on a copy of ``records``."""
    desired = {update.document_id: update.desired for update in updates}
    return [
        record.model_copy(update={"priority": desired[record.document_id]})
        if record.document_id in desired
        else record
        for record in records
    ]


def priority_for_new_record(
    existing: Iterable[Coupon],
    record: Coupon,
    key: KeyFunc = merchant_key,
    top_is_highest: bool = True,
) -> int:
    """
    Priority that puts ``record`` at the top of its bucket.

    Only siblings sharing ``record``'s bucket key count. When the top is the
    lowest value the result can drop to 0 or below; the next reorder of the
    bucket renumbers it densely.
    """
    bucket = key(record) or SENTINEL_KEY
    ranks = [
        c.priority for c in existing
        if c.priority is not None and (key(c) or SENTINEL_KEY) == bucket
    ]
    if top_is_highest:
        return max(ranks, default=0) + 1
    return min(ranks, default=2) - 1


# ============================================================================
# FLUSH
# ============================================================================

class JobState(str, Enum):
    QUEUED = "queued"
    IN_FLIGHT = "in_flight"
    DONE = "done"
    FAILED = "failed"


@dataclass
class FlushJob:
    """One independent write against the record store."""
    document_id: str
    run: Callable[[], Awaitable[object]]
    state: JobState = JobState.QUEUED
    error: Optional[str] = None


@dataclass
class FlushResult:
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)


async def flush_jobs(jobs: Sequence[FlushJob], concurrency: int = DEFAULT_CONCURRENCY) -> FlushResult:
    """
    Run jobs with at most ``concurrency`` in flight.

    A failed job is logged and recorded; it never cancels its siblings and is
    not retried. Returns once every job has been attempted.
    """
    result = FlushResult()
    if not jobs:
        return result

    queue = deque(jobs)
    worker_count = max(1, min(concurrency, len(jobs)))

    async def worker(worker_id: int) -> None:
        while queue:
            job = queue.popleft()
            job.state = JobState.IN_FLIGHT
            try:
                await job.run()
            except Exception as exc:  # noqa: BLE001
                job.state = JobState.FAILED
                job.error = str(exc) or exc.__class__.__name__
                result.failed[job.document_id] = job.error
                logger.warning(
                    "Update for %s failed on worker %d: %s", job.document_id, worker_id, job.error
                )
            else:
                job.state = JobState.DONE
                result.succeeded.append(job.document_id)

    await asyncio.gather(*(worker(i) for i in range(worker_count)))
    logger.info(
        "Flushed %d jobs with %d workers: %d succeeded, %d failed",
        len(jobs), worker_count, len(result.succeeded), len(result.failed),
    )
    return result
