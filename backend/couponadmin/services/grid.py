"""Server-side coupon grid: the loaded rows plus the operations editors run on them."""
from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Dict, List, Optional, Protocol, Sequence

from couponadmin.core.config import Settings, get_settings
from couponadmin.exceptions import ReorderInProgressError, StoreError, UnknownRecordError
from couponadmin.models.coupons import (
    BucketMode,
    Coupon,
    CouponFilters,
    CouponUpdate,
    GridOperationResponse,
)
from couponadmin.services.reorder import (
    FlushJob,
    FlushResult,
    apply_priority_patch,
    bucket_records,
    compute_priority_updates,
    flush_jobs,
    key_for_mode,
)


logger = logging.getLogger(__name__)

NO_CHANGES_MESSAGE = "No changes needed"


class CouponStore(Protocol):
    async def list_coupons(self, filters: Optional[CouponFilters] = None) -> List[Coupon]:
        ...

    async def update_coupon(self, document_id: str, patch: CouponUpdate) -> Coupon:
        ...


class CouponGrid:
    """
    Owns the in-memory rows of one filter selection.

    Reorders, recomputes and bulk saves share a single-flight guard: while one
    of them is flushing, another call raises ``ReorderInProgressError``
    instead of racing on the rows.
    """

    def __init__(self, store: CouponStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()
        self.filters = CouponFilters()
        self.rows: List[Coupon] = []
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def default_bucket_mode(self) -> BucketMode:
        try:
            return BucketMode(self.settings.reorder_bucket_mode)
        except ValueError:
            logger.warning(
                "Unknown REORDER_BUCKET_MODE=%r, defaulting to merchant",
                self.settings.reorder_bucket_mode,
            )
            return BucketMode.MERCHANT

    def _acquire_guard(self) -> None:
        if self._lock.locked():
            raise ReorderInProgressError("A reorder is already in progress")

    async def _load(self, filters: Optional[CouponFilters]) -> List[Coupon]:
        if filters is not None:
            self.filters = filters
        self.rows = await self.store.list_coupons(self.filters)
        return self.rows

    async def reload(self, filters: Optional[CouponFilters] = None) -> List[Coupon]:
        """Fetch the rows for ``filters`` (or the current filters) from the store."""
        self._acquire_guard()
        async with self._lock:
            return await self._load(filters)

    async def reorder(
        self,
        order: Sequence[str],
        filters: Optional[CouponFilters] = None,
        bucket_mode: Optional[BucketMode] = None,
    ) -> GridOperationResponse:
        """Renumber priorities to match ``order``, the visible rows top to bottom."""
        self._acquire_guard()
        async with self._lock:
            if filters is not None:
                await self._load(filters)
            visible, hidden = self._split_by_order(order)
            return await self._reconcile(visible, hidden, bucket_mode or self.default_bucket_mode())

    async def recompute(
        self,
        filters: Optional[CouponFilters] = None,
        bucket_mode: Optional[BucketMode] = None,
    ) -> GridOperationResponse:
        """Renumber priorities using the rows' current order."""
        self._acquire_guard()
        async with self._lock:
            if filters is not None:
                await self._load(filters)
            return await self._reconcile(list(self.rows), [], bucket_mode or self.default_bucket_mode())

    async def save_changes(
        self,
        changes: Dict[str, CouponUpdate],
        filters: Optional[CouponFilters] = None,
    ) -> GridOperationResponse:
        """Persist pending cell edits, one update per coupon."""
        self._acquire_guard()
        async with self._lock:
            if filters is not None:
                await self._load(filters)
            if not changes:
                return self._response(0, FlushResult(), NO_CHANGES_MESSAGE)

            loaded = {row.document_id for row in self.rows}
            unknown = [document_id for document_id in changes if document_id not in loaded]
            if unknown:
                raise UnknownRecordError(f"Unknown coupon ids: {', '.join(unknown)}", unknown)

            self.rows = [
                row.model_copy(update=_row_patch(changes[row.document_id]))
                if row.document_id in changes
                else row
                for row in self.rows
            ]
            jobs = [
                FlushJob(document_id, partial(self.store.update_coupon, document_id, patch))
                for document_id, patch in changes.items()
            ]
            result = await flush_jobs(jobs, self.settings.reorder_concurrency)
            await self._refresh()
            return self._response(len(jobs), result, f"Updated {len(result.succeeded)} coupons")

    def _split_by_order(self, order: Sequence[str]):
        by_id = {row.document_id: row for row in self.rows}
        seen = set()
        duplicates = []
        for document_id in order:
            if document_id in seen:
                duplicates.append(document_id)
            seen.add(document_id)
        if duplicates:
            raise UnknownRecordError(f"Duplicate coupon ids in order: {', '.join(duplicates)}", duplicates)

        unknown = [document_id for document_id in order if document_id not in by_id]
        if unknown:
            raise UnknownRecordError(f"Unknown coupon ids: {', '.join(unknown)}", unknown)

        visible = [by_id[document_id] for document_id in order]
        hidden = [row for row in self.rows if row.document_id not in seen]
        return visible, hidden

    async def _reconcile(
        self,
        visible: List[Coupon],
        hidden: List[Coupon],
        mode: BucketMode,
    ) -> GridOperationResponse:
        buckets = bucket_records(visible, key_for_mode(mode))
        updates = compute_priority_updates(buckets, self.settings.top_priority_highest)

        if not updates:
            self.rows = visible + hidden
            logger.info("Reorder over %d rows in %d buckets: no changes", len(visible), len(buckets))
            return self._response(0, FlushResult(), NO_CHANGES_MESSAGE)

        # Optimistic rows go in before any request is sent.
        self.rows = apply_priority_patch(visible, updates) + hidden
        logger.info(
            "Reorder over %d rows in %d buckets (%s): %d priorities change",
            len(visible), len(buckets), mode.value, len(updates),
        )

        jobs = [
            FlushJob(
                update.document_id,
                partial(self.store.update_coupon, update.document_id, CouponUpdate(priority=update.desired)),
            )
            for update in updates
        ]
        result = await flush_jobs(jobs, self.settings.reorder_concurrency)
        await self._refresh()
        return self._response(len(updates), result, "Coupon priorities have been updated")

    async def _refresh(self) -> None:
        try:
            await self._load(None)
        except StoreError as exc:
            logger.warning("Could not refresh rows after flush, keeping local state: %s", exc)

    def _response(self, changed: int, result: FlushResult, success_message: str) -> GridOperationResponse:
        if result.failed:
            message = f"Some updates failed ({len(result.failed)} of {changed})"
        else:
            message = success_message
        return GridOperationResponse(
            changed=changed,
            succeeded=len(result.succeeded),
            failed=len(result.failed),
            failed_ids=sorted(result.failed),
            message=message,
            coupons=list(self.rows),
        )


def _row_patch(patch: CouponUpdate) -> dict:
    """Fields of ``patch`` that can be shown on a row before the store confirms."""
    fields = patch.model_dump(exclude_unset=True)
    fields.pop("merchant", None)
    if fields.get("coupon_status") is not None:
        fields["coupon_status"] = fields["coupon_status"].value
    return fields
