"""Coupon catalogue and grid routes."""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Response
from couponadmin.api.deps import get_grid, get_store, require_admin
from couponadmin.api.errors import http_error
from couponadmin.exceptions import (
    MalformedRecordError,
    ReorderInProgressError,
    StoreError,
    UnknownRecordError,
)
from couponadmin.models.coupons import (
    BulkUpdateRequest,
    Coupon,
    CouponCreate,
    CouponFilters,
    CouponListResponse,
    CouponStatus,
    CouponUpdate,
    GridOperationResponse,
    Merchant,
    RecomputeRequest,
    ReorderRequest,
    ValidationReport,
)
from couponadmin.services.grid import CouponGrid
from couponadmin.services.reorder import key_for_mode, priority_for_new_record
from couponadmin.services.strapi_client import StrapiCouponStore
from couponadmin.services.validation import validate_coupons


router = APIRouter(prefix="/coupons", tags=["Coupons"], dependencies=[Depends(require_admin)])

GRID_ERRORS = (StoreError, ReorderInProgressError, UnknownRecordError, MalformedRecordError)


def coupon_filters(
    q: Optional[str] = None,
    merchant: Optional[str] = None,
    market: Optional[str] = None,
    site: Optional[str] = None,
    coupon_status: Optional[CouponStatus] = None,
) -> CouponFilters:
    """Listing filters from query parameters."""
    return CouponFilters(q=q, merchant=merchant, market=market, site=site, coupon_status=coupon_status)


@router.get("", response_model=CouponListResponse)
async def list_coupons(
    filters: CouponFilters = Depends(coupon_filters),
    store: StrapiCouponStore = Depends(get_store),
):
    """List coupons in display order with optional filters."""
    try:
        coupons = await store.list_coupons(filters)
    except StoreError as exc:
        raise http_error(exc) from exc
    return CouponListResponse(coupons=coupons, total=len(coupons))


@router.post("", response_model=Coupon, status_code=201)
async def create_coupon(
    data: CouponCreate,
    store: StrapiCouponStore = Depends(get_store),
    grid: CouponGrid = Depends(get_grid),
):
    """Create a coupon; without a priority it goes to the top of its bucket."""
    try:
        if data.priority is None:
            existing = await store.list_coupons()
            draft = Coupon(
                document_id="new",
                coupon_title=data.coupon_title,
                merchant=Merchant(document_id=data.merchant, name="") if data.merchant else None,
                market=data.market,
                site=data.site,
            )
            priority = priority_for_new_record(
                existing,
                draft,
                key_for_mode(grid.default_bucket_mode()),
                grid.settings.top_priority_highest,
            )
            data = data.model_copy(update={"priority": priority})
        return await store.create_coupon(data)
    except StoreError as exc:
        raise http_error(exc) from exc


@router.get("/validation", response_model=ValidationReport)
async def validate_listing(
    filters: CouponFilters = Depends(coupon_filters),
    store: StrapiCouponStore = Depends(get_store),
):
    """Run editorial checks over every coupon in the listing."""
    try:
        coupons = await store.list_coupons(filters)
    except StoreError as exc:
        raise http_error(exc) from exc
    return validate_coupons(coupons)


@router.post("/reorder", response_model=GridOperationResponse)
async def reorder_coupons(payload: ReorderRequest, grid: CouponGrid = Depends(get_grid)):
    """Renumber priorities after a drag: ``order`` lists the visible rows top to bottom."""
    try:
        return await grid.reorder(payload.order, filters=payload.filters, bucket_mode=payload.bucket_mode)
    except GRID_ERRORS as exc:
        raise http_error(exc) from exc


@router.post("/recompute", response_model=GridOperationResponse)
async def recompute_priorities(payload: RecomputeRequest, grid: CouponGrid = Depends(get_grid)):
    """Renumber priorities of a filter selection in its stored order."""
    try:
        return await grid.recompute(filters=payload.filters, bucket_mode=payload.bucket_mode)
    except GRID_ERRORS as exc:
        raise http_error(exc) from exc


@router.post("/bulk-update", response_model=GridOperationResponse)
async def bulk_update(payload: BulkUpdateRequest, grid: CouponGrid = Depends(get_grid)):
    """Save pending cell edits."""
    try:
        return await grid.save_changes(payload.changes, filters=payload.filters)
    except GRID_ERRORS as exc:
        raise http_error(exc) from exc


@router.get("/{coupon_id}", response_model=Coupon)
async def get_coupon(coupon_id: str, store: StrapiCouponStore = Depends(get_store)):
    """Fetch a single coupon by ID."""
    try:
        return await store.get_coupon(coupon_id)
    except StoreError as exc:
        raise http_error(exc) from exc


@router.put("/{coupon_id}", response_model=Coupon)
async def update_coupon(coupon_id: str, patch: CouponUpdate, store: StrapiCouponStore = Depends(get_store)):
    """Apply a partial update to one coupon."""
    if not patch.model_fields_set:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        return await store.update_coupon(coupon_id, patch)
    except StoreError as exc:
        raise http_error(exc) from exc


@router.delete("/{coupon_id}", status_code=204)
async def delete_coupon(coupon_id: str, store: StrapiCouponStore = Depends(get_store)):
    try:
        await store.delete_coupon(coupon_id)
    except StoreError as exc:
        raise http_error(exc) from exc
    return Response(status_code=204)
