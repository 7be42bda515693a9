"""Dashboard routes."""
import asyncio
from fastapi import APIRouter, Depends
from couponadmin.api.deps import get_store, require_admin
from couponadmin.api.errors import http_error
from couponadmin.exceptions import StoreError
from couponadmin.models.coupons import DashboardStats
from couponadmin.services.dashboard import build_dashboard_stats
from couponadmin.services.strapi_client import StrapiCouponStore


router = APIRouter(prefix="/dashboard", tags=["Dashboard"], dependencies=[Depends(require_admin)])


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(store: StrapiCouponStore = Depends(get_store)):
    """Coupon and merchant KPIs."""
    try:
        coupons, merchants = await asyncio.gather(store.list_coupons(), store.list_merchants())
    except StoreError as exc:
        raise http_error(exc) from exc
    return build_dashboard_stats(coupons, merchants)
