"""Merchant routes."""
from typing import List
from fastapi import APIRouter, Depends
from couponadmin.api.deps import get_store, require_admin
from couponadmin.api.errors import http_error
from couponadmin.exceptions import StoreError
from couponadmin.models.coupons import Merchant
from couponadmin.services.strapi_client import StrapiCouponStore


router = APIRouter(prefix="/merchants", tags=["Merchants"], dependencies=[Depends(require_admin)])


@router.get("", response_model=List[Merchant])
async def list_merchants(store: StrapiCouponStore = Depends(get_store)):
    """List merchants sorted by name."""
    try:
        return await store.list_merchants()
    except StoreError as exc:
        raise http_error(exc) from exc
