"""Pydantic models for saved grid views."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from couponadmin.models.coupons import CouponFilters


class SavedViewCreate(BaseModel):
    """Request model for saving the current filters under a name."""
    name: str = Field(..., min_length=1, max_length=100)
    filters: CouponFilters = Field(default_factory=CouponFilters)


class SavedViewUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    filters: Optional[CouponFilters] = None


class SavedView(BaseModel):
    """Saved or built-in filter preset."""
    id: str
    name: str
    filters: CouponFilters
    is_quick: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SavedViewListResponse(BaseModel):
    views: List[SavedView]
    total: int


QUICK_VIEWS: List[SavedView] = [
    SavedView(id="all", name="All", filters=CouponFilters(), is_quick=True),
] + [
    SavedView(id=code.lower(), name=code, filters=CouponFilters(market=code), is_quick=True)
    for code in ("HK", "TW", "JP", "KR", "SG", "MY")
]
