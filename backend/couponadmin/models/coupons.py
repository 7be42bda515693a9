"""Pydantic models for coupons, merchants and grid operations."""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CouponStatus(str, Enum):
    """Publication state of a coupon."""
    UPCOMING = "upcoming"
    ACTIVE = "active"
    SCHEDULED = "scheduled"
    EXPIRED = "expired"
    ARCHIVED = "archived"


class BucketMode(str, Enum):
    """How records are grouped before priorities are renumbered."""
    MERCHANT = "merchant"
    MERCHANT_MARKET_SITE = "merchant_market_site"


# ============================================================================
# MERCHANT / COUPON MODELS
# ============================================================================

class Merchant(BaseModel):
    """Merchant reference as returned by the CMS."""
    document_id: str
    name: str
    slug: Optional[str] = None


class CouponBase(BaseModel):
    """Editable coupon attributes."""
    coupon_title: str = Field(..., description="Title shown to shoppers")
    market: Optional[str] = Field(None, description="Market code, e.g. HK or TW")
    value: Optional[str] = Field(None, description="Display value, e.g. 20% off")
    code: Optional[str] = Field(None, description="Promo code")
    coupon_type: Optional[str] = Field(None, description="promo_code, deal, ...")
    affiliate_link: Optional[str] = None
    description: Optional[Any] = Field(None, description="Rich text blocks")
    editor_tips: Optional[Any] = Field(None, description="Rich text blocks")
    starts_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    site: Optional[str] = Field(None, description="Publishing channel")


class Coupon(CouponBase):
    """Full coupon record."""
    document_id: str
    coupon_uid: Optional[str] = None
    merchant: Optional[Merchant] = None
    priority: Optional[int] = Field(None, description="Stored rank; null until first renumbered")
    coupon_status: Optional[str] = None
    user_count: Optional[int] = None
    display_count: Optional[int] = None
    last_click_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def merchant_id(self) -> Optional[str]:
        return self.merchant.document_id if self.merchant else None


class CouponCreate(CouponBase):
    """Request model for creating a coupon."""
    coupon_title: str = Field(default="New Coupon")
    merchant: Optional[str] = Field(None, description="Merchant documentId")
    priority: Optional[int] = Field(None, description="Defaults to the top of its bucket")


class CouponUpdate(BaseModel):
    """Partial update; only fields that were set are sent to the CMS."""
    coupon_title: Optional[str] = None
    merchant: Optional[str] = Field(None, description="Merchant documentId")
    market: Optional[str] = None
    value: Optional[str] = None
    code: Optional[str] = None
    coupon_type: Optional[str] = None
    affiliate_link: Optional[str] = None
    description: Optional[Any] = None
    editor_tips: Optional[Any] = None
    priority: Optional[int] = None
    starts_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    coupon_status: Optional[CouponStatus] = None
    site: Optional[str] = None


class CouponFilters(BaseModel):
    """Listing filters understood by the CMS adapter."""
    q: Optional[str] = Field(None, description="Title search")
    merchant: Optional[str] = Field(None, description="Merchant name search")
    market: Optional[str] = None
    site: Optional[str] = None
    coupon_status: Optional[CouponStatus] = None


class CouponListResponse(BaseModel):
    """Response for listing coupons."""
    coupons: List[Coupon]
    total: int


# ============================================================================
# GRID OPERATIONS
# ============================================================================

class ReorderRequest(BaseModel):
    """Display order of the visible rows after a drag or sort."""
    order: List[str] = Field(..., description="Coupon ids, top to bottom")
    filters: CouponFilters = Field(default_factory=CouponFilters)
    bucket_mode: Optional[BucketMode] = None


class RecomputeRequest(BaseModel):
    """Renumber the rows of a filter selection in their stored order."""
    filters: CouponFilters = Field(default_factory=CouponFilters)
    bucket_mode: Optional[BucketMode] = None


class BulkUpdateRequest(BaseModel):
    """Pending grid edits keyed by coupon id."""
    changes: Dict[str, CouponUpdate]
    filters: CouponFilters = Field(default_factory=CouponFilters)


class GridOperationResponse(BaseModel):
    """Outcome of a reorder, recompute or bulk save."""
    changed: int
    succeeded: int
    failed: int
    failed_ids: List[str] = Field(default_factory=list)
    message: str
    coupons: List[Coupon] = Field(default_factory=list)


# ============================================================================
# VALIDATION / DASHBOARD
# ============================================================================

class ValidationIssue(BaseModel):
    """Something an editor should fix before a coupon goes live."""
    type: str
    message: str
    severity: str


class CouponValidation(BaseModel):
    document_id: str
    coupon_title: str
    issues: List[ValidationIssue]


class ValidationReport(BaseModel):
    """Bulk validation over a listing."""
    checked: int
    errors: int
    warnings: int
    results: List[CouponValidation]


class RecentActivity(BaseModel):
    id: str
    type: str
    coupon: str
    timestamp: datetime


class DashboardStats(BaseModel):
    """KPI summary for the dashboard page."""
    total_coupons: int
    active_coupons: int
    scheduled_coupons: int
    expired_coupons: int
    archived_coupons: int
    total_merchants: int
    active_percentage: float
    market_distribution: Dict[str, int]
    status_distribution: Dict[str, int]
    recent_activity: List[RecentActivity]
    last_updated: datetime
