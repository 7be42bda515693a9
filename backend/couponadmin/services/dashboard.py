"""Dashboard KPI aggregation."""
from collections import Counter
from datetime import datetime, timezone
from typing import List, Optional

from couponadmin.models.coupons import Coupon, DashboardStats, Merchant, RecentActivity


RECENT_ACTIVITY_LIMIT = 5
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _last_touched(coupon: Coupon) -> datetime:
    value = coupon.updated_at or coupon.created_at
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def build_dashboard_stats(
    coupons: List[Coupon],
    merchants: List[Merchant],
    now: Optional[datetime] = None,
) -> DashboardStats:
    now = now or datetime.now(timezone.utc)
    statuses = Counter(c.coupon_status for c in coupons if c.coupon_status)
    markets = Counter(c.market for c in coupons if c.market)

    recent = sorted(coupons, key=_last_touched, reverse=True)[:RECENT_ACTIVITY_LIMIT]
    activity = [
        RecentActivity(
            id=c.document_id,
            type="created" if c.updated_at is None or c.updated_at == c.created_at else "updated",
            coupon=c.coupon_title,
            timestamp=c.updated_at or c.created_at or now,
        )
        for c in recent
    ]

    total = len(coupons)
    active = statuses.get("active", 0)
    return DashboardStats(
        total_coupons=total,
        active_coupons=active,
        scheduled_coupons=statuses.get("scheduled", 0),
        expired_coupons=statuses.get("expired", 0),
        archived_coupons=statuses.get("archived", 0),
        total_merchants=len(merchants),
        active_percentage=round(active / total * 100, 1) if total else 0.0,
        market_distribution=dict(markets),
        status_distribution=dict(statuses),
        recent_activity=activity,
        last_updated=now,
    )
