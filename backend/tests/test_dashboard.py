from datetime import datetime, timezone

from conftest import make_coupon
from couponadmin.models.coupons import Merchant
from couponadmin.services.dashboard import build_dashboard_stats


NOW = datetime(2026, 10, 17, tzinfo=timezone.utc)


def _at(day):
    return datetime(2026, 10, day, tzinfo=timezone.utc)


def test_counts_and_distributions():
    coupons = [
        make_coupon("c1", 1, coupon_status="active", market="HK"),
        make_coupon("c2", 1, coupon_status="active", market="TW"),
        make_coupon("c3", 1, coupon_status="expired", market="HK"),
        make_coupon("c4", 1, coupon_status="scheduled"),
    ]

    stats = build_dashboard_stats(coupons, [Merchant(document_id="m1", name="A")], NOW)

    assert stats.total_coupons == 4
    assert stats.active_coupons == 2
    assert stats.expired_coupons == 1
    assert stats.scheduled_coupons == 1
    assert stats.archived_coupons == 0
    assert stats.total_merchants == 1
    assert stats.active_percentage == 50.0
    assert stats.market_distribution == {"HK": 2, "TW": 1}
    assert stats.status_distribution == {"active": 2, "expired": 1, "scheduled": 1}
    assert stats.last_updated == NOW


def test_recent_activity_is_latest_five_by_update_time():
    coupons = [
        make_coupon(f"c{day}", 1, created_at=_at(1), updated_at=_at(day))
        for day in range(1, 8)
    ]

    stats = build_dashboard_stats(coupons, [], NOW)

    assert [a.id for a in stats.recent_activity] == ["c7", "c6", "c5", "c4", "c3"]
    assert stats.recent_activity[0].type == "updated"


def test_empty_catalogue():
    stats = build_dashboard_stats([], [], NOW)

    assert stats.total_coupons == 0
    assert stats.active_percentage == 0.0
    assert stats.recent_activity == []
