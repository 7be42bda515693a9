"""Editorial checks shown as badges in the grid."""
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from couponadmin.models.coupons import (
    Coupon,
    CouponValidation,
    ValidationIssue,
    ValidationReport,
)


EXPIRY_WARNING_HOURS = 48


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def get_validation_issues(coupon: Coupon, now: Optional[datetime] = None) -> List[ValidationIssue]:
    """
    Check a single coupon.

    Args:
        coupon: Coupon to check
        now: Reference time, defaults to the current UTC time

    Returns:
        Issues in display order (errors first, then the expiry warning)
    """
    issues: List[ValidationIssue] = []

    if not (coupon.affiliate_link or "").strip():
        issues.append(ValidationIssue(type="missing-link", message="Missing affiliate link", severity="error"))

    if coupon.coupon_type == "promo_code" and not (coupon.code or "").strip():
        issues.append(ValidationIssue(type="missing-code", message="Missing promo code", severity="error"))

    if coupon.expires_at:
        now = _as_utc(now or datetime.now(timezone.utc))
        hours_left = (_as_utc(coupon.expires_at) - now).total_seconds() / 3600
        if 0 < hours_left <= EXPIRY_WARNING_HOURS:
            issues.append(
                ValidationIssue(
                    type="expiring-soon",
                    message=f"Expires in {round(hours_left)}h",
                    severity="warning",
                )
            )

    return issues


def validate_coupons(coupons: Iterable[Coupon], now: Optional[datetime] = None) -> ValidationReport:
    """Run every check over a listing; only coupons with issues are reported."""
    now = now or datetime.now(timezone.utc)
    checked = 0
    errors = 0
    warnings = 0
    results: List[CouponValidation] = []

    for coupon in coupons:
        checked += 1
        issues = get_validation_issues(coupon, now)
        if not issues:
            continue
        errors += sum(1 for issue in issues if issue.severity == "error")
        warnings += sum(1 for issue in issues if issue.severity == "warning")
        results.append(
            CouponValidation(
                document_id=coupon.document_id,
                coupon_title=coupon.coupon_title,
                issues=issues,
            )
        )

    return ValidationReport(checked=checked, errors=errors, warnings=warnings, results=results)
