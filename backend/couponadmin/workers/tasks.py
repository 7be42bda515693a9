"""Background tasks for catalogue maintenance."""
import asyncio
from typing import Optional
from celery.utils.log import get_task_logger
from couponadmin.models.coupons import BucketMode, CouponFilters
from couponadmin.services.grid import CouponGrid
from couponadmin.services.strapi_client import StrapiCouponStore
from couponadmin.workers.celery_app import celery_app


logger = get_task_logger(__name__)


async def _recompute(filters: CouponFilters, bucket_mode: Optional[BucketMode]) -> dict:
    grid = CouponGrid(StrapiCouponStore())
    result = await grid.recompute(filters=filters, bucket_mode=bucket_mode)
    return result.model_dump(exclude={"coupons"})


@celery_app.task(name="tasks.recompute_priorities")
def recompute_priorities_task(filters: Optional[dict] = None, bucket_mode: Optional[str] = None):
    """Renumber priorities for a filter selection in stored order."""
    logger.info("Starting recompute_priorities_task (filters=%s, bucket_mode=%s)", filters, bucket_mode)
    result = asyncio.run(
        _recompute(
            CouponFilters.model_validate(filters or {}),
            BucketMode(bucket_mode) if bucket_mode else None,
        )
    )
    logger.info("Recompute completed: %s", result)
    return result
