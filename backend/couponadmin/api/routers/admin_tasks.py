"""Admin endpoints for background tasks."""
from fastapi import APIRouter, Depends
from couponadmin.api.deps import require_admin
from couponadmin.models.coupons import RecomputeRequest
from couponadmin.workers.tasks import recompute_priorities_task


router = APIRouter(prefix="/admin/tasks", tags=["Admin"])


@router.post("/recompute")
def trigger_recompute(payload: RecomputeRequest, _: dict = Depends(require_admin)):
    """Renumber a filter selection's priorities in the background."""
    task = recompute_priorities_task.delay(
        filters=payload.filters.model_dump(exclude_none=True, mode="json"),
        bucket_mode=payload.bucket_mode.value if payload.bucket_mode else None,
    )
    return {"task_id": task.id, "status": "queued"}
