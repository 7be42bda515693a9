"""API router aggregation."""
from fastapi import APIRouter
from couponadmin.api.routers.health import router as health_router
from couponadmin.api.routers.coupons import router as coupons_router
from couponadmin.api.routers.merchants import router as merchants_router
from couponadmin.api.routers.dashboard import router as dashboard_router
from couponadmin.api.routers.views import router as views_router
from couponadmin.api.routers.admin_tasks import router as admin_router


api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(coupons_router)
api_router.include_router(merchants_router)
api_router.include_router(dashboard_router)
api_router.include_router(views_router)
api_router.include_router(admin_router)
