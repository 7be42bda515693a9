"""Celery application configuration."""
from celery import Celery
from couponadmin.core.config import get_settings


settings = get_settings()

celery_app = Celery(
    "couponadmin",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.autodiscover_tasks(["couponadmin.workers"])
