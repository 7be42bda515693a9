"""FastAPI entrypoint for the coupon admin backend."""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from couponadmin import __version__
from couponadmin.api.router import api_router
from couponadmin.core.config import get_settings
from couponadmin.db.base import Base
from couponadmin.db.session import engine
from couponadmin.db import models  # noqa: F401
from couponadmin.services.grid import CouponGrid
from couponadmin.services.strapi_client import StrapiCouponStore


settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Coupon Admin API", version=__version__)

allowed_origins = [
    origin.strip()
    for origin in settings.allowed_origins.split(",")
    if origin.strip()
]

if not allowed_origins:
    allowed_origins = ["http://localhost:3000", "http://localhost:5173"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)

app.state.store = StrapiCouponStore(settings)
app.state.grid = CouponGrid(app.state.store, settings)


@app.on_event("startup")
def _startup_create_tables() -> None:
    if settings.auto_create_tables:
        Base.metadata.create_all(bind=engine)
