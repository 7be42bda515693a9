"""API dependencies (admin guard, store and grid handles)."""
from typing import Optional
import jwt
from fastapi import Header, HTTPException, Request
from couponadmin.core.config import get_settings
from couponadmin.services.grid import CouponGrid
from couponadmin.services.strapi_client import StrapiCouponStore


ALLOWED_ROLES = {"admin", "editor"}


def _decode_token(token: str) -> dict:
    settings = get_settings()
    if not settings.admin_jwt_secret:
        raise HTTPException(status_code=500, detail="Missing ADMIN_JWT_SECRET")
    try:
        return jwt.decode(
            token,
            settings.admin_jwt_secret,
            algorithms=["HS256"],
            options={"verify_aud": False},
        )
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc


def require_admin(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    admin_key: Optional[str] = Header(None, alias="X-Admin-Key"),
) -> dict:
    """Require editor access via token role or admin API key."""
    settings = get_settings()
    if settings.admin_api_key and admin_key == settings.admin_api_key:
        return {"role": "admin", "via": "admin_key"}

    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing admin auth")

    user = _decode_token(authorization.split(" ", 1)[1])
    role = user.get("role") or user.get("app_metadata", {}).get("role")
    if role not in ALLOWED_ROLES:
        raise HTTPException(status_code=403, detail="Editor role required")
    return user


def get_store(request: Request) -> StrapiCouponStore:
    """Record store created at startup."""
    return request.app.state.store


def get_grid(request: Request) -> CouponGrid:
    """The grid owned by this app instance."""
    return request.app.state.grid
