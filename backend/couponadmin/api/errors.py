"""Translate domain exceptions into HTTP errors."""
from fastapi import HTTPException

from couponadmin.exceptions import (
    MalformedRecordError,
    RecordNotFoundError,
    ReorderInProgressError,
    StoreError,
    UnauthorizedError,
    UnknownRecordError,
)


def http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, RecordNotFoundError):
        return HTTPException(status_code=404, detail="Coupon not found")
    if isinstance(exc, UnauthorizedError):
        return HTTPException(status_code=502, detail=f"CMS rejected credentials: {exc}")
    if isinstance(exc, StoreError):
        return HTTPException(status_code=502, detail=f"CMS error: {exc}")
    if isinstance(exc, ReorderInProgressError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, UnknownRecordError):
        return HTTPException(status_code=422, detail={"message": str(exc), "ids": exc.ids})
    if isinstance(exc, MalformedRecordError):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=500, detail="Internal server error")
