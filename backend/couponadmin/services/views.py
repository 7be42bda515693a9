"""Saved grid views using SQLAlchemy."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from couponadmin.db.models import SavedViewModel
from couponadmin.models.coupons import CouponFilters
from couponadmin.models.views import QUICK_VIEWS, SavedView, SavedViewCreate, SavedViewUpdate


class ViewNameTakenError(ValueError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def to_saved_view(model: SavedViewModel) -> SavedView:
    return SavedView(
        id=model.id,
        name=model.name,
        filters=CouponFilters.model_validate(model.filters or {}),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def list_views(db: Session) -> List[SavedView]:
    """Quick views first, then saved views by name."""
    stmt = select(SavedViewModel).order_by(SavedViewModel.name)
    saved = [to_saved_view(row) for row in db.execute(stmt).scalars().all()]
    return list(QUICK_VIEWS) + saved


def get_view(db: Session, view_id: str) -> SavedViewModel | None:
    stmt = select(SavedViewModel).where(SavedViewModel.id == view_id)
    return db.execute(stmt).scalars().first()


def _name_taken(db: Session, name: str, exclude_id: str | None = None) -> bool:
    stmt = select(SavedViewModel).where(SavedViewModel.name == name)
    if exclude_id:
        stmt = stmt.where(SavedViewModel.id != exclude_id)
    return db.execute(stmt).scalars().first() is not None


def create_view(db: Session, data: SavedViewCreate) -> SavedViewModel:
    if _name_taken(db, data.name):
        raise ViewNameTakenError(f"A view named {data.name!r} already exists")
    model = SavedViewModel(
        id=str(uuid.uuid4()),
        name=data.name,
        filters=data.filters.model_dump(exclude_none=True, mode="json"),
        created_at=_now(),
        updated_at=_now(),
    )
    db.add(model)
    db.commit()
    db.refresh(model)
    return model


def update_view(db: Session, model: SavedViewModel, data: SavedViewUpdate) -> SavedViewModel:
    if data.name is not None and data.name != model.name:
        if _name_taken(db, data.name, exclude_id=model.id):
            raise ViewNameTakenError(f"A view named {data.name!r} already exists")
        model.name = data.name
    if data.filters is not None:
        model.filters = data.filters.model_dump(exclude_none=True, mode="json")
    model.updated_at = _now()
    db.commit()
    db.refresh(model)
    return model


def delete_view(db: Session, model: SavedViewModel) -> None:
    db.delete(model)
    db.commit()
