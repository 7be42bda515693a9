"""Saved view routes."""
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session
from couponadmin.api.deps import require_admin
from couponadmin.db.session import get_db
from couponadmin.models.views import SavedView, SavedViewCreate, SavedViewListResponse, SavedViewUpdate
from couponadmin.services import views as views_service


router = APIRouter(prefix="/views", tags=["Views"], dependencies=[Depends(require_admin)])


def _get_or_404(db: Session, view_id: str):
    model = views_service.get_view(db, view_id)
    if not model:
        raise HTTPException(status_code=404, detail="View not found")
    return model


@router.get("", response_model=SavedViewListResponse)
def list_views(db: Session = Depends(get_db)):
    """Quick views followed by saved views."""
    views = views_service.list_views(db)
    return SavedViewListResponse(views=views, total=len(views))


@router.post("", response_model=SavedView, status_code=201)
def create_view(data: SavedViewCreate, db: Session = Depends(get_db)):
    try:
        model = views_service.create_view(db, data)
    except views_service.ViewNameTakenError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return views_service.to_saved_view(model)


@router.get("/{view_id}", response_model=SavedView)
def get_view(view_id: str, db: Session = Depends(get_db)):
    return views_service.to_saved_view(_get_or_404(db, view_id))


@router.put("/{view_id}", response_model=SavedView)
def update_view(view_id: str, data: SavedViewUpdate, db: Session = Depends(get_db)):
    model = _get_or_404(db, view_id)
    try:
        model = views_service.update_view(db, model, data)
    except views_service.ViewNameTakenError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return views_service.to_saved_view(model)


@router.delete("/{view_id}", status_code=204)
def delete_view(view_id: str, db: Session = Depends(get_db)):
    views_service.delete_view(db, _get_or_404(db, view_id))
    return Response(status_code=204)
