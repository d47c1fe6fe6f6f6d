# flavatix_backend/app/routers/tastings.py
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from flavatix_backend.app.db.session import get_session
from flavatix_backend.app.schemas import CompleteTastingIn, CreateTastingIn, ItemUpdateIn, TastingItemIn
from flavatix_backend.app.services import tastings as svc
from flavatix_backend.app.services.auth import current_user, ensure_same_user

router = APIRouter(prefix="/tastings", tags=["tastings"])

@router.post("/create", status_code=status.HTTP_201_CREATED)
def create_tasting(
    body: CreateTastingIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    ensure_same_user(body.user_id, user)
    return svc.create_tasting(session, user, body)

@router.get("/history")
def tasting_history(
    category: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    sort_by: str = Query("date", pattern="^(date|rating|category)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, List[Dict[str, Any]]]:
    return {"data": svc.get_history(session, user, category, date_from, date_to, sort_by, sort_order, limit, offset)}

@router.get("/stats")
def tasting_stats(user: str = Depends(current_user), session: Session = Depends(get_session)) -> Dict[str, Any]:
    return svc.get_stats(session, user)

@router.get("/{tasting_id}")
def get_tasting(tasting_id: str, session: Session = Depends(get_session)) -> Dict[str, Any]:
    return svc.get_tasting(session, tasting_id)

@router.post("/{tasting_id}/items", status_code=status.HTTP_201_CREATED)
def add_item(
    tasting_id: str,
    body: TastingItemIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return {"item": svc.add_item(session, tasting_id, user, body).model_dump()}

@router.patch("/{tasting_id}/items/{item_id}")
def update_item(
    tasting_id: str,
    item_id: str,
    body: ItemUpdateIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return svc.update_item(session, tasting_id, item_id, user, body)

@router.post("/{tasting_id}/complete")
def complete_tasting(
    tasting_id: str,
    body: Optional[CompleteTastingIn] = None,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return svc.complete_tasting(session, tasting_id, user, body.notes if body else None)

@router.delete("/{tasting_id}")
def delete_tasting(
    tasting_id: str,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return svc.delete_tasting(session, tasting_id, user)
