# flavatix_backend/app/routers/profiles.py
from __future__ import annotations
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlmodel import Session

from flavatix_backend.app.db.session import get_session
from flavatix_backend.app.schemas import ProfileIn
from flavatix_backend.app.services import profiles as svc
from flavatix_backend.app.services.auth import current_user

router = APIRouter(prefix="/profiles", tags=["profiles"])

@router.get("/me")
def my_profile(user: str = Depends(current_user), session: Session = Depends(get_session)) -> Dict[str, Any]:
    return {"data": svc.get_profile(session, user).model_dump()}

@router.put("/me")
def update_my_profile(
    body: ProfileIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return {"data": svc.upsert_profile(session, user, body).model_dump()}

@router.get("/{user_id}")
def get_profile(user_id: str, session: Session = Depends(get_session)) -> Dict[str, Any]:
    return {"data": svc.get_profile(session, user_id).model_dump()}
