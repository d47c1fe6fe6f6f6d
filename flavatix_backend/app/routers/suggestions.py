# flavatix_backend/app/routers/suggestions.py
from __future__ import annotations
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from flavatix_backend.app.db.session import get_session
from flavatix_backend.app.schemas import ModerateIn, SuggestionIn, SuggestionStatus
from flavatix_backend.app.services import suggestions as svc
from flavatix_backend.app.services.auth import current_user, ensure_same_user

router = APIRouter(prefix="/tastings/{tasting_id}/suggestions", tags=["suggestions"])

@router.get("")
def list_suggestions(
    tasting_id: str,
    status_filter: Optional[SuggestionStatus] = Query(None, alias="status"),
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return {"suggestions": svc.list_suggestions(session, tasting_id, user, status_filter.value if status_filter else None)}

@router.post("", status_code=status.HTTP_201_CREATED)
def submit_suggestion(
    tasting_id: str,
    body: SuggestionIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    ensure_same_user(body.user_id, user)
    suggestion = svc.submit_suggestion(session, tasting_id, user, body.participant_id, body.item_name)
    return {"message": "Suggestion submitted successfully", "suggestion": suggestion.model_dump()}

@router.post("/{suggestion_id}/moderate")
def moderate_suggestion(
    tasting_id: str,
    suggestion_id: str,
    body: ModerateIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    ensure_same_user(body.moderator_id or body.user_id, user)
    suggestion = svc.moderate_suggestion(session, tasting_id, suggestion_id, user, body.action)
    return {"message": f"Suggestion {suggestion.status} successfully", "suggestion": suggestion.model_dump()}
