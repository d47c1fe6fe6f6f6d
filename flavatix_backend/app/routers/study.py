# flavatix_backend/app/routers/study.py
from __future__ import annotations
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from flavatix_backend.app.db.session import get_session
from flavatix_backend.app.schemas import CreateStudyIn, JoinStudyIn, ResolveCodeIn, StudyItemsIn, StudyResponsesIn
from flavatix_backend.app.services import study_sessions as svc
from flavatix_backend.app.services.auth import current_user, optional_user

router = APIRouter(prefix="/tastings/study", tags=["study"])

@router.post("/create", status_code=status.HTTP_201_CREATED)
def create_study(
    body: CreateStudyIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return svc.create_session(session, user, body)

@router.post("/resolve-code")
def resolve_code(body: ResolveCodeIn, session: Session = Depends(get_session)) -> Dict[str, Any]:
    return svc.resolve_code(session, body.code)

@router.post("/join")
def join_study(
    body: JoinStudyIn,
    user: Optional[str] = Depends(optional_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return svc.join_session(session, body.session_id, user, body.display_name)

@router.get("/{session_id}/items")
def list_items(session_id: str, session: Session = Depends(get_session)) -> Dict[str, Any]:
    svc.get_study_or_404(session, session_id)
    return {"items": [i.model_dump() for i in svc.list_items(session, session_id)]}

@router.post("/{session_id}/items", status_code=status.HTTP_201_CREATED)
def add_items(
    session_id: str,
    body: StudyItemsIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return {"items": [i.model_dump() for i in svc.add_items(session, session_id, user, body.items)]}

@router.post("/{session_id}/responses")
def save_responses(
    session_id: str,
    body: StudyResponsesIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return svc.save_responses(session, session_id, user, body.item_id, body.responses)

@router.post("/{session_id}/start")
def start_study(session_id: str, user: str = Depends(current_user), session: Session = Depends(get_session)):
    return svc.start_session(session, session_id, user)

@router.post("/{session_id}/finish")
def finish_study(session_id: str, user: str = Depends(current_user), session: Session = Depends(get_session)):
    return svc.finish_session(session, session_id, user)

@router.get("/{session_id}/summary")
def study_summary(
    session_id: str,
    view: str = Query("all", pattern="^(all|me)$"),
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return svc.get_summary(session, session_id, user, view)
