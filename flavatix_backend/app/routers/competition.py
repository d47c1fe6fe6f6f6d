# flavatix_backend/app/routers/competition.py
from __future__ import annotations
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlmodel import Session

from flavatix_backend.app.db.session import get_session
from flavatix_backend.app.schemas import SubmitAnswersIn
from flavatix_backend.app.services import competition as svc
from flavatix_backend.app.services.auth import current_user

router = APIRouter(prefix="/tastings/{tasting_id}/competition", tags=["competition"])

@router.post("/submit")
def submit_answers(
    tasting_id: str,
    body: SubmitAnswersIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return svc.submit_answers(session, tasting_id, user, body.answers)

@router.get("/leaderboard")
def leaderboard(tasting_id: str, session: Session = Depends(get_session)) -> Dict[str, Any]:
    return {"leaderboard": svc.get_leaderboard(session, tasting_id)}
