# flavatix_backend/app/routers/participants.py
from __future__ import annotations
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from flavatix_backend.app.db.session import get_session
from flavatix_backend.app.schemas import JoinTastingIn, RoleUpdateIn, TransferHostIn
from flavatix_backend.app.services import roles
from flavatix_backend.app.services.auth import current_user, ensure_same_user

router = APIRouter(prefix="/tastings/{tasting_id}/participants", tags=["participants"])

@router.get("")
def list_participants(tasting_id: str, session: Session = Depends(get_session)) -> Dict[str, Any]:
    return {"participants": roles.get_participants(session, tasting_id)}

@router.post("", status_code=status.HTTP_201_CREATED)
def join_tasting(
    tasting_id: str,
    body: Optional[JoinTastingIn] = None,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    requested = body.role.value if body and body.role else None
    participant = roles.add_participant(session, tasting_id, user, requested)
    return {"participant": roles.participant_out(participant)}

@router.get("/me/permissions")
def my_permissions(
    tasting_id: str,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return {
        "permissions": roles.get_user_permissions(session, tasting_id, user),
        "has_active_host": roles.has_active_host(session, tasting_id),
    }

@router.put("/{participant_id}/role")
def update_role(
    tasting_id: str,
    participant_id: str,
    body: RoleUpdateIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    ensure_same_user(body.user_id, user)
    participant = roles.update_participant_role(session, tasting_id, participant_id, body.role.value, user)
    return {"message": "Participant role updated successfully", "participant": roles.participant_out(participant)}

@router.post("/transfer-host")
def transfer_host(
    tasting_id: str,
    body: TransferHostIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    roles.transfer_host_role(session, tasting_id, body.new_host_user_id, user)
    return {"message": "Host role transferred", "participants": roles.get_participants(session, tasting_id)}
