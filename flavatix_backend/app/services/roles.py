# flavatix_backend/app/services/roles.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from flavatix_backend.app.db.models import Profile, QuickTasting, TastingParticipant
from .errors import Conflict, Forbidden, NotFound

log = logging.getLogger("flavatix.roles")


# role -> default permissions
ROLE_DEFAULTS: Dict[str, Dict[str, bool]] = {
    "host": {
        "can_moderate": True,
        "can_add_items": False,
        "can_manage_session": True,
        "can_view_all_suggestions": True,
        "can_participate_in_tasting": False,
    },
    "participant": {
        "can_moderate": False,
        "can_add_items": True,
        "can_manage_session": False,
        "can_view_all_suggestions": False,
        "can_participate_in_tasting": True,
    },
    "both": {
        "can_moderate": True,
        "can_add_items": True,
        "can_manage_session": True,
        "can_view_all_suggestions": True,
        "can_participate_in_tasting": True,
    },
}

def permissions_for_role(role: str, tasting: Optional[QuickTasting] = None) -> Dict[str, bool]:
    perms = dict(ROLE_DEFAULTS[role])
    if tasting is not None and tasting.mode == "study" and role == "participant":
        perms["can_add_items"] = tasting.study_approach == "collaborative"
    return perms

def permissions_of(p: TastingParticipant) -> Dict[str, Any]:
    """Effective permissions from a stored participant row."""
    return {
        "role": p.role,
        "can_moderate": p.can_moderate,
        "can_add_items": p.can_add_items,
        "can_manage_session": p.role in ("host", "both"),
        "can_view_all_suggestions": p.can_moderate,
        "can_participate_in_tasting": p.role in ("participant", "both"),
    }

def participant_out(p: TastingParticipant, profile: Optional[Profile] = None) -> Dict[str, Any]:
    out = p.model_dump()
    out["permissions"] = permissions_of(p)
    if profile is not None:
        out["profile"] = {
            "full_name": profile.full_name,
            "username": profile.username,
            "avatar_url": profile.avatar_url,
        }
    return out

# -----------------------------------------------------------------------------
# Lookups
# -----------------------------------------------------------------------------
def _tasting_or_404(session: Session, tasting_id: str) -> QuickTasting:
    tasting = session.get(QuickTasting, tasting_id)
    if tasting is None:
        raise NotFound("Tasting session not found")
    return tasting

def find_participant(session: Session, tasting_id: str, user_id: str) -> Optional[TastingParticipant]:
    return session.exec(
        select(TastingParticipant).where(
            TastingParticipant.tasting_id == tasting_id,
            TastingParticipant.user_id == user_id,
        )
    ).first()

def _ensure_single_host(session: Session, tasting_id: str, role: str, exclude_id: Optional[str] = None) -> None:
    if role != "host":
        return
    q = select(TastingParticipant).where(
        TastingParticipant.tasting_id == tasting_id,
        TastingParticipant.role == "host",
    )
    if exclude_id:
        q = q.where(TastingParticipant.id != exclude_id)
    if session.exec(q).first() is not None:
        raise Conflict("Only one host allowed per tasting session")

# -----------------------------------------------------------------------------
# Operations
# -----------------------------------------------------------------------------
def add_participant(
    session: Session,
    tasting_id: str,
    user_id: str,
    requested_role: Optional[str] = None,
) -> TastingParticipant:
    existing = find_participant(session, tasting_id, user_id)
    if existing is not None:
        return existing

    tasting = _tasting_or_404(session, tasting_id)
    if user_id == tasting.user_id:
        role = "both" if tasting.mode == "study" else "host"
    else:
        role = requested_role or "participant"

    _ensure_single_host(session, tasting_id, role)
    perms = permissions_for_role(role, tasting)
    participant = TastingParticipant(
        tasting_id=tasting_id,
        user_id=user_id,
        role=role,
        can_moderate=perms["can_moderate"],
        can_add_items=perms["can_add_items"],
    )
    session.add(participant)
    session.commit()
    session.refresh(participant)
    log.info(f"[roles] {user_id} joined {tasting_id} as {role}")
    return participant

def get_user_permissions(session: Session, tasting_id: str, user_id: str) -> Dict[str, Any]:
    p = find_participant(session, tasting_id, user_id)
    if p is None:
        raise Forbidden("User is not a participant in this tasting")
    return permissions_of(p)

def _apply_role(session: Session, participant: TastingParticipant, new_role: str, tasting: QuickTasting) -> None:
    _ensure_single_host(session, tasting.id, new_role, exclude_id=participant.id)
    perms = permissions_for_role(new_role, tasting)
    participant.role = new_role
    participant.can_moderate = perms["can_moderate"]
    participant.can_add_items = perms["can_add_items"]
    session.add(participant)

def update_participant_role(
    session: Session,
    tasting_id: str,
    participant_id: str,
    new_role: str,
    requesting_user: str,
) -> TastingParticipant:
    tasting = _tasting_or_404(session, tasting_id)
    requester = find_participant(session, tasting_id, requesting_user)
    if requester is None or not permissions_of(requester)["can_manage_session"]:
        raise Forbidden("User does not have permission to manage participant roles")

    participant = session.get(TastingParticipant, participant_id)
    if participant is None or participant.tasting_id != tasting_id:
        raise NotFound("Participant not found")

    _apply_role(session, participant, new_role, tasting)
    session.commit()
    session.refresh(participant)
    log.info(f"[roles] {participant_id} in {tasting_id} is now {new_role} (by {requesting_user})")
    return participant

def get_participants(session: Session, tasting_id: str) -> List[Dict[str, Any]]:
    _tasting_or_404(session, tasting_id)
    rows = session.exec(
        select(TastingParticipant, Profile)
        .join(Profile, Profile.user_id == TastingParticipant.user_id, isouter=True)
        .where(TastingParticipant.tasting_id == tasting_id)
        .order_by(TastingParticipant.created_at)
    ).all()
    return [participant_out(p, profile) for p, profile in rows]

def has_active_host(session: Session, tasting_id: str) -> bool:
    return session.exec(
        select(TastingParticipant.id).where(
            TastingParticipant.tasting_id == tasting_id,
            TastingParticipant.role.in_(("host", "both")),
        )
    ).first() is not None

def transfer_host_role(session: Session, tasting_id: str, new_host_user_id: str, current_host_user_id: str) -> None:
    """Demote the current host to participant and promote another participant to host."""
    tasting = _tasting_or_404(session, tasting_id)
    current = find_participant(session, tasting_id, current_host_user_id)
    if current is None or not permissions_of(current)["can_manage_session"]:
        raise Forbidden("Current user does not have permission to transfer host role")
    new_host = find_participant(session, tasting_id, new_host_user_id)
    if new_host is None:
        raise NotFound("Participant not found")

    _apply_role(session, current, "participant", tasting)
    session.flush()
    _apply_role(session, new_host, "host", tasting)
    session.commit()
    log.info(f"[roles] host of {tasting_id} moved {current_host_user_id} -> {new_host_user_id}")
