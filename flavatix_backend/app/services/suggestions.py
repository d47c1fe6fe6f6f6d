# flavatix_backend/app/services/suggestions.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from flavatix_backend.app.db.models import (
    ItemSuggestion,
    Profile,
    QuickTasting,
    QuickTastingItem,
    TastingParticipant,
    utcnow,
)
from . import roles
from .errors import Conflict, Forbidden, InvalidInput, NotFound

log = logging.getLogger("flavatix.suggestions")

MAX_ITEM_NAME = 100
_ACTION_STATUS = {"approve": "approved", "reject": "rejected"}

def _tasting_or_404(session: Session, tasting_id: str) -> QuickTasting:
    tasting = session.get(QuickTasting, tasting_id)
    if tasting is None:
        raise NotFound("Tasting session not found")
    return tasting

def submit_suggestion(
    session: Session,
    tasting_id: str,
    caller: str,
    participant_id: Optional[str],
    item_name: Optional[str],
) -> ItemSuggestion:
    if not participant_id or not item_name:
        raise InvalidInput("participant_id and item_name are required")
    name = item_name.strip()
    if not name:
        raise InvalidInput("item_name must be a non-empty string")
    if len(item_name) > MAX_ITEM_NAME:
        raise InvalidInput(f"item_name must be {MAX_ITEM_NAME} characters or less")

    tasting = _tasting_or_404(session, tasting_id)
    participant = session.get(TastingParticipant, participant_id)
    if participant is None or participant.tasting_id != tasting_id:
        raise NotFound("Participant not found")
    if participant.user_id != caller:
        raise Forbidden("You can only submit suggestions for yourself")
    if tasting.mode != "study" or tasting.study_approach != "collaborative":
        raise NotFound("Suggestions only allowed in collaborative study mode")
    if not participant.can_add_items:
        raise Forbidden("Participant does not have permission to add items")

    suggestion = ItemSuggestion(
        tasting_id=tasting_id,
        participant_id=participant_id,
        suggested_item_name=name,
    )
    session.add(suggestion)
    session.commit()
    session.refresh(suggestion)
    log.info(f"[suggestions] {participant_id} suggested '{name}' for {tasting_id}")
    return suggestion

def list_suggestions(
    session: Session,
    tasting_id: str,
    caller: str,
    status: Optional[str] = None,
) -> List[Dict[str, Any]]:
    _tasting_or_404(session, tasting_id)
    me = roles.find_participant(session, tasting_id, caller)
    if me is None:
        raise Forbidden("User does not have access to this tasting session")

    q = (
        select(ItemSuggestion, TastingParticipant, Profile)
        .join(TastingParticipant, TastingParticipant.id == ItemSuggestion.participant_id)
        .join(Profile, Profile.user_id == TastingParticipant.user_id, isouter=True)
        .where(ItemSuggestion.tasting_id == tasting_id)
    )
    if status:
        q = q.where(ItemSuggestion.status == status)
    if not me.can_moderate:
        q = q.where(ItemSuggestion.participant_id == me.id)
    q = q.order_by(ItemSuggestion.created_at.desc())

    out = []
    for suggestion, participant, profile in session.exec(q).all():
        row = suggestion.model_dump()
        row["participant"] = {
            "user_id": participant.user_id,
            "full_name": profile.full_name if profile else None,
            "username": profile.username if profile else None,
            "avatar_url": profile.avatar_url if profile else None,
        }
        out.append(row)
    return out

def moderate_suggestion(
    session: Session,
    tasting_id: str,
    suggestion_id: str,
    moderator: str,
    action: Optional[str],
) -> ItemSuggestion:
    if action not in _ACTION_STATUS:
        raise InvalidInput('action must be either "approve" or "reject"')
    _tasting_or_404(session, tasting_id)

    me = roles.find_participant(session, tasting_id, moderator)
    if me is None or not me.can_moderate:
        raise Forbidden("User does not have permission to moderate suggestions")

    suggestion = session.get(ItemSuggestion, suggestion_id)
    if suggestion is None or suggestion.tasting_id != tasting_id:
        raise NotFound("Suggestion not found")
    if suggestion.status != "pending":
        raise Conflict("Suggestion has already been moderated")

    suggestion.status = _ACTION_STATUS[action]
    suggestion.moderated_by = moderator
    suggestion.moderated_at = utcnow()
    session.add(suggestion)

    if action == "approve":
        session.add(QuickTastingItem(
            tasting_id=tasting_id,
            item_name=suggestion.suggested_item_name,
            include_in_ranking=True,
        ))
        tasting = session.get(QuickTasting, tasting_id)
        tasting.total_items += 1
        session.add(tasting)

    session.commit()
    session.refresh(suggestion)
    log.info(f"[suggestions] {suggestion_id} {suggestion.status} by {moderator}")
    return suggestion
