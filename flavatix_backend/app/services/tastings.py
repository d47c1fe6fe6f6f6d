# flavatix_backend/app/services/tastings.py
from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlmodel import Session, select

from flavatix_backend.app.db.models import (
    CommentLike,
    CompetitionAnswer,
    ItemSuggestion,
    QuickTasting,
    QuickTastingItem,
    TastingComment,
    TastingLike,
    TastingParticipant,
    TastingShare,
    utcnow,
)
from flavatix_backend.app.flavour.extractor import extract_from_structured, extract_with_intensity
from flavatix_backend.app.schemas import CreateTastingIn, ItemUpdateIn, TastingItemIn
from flavatix_backend.app.utils.strings import null_to_none_or_strip
from . import roles
from .errors import Forbidden, InvalidInput, NotFound
from .flavor_wheels import save_descriptors

log = logging.getLogger("flavatix.tastings")

_MODE_LABELS = {"quick": "Quick Tasting", "study": "Study", "competition": "Competition"}
_SORT_COLUMNS = {
    "date": QuickTasting.created_at,
    "rating": QuickTasting.average_score,
    "category": QuickTasting.category,
}

def default_session_name(category: str, mode: str) -> str:
    return f"{category[:1].upper()}{category[1:]} {_MODE_LABELS[mode]}"

def tasting_out(tasting: QuickTasting, items: Iterable[QuickTastingItem]) -> Dict[str, Any]:
    return {"tasting": tasting.model_dump(), "items": [i.model_dump() for i in items]}

# -----------------------------------------------------------------------------
# Lookups
# -----------------------------------------------------------------------------
def get_tasting_or_404(session: Session, tasting_id: str) -> QuickTasting:
    tasting = session.get(QuickTasting, tasting_id)
    if tasting is None:
        raise NotFound("Tasting session not found")
    return tasting

def _owned_tasting(session: Session, tasting_id: str, user_id: str) -> QuickTasting:
    tasting = get_tasting_or_404(session, tasting_id)
    if tasting.user_id != user_id:
        raise Forbidden("Only the owner can modify this tasting")
    return tasting

def list_items(session: Session, tasting_id: str) -> List[QuickTastingItem]:
    return list(session.exec(
        select(QuickTastingItem)
        .where(QuickTastingItem.tasting_id == tasting_id)
        .order_by(QuickTastingItem.created_at)
    ).all())

def _new_item(tasting_id: str, item: TastingItemIn) -> QuickTastingItem:
    return QuickTastingItem(
        tasting_id=tasting_id,
        item_name=item.item_name.strip(),
        correct_answers=item.correct_answers,
        include_in_ranking=item.include_in_ranking,
    )

# -----------------------------------------------------------------------------
# Create / read
# -----------------------------------------------------------------------------
def create_tasting(session: Session, user_id: str, body: CreateTastingIn) -> Dict[str, Any]:
    mode = body.mode.value
    category = body.category.value

    if mode == "competition" and not body.items:
        raise InvalidInput("Competition mode requires at least one item")
    if mode == "study" and body.items:
        raise InvalidInput("Study mode should not have preloaded items")

    study_approach = None
    if mode == "study":
        study_approach = body.study_approach.value if body.study_approach else "collaborative"

    tasting = QuickTasting(
        user_id=user_id,
        category=category,
        session_name=null_to_none_or_strip(body.session_name) or default_session_name(category, mode),
        mode=mode,
        study_approach=study_approach,
        notes=body.notes,
        rank_participants=body.rank_participants,
        ranking_type=body.ranking_type if body.rank_participants else None,
        is_blind_participants=body.is_blind_participants,
        is_blind_items=body.is_blind_items,
        is_blind_attributes=body.is_blind_attributes,
    )
    session.add(tasting)
    session.flush()

    items = [_new_item(tasting.id, i) for i in body.items]
    for item in items:
        session.add(item)
    tasting.total_items = len(items)
    session.commit()

    roles.add_participant(session, tasting.id, user_id)
    session.refresh(tasting)
    log.info(f"[tastings] created {tasting.id} ({mode}/{category}, {len(items)} items) for {user_id}")

    out = tasting_out(tasting, list_items(session, tasting.id))
    out["message"] = "Tasting session created successfully"
    return out

def get_tasting(session: Session, tasting_id: str) -> Dict[str, Any]:
    tasting = get_tasting_or_404(session, tasting_id)
    return tasting_out(tasting, list_items(session, tasting_id))

# -----------------------------------------------------------------------------
# Items
# -----------------------------------------------------------------------------
def add_item(session: Session, tasting_id: str, user_id: str, item: TastingItemIn) -> QuickTastingItem:
    tasting = _owned_tasting(session, tasting_id, user_id)
    row = _new_item(tasting_id, item)
    session.add(row)
    tasting.total_items += 1
    tasting.updated_at = utcnow()
    session.add(tasting)
    session.commit()
    session.refresh(row)
    return row

def _extract_item_descriptors(session: Session, tasting: QuickTasting, item: QuickTastingItem) -> int:
    descriptors = extract_from_structured(aroma_notes=item.aroma, flavor_notes=item.flavor)
    if item.notes:
        descriptors += extract_with_intensity(item.notes)
    if not descriptors:
        return 0
    return save_descriptors(
        session,
        user_id=tasting.user_id,
        source_type="quick_tasting",
        source_id=item.id,
        descriptors=descriptors,
        item_name=item.item_name,
        item_category=tasting.category,
        tasting_id=tasting.id,
    )

def update_item(
    session: Session,
    tasting_id: str,
    item_id: str,
    user_id: str,
    body: ItemUpdateIn,
) -> Dict[str, Any]:
    tasting = _owned_tasting(session, tasting_id, user_id)
    item = session.get(QuickTastingItem, item_id)
    if item is None or item.tasting_id != tasting_id:
        raise NotFound("Item not found")

    changes = body.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(item, key, value)
    item.updated_at = utcnow()
    session.add(item)
    session.commit()
    session.refresh(item)

    out = item.model_dump()
    extracted = 0
    if item.overall_score is not None or item.notes or item.aroma or item.flavor:
        extracted = _extract_item_descriptors(session, tasting, item)
    return {"item": out, "descriptors_saved": extracted}

# -----------------------------------------------------------------------------
# Completion / history / stats
# -----------------------------------------------------------------------------
def complete_tasting(session: Session, tasting_id: str, user_id: str, notes: Optional[str] = None) -> Dict[str, Any]:
    tasting = _owned_tasting(session, tasting_id, user_id)
    items = list_items(session, tasting_id)
    scores = [i.overall_score for i in items if i.overall_score is not None]

    tasting.completed_items = len(scores)
    tasting.total_items = len(items)
    tasting.average_score = (sum(scores) / len(scores)) if scores else None
    tasting.completed_at = utcnow()
    tasting.updated_at = tasting.completed_at
    if notes is not None:
        tasting.notes = notes
    session.add(tasting)
    session.commit()
    session.refresh(tasting)
    log.info(f"[tastings] completed {tasting_id}: {len(scores)}/{len(items)} scored")
    return tasting_out(tasting, list_items(session, tasting_id))

def get_history(
    session: Session,
    user_id: str,
    category: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    sort_by: str = "date",
    sort_order: str = "desc",
    limit: int = 20,
    offset: int = 0,
) -> List[Dict[str, Any]]:
    q = select(QuickTasting).where(QuickTasting.user_id == user_id)
    if category:
        q = q.where(QuickTasting.category == category)
    if date_from:
        q = q.where(QuickTasting.created_at >= date_from)
    if date_to:
        q = q.where(QuickTasting.created_at <= date_to)
    column = _SORT_COLUMNS.get(sort_by, QuickTasting.created_at)
    q = q.order_by(column.asc() if sort_order == "asc" else column.desc())
    q = q.offset(offset).limit(limit)

    return [tasting_out(t, list_items(session, t.id)) for t in session.exec(q).all()]

def current_streak(days: Iterable[date], today: date) -> int:
    """Consecutive days with a tasting, counted back from today or yesterday."""
    ordered = sorted(set(days), reverse=True)
    if not ordered or ordered[0] not in (today, today - timedelta(days=1)):
        return 0
    streak = 1
    for newer, older in zip(ordered, ordered[1:]):
        if (newer - older).days != 1:
            break
        streak += 1
    return streak

def get_stats(session: Session, user_id: str) -> Dict[str, Any]:
    tastings = session.exec(
        select(QuickTasting).where(
            QuickTasting.user_id == user_id,
            QuickTasting.completed_at.is_not(None),
        )
    ).all()
    if not tastings:
        return {
            "total_tastings": 0,
            "average_rating": 0,
            "most_tasted_category": None,
            "current_streak": 0,
            "categories_count": {},
        }

    rated = [t.average_score for t in tastings if t.average_score is not None]
    counts = Counter(t.category for t in tastings)
    return {
        "total_tastings": len(tastings),
        "average_rating": round(sum(rated) / len(rated), 2) if rated else 0,
        "most_tasted_category": counts.most_common(1)[0][0],
        "current_streak": current_streak((t.completed_at.date() for t in tastings), utcnow().date()),
        "categories_count": dict(counts),
    }

def delete_tasting(session: Session, tasting_id: str, user_id: str) -> Dict[str, Any]:
    tasting = _owned_tasting(session, tasting_id, user_id)
    # dependents first; sqlite does not cascade by default
    comment_ids = select(TastingComment.id).where(TastingComment.tasting_id == tasting_id)
    for like in session.exec(select(CommentLike).where(CommentLike.comment_id.in_(comment_ids))).all():
        session.delete(like)
    for model in (CompetitionAnswer, ItemSuggestion, TastingLike, TastingShare, TastingComment,
                  TastingParticipant, QuickTastingItem):
        for row in session.exec(select(model).where(model.tasting_id == tasting_id)).all():
            session.delete(row)
    session.flush()
    session.delete(tasting)
    session.commit()
    log.info(f"[tastings] deleted {tasting_id}")
    return {"ok": True, "deleted": tasting_id}
