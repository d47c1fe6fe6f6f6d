# flavatix_backend/app/services/competition.py
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlmodel import Session, select

from flavatix_backend.app.db.models import (
    CompetitionAnswer,
    Profile,
    QuickTasting,
    QuickTastingItem,
    TastingParticipant,
)
from flavatix_backend.app.flavour.extractor import extract_from_structured
from flavatix_backend.app.schemas import CompetitionAnswerIn
from .errors import Conflict, NotFound
from .flavor_wheels import save_descriptors

log = logging.getLogger("flavatix.competition")

OVERALL_POINTS = 40
AROMA_POINTS = 30
FLAVOR_POINTS = 30
MIN_WORD_LEN = 3

# -----------------------------------------------------------------------------
# Scoring (pure)
# -----------------------------------------------------------------------------
def _words(text: Optional[str]) -> List[str]:
    return [w for w in (text or "").lower().split() if len(w) >= MIN_WORD_LEN]

def text_match(user_answer: Optional[str], correct_answer: Optional[str]) -> float:
    """Share of answer-key words that some user word contains, or is contained in."""
    correct = _words(correct_answer)
    if not correct:
        return 0.0
    given = _words(user_answer)
    hits = sum(1 for cw in correct if any(cw in uw or uw in cw for uw in given))
    return hits / len(correct)

def calculate_score(items: Iterable[Any], answers: Mapping[str, Any]) -> int:
    """
    items: rows with id, correct_answers, include_in_ranking
    answers: item id -> answer with aroma, flavor, overall_score
    Returns a 0-100 percentage.
    """
    total = 0.0
    maximum = 0
    for item in items:
        key = item.correct_answers
        answer = answers.get(item.id)
        if answer is None or not key or not item.include_in_ranking:
            continue
        if key.get("overall_score") is not None:
            diff = abs(float(answer.overall_score or 0) - float(key["overall_score"]))
            total += max(0.0, OVERALL_POINTS - diff)
            maximum += OVERALL_POINTS
        if key.get("aroma"):
            total += text_match(answer.aroma, key["aroma"]) * AROMA_POINTS
            maximum += AROMA_POINTS
        if key.get("flavor"):
            total += text_match(answer.flavor, key["flavor"]) * FLAVOR_POINTS
            maximum += FLAVOR_POINTS
    return round(total / maximum * 100) if maximum else 0

# -----------------------------------------------------------------------------
# Persistence
# -----------------------------------------------------------------------------
def _competition_or_404(session: Session, tasting_id: str) -> QuickTasting:
    tasting = session.get(QuickTasting, tasting_id)
    if tasting is None or tasting.mode != "competition":
        raise NotFound("Competition not found")
    return tasting

def _rerank(session: Session, tasting_id: str) -> None:
    scored = session.exec(
        select(TastingParticipant)
        .where(TastingParticipant.tasting_id == tasting_id, TastingParticipant.score.is_not(None))
        .order_by(TastingParticipant.score.desc(), TastingParticipant.created_at)
    ).all()
    for rank, p in enumerate(scored, start=1):
        p.rank = rank
        session.add(p)

def submit_answers(
    session: Session,
    tasting_id: str,
    user_id: str,
    answers: List[CompetitionAnswerIn],
) -> Dict[str, Any]:
    tasting = _competition_or_404(session, tasting_id)
    participant = session.exec(
        select(TastingParticipant).where(
            TastingParticipant.tasting_id == tasting_id,
            TastingParticipant.user_id == user_id,
        )
    ).first()
    if participant is None:
        raise NotFound("Participant not found")
    if participant.score is not None:
        raise Conflict("Answers already submitted")

    items = session.exec(select(QuickTastingItem).where(QuickTastingItem.tasting_id == tasting_id)).all()
    by_id = {i.id: i for i in items}
    given = {a.item_id: a for a in answers if a.item_id in by_id}

    rows = [
        CompetitionAnswer(
            tasting_id=tasting_id,
            participant_id=participant.id,
            item_id=a.item_id,
            aroma=a.aroma,
            flavor=a.flavor,
            overall_score=a.overall_score,
            notes=a.notes,
        )
        for a in given.values()
    ]
    session.add_all(rows)

    participant.score = calculate_score(items, given)
    session.add(participant)
    session.flush()
    _rerank(session, tasting_id)
    session.commit()
    session.refresh(participant)
    log.info(f"[competition] {user_id} scored {participant.score} in {tasting_id}")

    # keyed per answer: one row per competitor, item and term
    for answer in rows:
        descriptors = extract_from_structured(
            aroma_notes=answer.aroma, flavor_notes=answer.flavor, other_notes=answer.notes
        )
        if descriptors:
            save_descriptors(
                session, user_id, "quick_tasting", answer.id, descriptors,
                item_name=by_id[answer.item_id].item_name, item_category=tasting.category,
                tasting_id=tasting_id,
            )

    return {"score": participant.score, "rank": participant.rank, "answered": len(given), "total_items": len(items)}

def get_leaderboard(session: Session, tasting_id: str) -> List[Dict[str, Any]]:
    _competition_or_404(session, tasting_id)
    rows = session.exec(
        select(TastingParticipant, Profile)
        .join(Profile, Profile.user_id == TastingParticipant.user_id, isouter=True)
        .where(TastingParticipant.tasting_id == tasting_id, TastingParticipant.score.is_not(None))
        .order_by(TastingParticipant.score.desc(), TastingParticipant.created_at)
    ).all()
    return [
        {
            "rank": index,
            "user_id": p.user_id,
            "score": p.score,
            "full_name": profile.full_name if profile else None,
            "username": profile.username if profile else None,
            "avatar_url": profile.avatar_url if profile else None,
        }
        for index, (p, profile) in enumerate(rows, start=1)
    ]
