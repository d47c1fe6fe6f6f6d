# flavatix_backend/app/services/study_sessions.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from flavatix_backend.app.db.models import (
    StudyCategory,
    StudyItem,
    StudyParticipant,
    StudyResponse,
    StudySession,
    utcnow,
)
from flavatix_backend.app.schemas import CreateStudyIn, StudyAnswerIn, StudyItemIn
from flavatix_backend.app.utils.req_id import new_session_code
from .errors import Forbidden, InvalidInput, NotFound

log = logging.getLogger("flavatix.study")

NAME_MAX = 120
CATEGORIES_MAX = 20
SCALE_MIN, SCALE_MAX, SCALE_DEFAULT = 5, 100, 100
CODE_ATTEMPTS = 5

# -----------------------------------------------------------------------------
# Create / resolve / join
# -----------------------------------------------------------------------------
def _validate_create(body: CreateStudyIn) -> None:
    if not body.name or not body.base_category or not body.categories:
        raise InvalidInput("Missing required fields")
    if len(body.name) > NAME_MAX:
        raise InvalidInput(f"Name must be between 1 and {NAME_MAX} characters")
    if len(body.categories) > CATEGORIES_MAX:
        raise InvalidInput(f"Maximum {CATEGORIES_MAX} categories allowed")
    for c in body.categories:
        if not c.name:
            raise InvalidInput("Category name is required")
        if not (c.has_text or c.has_scale or c.has_boolean):
            raise InvalidInput("Each category must have at least one parameter type")
        if c.has_scale and not SCALE_MIN <= (c.scale_max or SCALE_DEFAULT) <= SCALE_MAX:
            raise InvalidInput(f"Scale max must be between {SCALE_MIN} and {SCALE_MAX}")

def _unused_code(session: Session) -> str:
    for _ in range(CODE_ATTEMPTS):
        code = new_session_code()
        taken = session.exec(select(StudySession.id).where(StudySession.session_code == code)).first()
        if taken is None:
            return code
    raise RuntimeError("could not allocate a unique session code")

def create_session(session: Session, host_id: str, body: CreateStudyIn) -> Dict[str, Any]:
    _validate_create(body)
    study = StudySession(
        name=body.name,
        base_category=body.base_category,
        host_id=host_id,
        session_code=_unused_code(session),
    )
    session.add(study)
    session.flush()

    for index, c in enumerate(body.categories):
        session.add(StudyCategory(
            session_id=study.id,
            name=c.name,
            has_text=c.has_text,
            has_scale=c.has_scale,
            has_boolean=c.has_boolean,
            scale_max=(c.scale_max or SCALE_DEFAULT) if c.has_scale else None,
            rank_in_summary=c.rank_in_summary,
            sort_order=index,
        ))
    session.add(StudyParticipant(session_id=study.id, user_id=host_id, display_name="Host", role="host"))
    session.commit()
    session.refresh(study)
    log.info(f"[study] created {study.id} code={study.session_code} with {len(body.categories)} categories")
    return {"session_id": study.id, "session_code": study.session_code, "session": study.model_dump()}

def _open_session(study: Optional[StudySession]) -> StudySession:
    if study is None:
        raise NotFound("Session not found")
    if study.status == "finished":
        raise InvalidInput("This session has ended")
    return study

def resolve_code(session: Session, code: str) -> Dict[str, Any]:
    if not code or not code.strip():
        raise InvalidInput("Session code is required")
    study = _open_session(session.exec(
        select(StudySession).where(StudySession.session_code == code.strip().upper())
    ).first())
    return {"session_id": study.id, "session_name": study.name, "requires_auth": False}

def find_participant(session: Session, session_id: str, user_id: str) -> Optional[StudyParticipant]:
    return session.exec(
        select(StudyParticipant).where(
            StudyParticipant.session_id == session_id,
            StudyParticipant.user_id == user_id,
        )
    ).first()

def join_session(
    session: Session,
    session_id: str,
    user_id: Optional[str] = None,
    display_name: Optional[str] = None,
) -> Dict[str, Any]:
    _open_session(session.get(StudySession, session_id))
    if user_id:
        existing = find_participant(session, session_id, user_id)
        if existing is not None:
            return {"participant_id": existing.id, "message": "Already joined"}

    participant = StudyParticipant(
        session_id=session_id,
        user_id=user_id,
        display_name=(display_name or "").strip() or "Anonymous",
    )
    session.add(participant)
    session.commit()
    session.refresh(participant)
    return {"participant_id": participant.id}

# -----------------------------------------------------------------------------
# Items / responses
# -----------------------------------------------------------------------------
def get_study_or_404(session: Session, session_id: str) -> StudySession:
    study = session.get(StudySession, session_id)
    if study is None:
        raise NotFound("Session not found")
    return study

def list_items(session: Session, session_id: str) -> List[StudyItem]:
    return list(session.exec(
        select(StudyItem).where(StudyItem.session_id == session_id).order_by(StudyItem.sort_order)
    ).all())

def add_items(session: Session, session_id: str, user_id: str, items: List[StudyItemIn]) -> List[StudyItem]:
    study = session.get(StudySession, session_id)
    if study is None or study.host_id != user_id:
        raise Forbidden("Only the host can add items")
    rows = [
        StudyItem(
            session_id=session_id,
            label=item.label,
            sort_order=item.sort_order if item.sort_order is not None else index,
            created_by=user_id,
        )
        for index, item in enumerate(items)
    ]
    for row in rows:
        session.add(row)
    session.commit()
    for row in rows:
        session.refresh(row)
    return rows

def save_responses(
    session: Session,
    session_id: str,
    user_id: str,
    item_id: str,
    responses: List[StudyAnswerIn],
) -> Dict[str, Any]:
    if not item_id or not responses:
        raise InvalidInput("Item ID and responses array are required")
    participant = find_participant(session, session_id, user_id)
    if participant is None:
        raise Forbidden("Not a participant in this session")
    item = session.get(StudyItem, item_id)
    if item is None or item.session_id != session_id:
        raise NotFound("Item not found")

    categories = {
        c.id: c for c in session.exec(select(StudyCategory).where(StudyCategory.session_id == session_id)).all()
    }
    for r in responses:
        category = categories.get(r.category_id)
        if category is None:
            raise InvalidInput(f"Unknown category for this session: {r.category_id}")
        if r.scale_value is not None:
            top = category.scale_max or SCALE_DEFAULT
            if not 0 <= r.scale_value <= top:
                raise InvalidInput(f"Scale value for {category.name} must be between 0 and {top}")

    for r in responses:
        row = session.exec(
            select(StudyResponse).where(
                StudyResponse.participant_id == participant.id,
                StudyResponse.item_id == item_id,
                StudyResponse.category_id == r.category_id,
            )
        ).first() or StudyResponse(
            session_id=session_id,
            participant_id=participant.id,
            item_id=item_id,
            category_id=r.category_id,
        )
        row.text_value = r.text_value or None
        row.scale_value = r.scale_value
        row.bool_value = r.bool_value
        session.add(row)
    session.flush()

    participant.progress = session.exec(
        select(func.count(func.distinct(StudyResponse.item_id))).where(
            StudyResponse.session_id == session_id,
            StudyResponse.participant_id == participant.id,
        )
    ).one()
    session.add(participant)
    session.commit()
    return {"saved": True, "progress": participant.progress}

# -----------------------------------------------------------------------------
# Lifecycle / summary
# -----------------------------------------------------------------------------
def _hosted(session: Session, session_id: str, user_id: str) -> StudySession:
    study = session.get(StudySession, session_id)
    if study is None or study.host_id != user_id:
        raise NotFound("Session not found or access denied")
    return study

def start_session(session: Session, session_id: str, user_id: str) -> Dict[str, Any]:
    study = _hosted(session, session_id, user_id)
    study.status = "active"
    study.started_at = utcnow()
    session.add(study)
    session.commit()
    log.info(f"[study] started {session_id}")
    return {"status": "active", "message": "Session started successfully"}

def finish_session(session: Session, session_id: str, user_id: str) -> Dict[str, Any]:
    study = _hosted(session, session_id, user_id)
    study.status = "finished"
    study.finished_at = utcnow()
    session.add(study)
    session.commit()
    log.info(f"[study] finished {session_id}")
    return {"status": "finished", "message": "Session finished successfully"}

def get_summary(session: Session, session_id: str, user_id: str, view: str = "all") -> Dict[str, Any]:
    participant = find_participant(session, session_id, user_id)
    if participant is None:
        raise Forbidden("Not authorized to view this session")

    categories = session.exec(
        select(StudyCategory)
        .where(
            StudyCategory.session_id == session_id,
            StudyCategory.rank_in_summary == True,  # noqa: E712
            StudyCategory.has_scale == True,  # noqa: E712
        )
        .order_by(StudyCategory.sort_order)
    ).all()
    items = list_items(session, session_id)

    ranking = []
    for item in items:
        for category in categories:
            avg, n = session.exec(
                select(func.avg(StudyResponse.scale_value), func.count(StudyResponse.scale_value)).where(
                    StudyResponse.session_id == session_id,
                    StudyResponse.item_id == item.id,
                    StudyResponse.category_id == category.id,
                    StudyResponse.scale_value.is_not(None),
                )
            ).one()
            if not n:
                continue
            ranking.append({
                "item_id": item.id,
                "item_label": item.label,
                "category_id": category.id,
                "category_name": category.name,
                "score": round(float(avg), 1),
                "response_count": n,
            })
    ranking.sort(key=lambda r: r["score"], reverse=True)

    insights: List[Dict[str, Any]] = []
    if view == "me" and participant.insights:
        insights = [participant.insights]

    return {
        "ranking": ranking,
        "ai_insights": insights,
        "items": [i.model_dump() for i in items],
        "categories": [c.model_dump() for c in categories],
    }
