# flavatix_backend/app/routers/reviews.py
from __future__ import annotations
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from flavatix_backend.app.db.session import get_session
from flavatix_backend.app.schemas import ProseReviewIn, StructuredReviewIn
from flavatix_backend.app.services import reviews as svc
from flavatix_backend.app.services.auth import current_user

router = APIRouter(prefix="/reviews", tags=["reviews"])

@router.post("/structured", status_code=status.HTTP_201_CREATED)
def create_structured(
    body: StructuredReviewIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return svc.create_structured_review(session, user, body)

@router.post("/prose", status_code=status.HTTP_201_CREATED)
def create_prose(
    body: ProseReviewIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return svc.create_prose_review(session, user, body)

@router.get("")
def my_reviews(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return {"data": [r.model_dump() for r in svc.list_reviews(session, user, limit, offset)]}

# review ids carry slashes (M/D/YY), so they travel as a query param
@router.get("/parse-id")
def parse_id(review_id: str) -> Dict[str, Any]:
    parts = svc.parse_review_id(review_id)
    return {"valid": parts is not None, "parts": parts}

@router.get("/{review_pk}")
def get_review(review_pk: str, session: Session = Depends(get_session)) -> Dict[str, Any]:
    return {"review": svc.get_review(session, review_pk).model_dump()}
