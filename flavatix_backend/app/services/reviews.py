# flavatix_backend/app/services/reviews.py
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from flavatix_backend.app.db.models import Review, utcnow
from flavatix_backend.app.flavour.extractor import extract_from_structured, extract_with_intensity
from flavatix_backend.app.schemas import ProseReviewIn, StructuredReviewIn
from flavatix_backend.app.utils.strings import compact_upper, keep_id_chars
from .errors import NotFound
from .flavor_wheels import save_descriptors

log = logging.getLogger("flavatix.reviews")

# CATE + NAME + batch - M/D/YY, e.g. WINECABE322-6/7/25
_REVIEW_ID_RE = re.compile(r"([A-Z]{4})([A-Z]{4})(.+)-(\d{1,2}/\d{1,2}/\d{2})")

# -----------------------------------------------------------------------------
# Review ids
# -----------------------------------------------------------------------------
def generate_review_id(category: str, item_name: str, batch_id: str = "", when: Optional[datetime] = None) -> str:
    when = when or utcnow()
    stamp = f"{when.month}/{when.day}/{when.strftime('%y')}"
    return f"{(category or '')[:4].upper()}{compact_upper(item_name, 4)}{keep_id_chars(batch_id)}-{stamp}"

def parse_review_id(review_id: str) -> Optional[Dict[str, str]]:
    m = _REVIEW_ID_RE.fullmatch(review_id or "")
    if not m:
        return None
    return {
        "category_prefix": m.group(1),
        "name_prefix": m.group(2),
        "batch_id": m.group(3),
        "date": m.group(4),
    }

def is_valid_review_id(review_id: str) -> bool:
    return parse_review_id(review_id) is not None

# -----------------------------------------------------------------------------
# Create / read
# -----------------------------------------------------------------------------
def _store(session: Session, review: Review, descriptors, source_type: str) -> Dict[str, Any]:
    session.add(review)
    session.commit()
    session.refresh(review)
    out = review.model_dump()
    saved = 0
    if descriptors:
        saved = save_descriptors(
            session,
            user_id=review.user_id,
            source_type=source_type,
            source_id=review.id,
            descriptors=descriptors,
            item_name=review.item_name,
            item_category=review.category,
        )
    log.info(f"[reviews] {review.kind} review {review.review_id} saved with {saved} descriptors")
    return {"review": out, "descriptors_saved": saved}

def create_structured_review(session: Session, user_id: str, body: StructuredReviewIn) -> Dict[str, Any]:
    review = Review(
        user_id=user_id,
        review_id=generate_review_id(body.category, body.item_name, body.batch_id or "", body.reviewed_at),
        kind="structured",
        item_name=body.item_name,
        category=body.category,
        batch_id=body.batch_id,
        aroma_notes=body.aroma_notes,
        flavor_notes=body.flavor_notes,
        texture_notes=body.texture_notes,
        other_notes=body.other_notes,
        aroma_intensity=body.aroma_intensity,
        flavor_intensity=body.flavor_intensity,
        overall_score=body.overall_score,
    )
    descriptors = extract_from_structured(
        aroma_notes=body.aroma_notes,
        flavor_notes=body.flavor_notes,
        texture_notes=body.texture_notes,
        other_notes=body.other_notes,
        aroma_intensity=body.aroma_intensity,
        flavor_intensity=body.flavor_intensity,
    )
    return _store(session, review, descriptors, "quick_review")

def create_prose_review(session: Session, user_id: str, body: ProseReviewIn) -> Dict[str, Any]:
    review = Review(
        user_id=user_id,
        review_id=generate_review_id(body.category, body.item_name, body.batch_id or "", body.reviewed_at),
        kind="prose",
        item_name=body.item_name,
        category=body.category,
        batch_id=body.batch_id,
        overall_score=body.overall_score,
        review_content=body.review_content,
    )
    descriptors = extract_with_intensity(body.review_content, body.intensity)
    return _store(session, review, descriptors, "prose_review")

def list_reviews(session: Session, user_id: str, limit: int = 50, offset: int = 0) -> List[Review]:
    return list(session.exec(
        select(Review)
        .where(Review.user_id == user_id)
        .order_by(Review.created_at.desc())
        .offset(offset)
        .limit(limit)
    ).all())

def get_review(session: Session, review_pk: str) -> Review:
    review = session.get(Review, review_pk)
    if review is None:
        raise NotFound("Review not found")
    return review
