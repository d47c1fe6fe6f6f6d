# flavatix_backend/app/services/flavor_wheels.py
from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlmodel import Session, select

from flavatix_backend.app.config import WHEEL_CACHE_DAYS
from flavatix_backend.app.db.models import (
    AromaMolecule,
    CompetitionAnswer,
    FlavorDescriptor,
    FlavorWheel,
    QuickTasting,
    QuickTastingItem,
    utcnow,
)
from flavatix_backend.app.flavour.models import ExtractedDescriptor, FlavorWheelData
from flavatix_backend.app.flavour.wheel import build_wheel
from .errors import NotFound

log = logging.getLogger("flavatix.wheels")

COMBINED_TYPES = ("aroma", "flavor")

# scope_type -> (scope_filter key, FlavorDescriptor column)
_SCOPE_COLUMNS = {
    "personal": ("user_id", FlavorDescriptor.user_id),
    "item": ("item_name", FlavorDescriptor.item_name),
    "category": ("item_category", FlavorDescriptor.item_category),
    "tasting": ("tasting_id", FlavorDescriptor.tasting_id),
}

# -----------------------------------------------------------------------------
# Scope filter helpers
# -----------------------------------------------------------------------------
def clean_scope_filter(scope_filter: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {k: v for k, v in (scope_filter or {}).items() if v not in (None, "")}

def canonical_filter(scope_filter: Optional[Dict[str, Any]]) -> str:
    return json.dumps(clean_scope_filter(scope_filter), sort_keys=True)

def required_filter_key(scope_type: str) -> Optional[str]:
    entry = _SCOPE_COLUMNS.get(scope_type)
    return entry[0] if entry else None

# -----------------------------------------------------------------------------
# Descriptor store
# -----------------------------------------------------------------------------
def save_descriptors(
    session: Session,
    user_id: str,
    source_type: str,
    source_id: str,
    descriptors: Iterable[ExtractedDescriptor],
    item_name: Optional[str] = None,
    item_category: Optional[str] = None,
    tasting_id: Optional[str] = None,
) -> int:
    """
    Upsert on (source_type, source_id, descriptor_text, descriptor_type).
    The latest write owns the row. Returns the number of rows written.
    """
    saved = 0
    for d in descriptors:
        row = session.exec(
            select(FlavorDescriptor).where(
                FlavorDescriptor.source_type == source_type,
                FlavorDescriptor.source_id == source_id,
                FlavorDescriptor.descriptor_text == d.text,
                FlavorDescriptor.descriptor_type == d.type,
            )
        ).first()
        if row is None:
            row = FlavorDescriptor(
                user_id=user_id,
                source_type=source_type,
                source_id=source_id,
                descriptor_text=d.text,
                descriptor_type=d.type,
            )
        row.user_id = user_id
        row.tasting_id = tasting_id
        row.category = d.category
        row.subcategory = d.subcategory
        row.confidence_score = d.confidence
        row.intensity = d.intensity
        row.item_name = item_name
        row.item_category = item_category
        row.updated_at = utcnow()
        session.add(row)
        saved += 1
    session.commit()
    log.info(f"[descriptors] saved {saved} for {source_type}:{source_id}")
    return saved

def resolve_tasting_id(session: Session, source_type: str, source_id: str) -> Optional[str]:
    """Tasting that a quick_tasting source (item, answer or the tasting itself) belongs to."""
    if source_type != "quick_tasting":
        return None
    for model in (QuickTastingItem, CompetitionAnswer):
        row = session.get(model, source_id)
        if row is not None:
            return row.tasting_id
    if session.get(QuickTasting, source_id) is not None:
        return source_id
    return None

def _scoped_query(wheel_type: str, scope_type: str, scope_filter: Dict[str, Any]):
    q = select(FlavorDescriptor)
    entry = _SCOPE_COLUMNS.get(scope_type)
    if entry:
        key, column = entry
        value = scope_filter.get(key)
        if value:
            q = q.where(column == value)
            if scope_type == "tasting":
                q = q.where(FlavorDescriptor.source_type == "quick_tasting")
    if wheel_type == "combined":
        q = q.where(FlavorDescriptor.descriptor_type.in_(COMBINED_TYPES))
    else:
        q = q.where(FlavorDescriptor.descriptor_type == wheel_type)
    return q

def query_descriptors(
    session: Session,
    wheel_type: str,
    scope_type: str,
    scope_filter: Optional[Dict[str, Any]] = None,
) -> List[FlavorDescriptor]:
    return list(session.exec(_scoped_query(wheel_type, scope_type, clean_scope_filter(scope_filter))).all())

# -----------------------------------------------------------------------------
# Wheels
# -----------------------------------------------------------------------------
def generate_flavor_wheel(
    session: Session,
    wheel_type: str,
    scope_type: str,
    scope_filter: Optional[Dict[str, Any]] = None,
    min_descriptor_count: int = 1,
    max_descriptors_per_subcategory: int = 10,
) -> FlavorWheelData:
    records = query_descriptors(session, wheel_type, scope_type, scope_filter)
    return build_wheel(
        records,
        wheel_type=wheel_type,
        scope_type=scope_type,
        min_descriptor_count=min_descriptor_count,
        max_descriptors_per_subcategory=max_descriptors_per_subcategory,
    )

def save_flavor_wheel(
    session: Session,
    wheel: FlavorWheelData,
    user_id: Optional[str] = None,
    scope_filter: Optional[Dict[str, Any]] = None,
    expires_in_days: int = WHEEL_CACHE_DAYS,
) -> str:
    row = FlavorWheel(
        user_id=user_id,
        wheel_type=wheel.wheel_type,
        scope_type=wheel.scope_type,
        scope_filter=clean_scope_filter(scope_filter),
        wheel_data=wheel.model_dump(mode="json"),
        total_descriptors=wheel.total_descriptors,
        unique_descriptors=wheel.unique_descriptors,
        data_sources=dict(wheel.generated_from),
        created_at=wheel.generated_at,
        expires_at=wheel.generated_at + timedelta(days=expires_in_days),
    )
    session.add(row)
    session.commit()
    session.refresh(row)
    return row.id

def get_or_generate_flavor_wheel(
    session: Session,
    wheel_type: str,
    scope_type: str,
    scope_filter: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    min_descriptor_count: int = 1,
    max_descriptors_per_subcategory: int = 10,
) -> Tuple[FlavorWheelData, str, bool]:
    """Returns (wheel, wheel_id, cached)."""
    wanted = canonical_filter(scope_filter)
    q = (
        select(FlavorWheel)
        .where(
            FlavorWheel.wheel_type == wheel_type,
            FlavorWheel.scope_type == scope_type,
            FlavorWheel.expires_at > utcnow(),
        )
        .order_by(FlavorWheel.created_at.desc())
    )
    if scope_type == "personal" and user_id:
        q = q.where(FlavorWheel.user_id == user_id)

    for row in session.exec(q).all():
        if canonical_filter(row.scope_filter) == wanted:
            log.info(f"[wheels] cache hit {row.id} ({wheel_type}/{scope_type})")
            return FlavorWheelData.model_validate(row.wheel_data), row.id, True

    wheel = generate_flavor_wheel(
        session, wheel_type, scope_type, scope_filter,
        min_descriptor_count=min_descriptor_count,
        max_descriptors_per_subcategory=max_descriptors_per_subcategory,
    )
    wheel_id = save_flavor_wheel(session, wheel, user_id=user_id, scope_filter=scope_filter)
    log.info(f"[wheels] generated {wheel_id} ({wheel_type}/{scope_type}, {wheel.total_descriptors} records)")
    return wheel, wheel_id, False

def delete_wheels(session: Session, wheel_type: str, scope_type: str, user_id: Optional[str] = None) -> int:
    q = select(FlavorWheel).where(FlavorWheel.wheel_type == wheel_type, FlavorWheel.scope_type == scope_type)
    if user_id:
        q = q.where(FlavorWheel.user_id == user_id)
    rows = session.exec(q).all()
    for row in rows:
        session.delete(row)
    session.commit()
    return len(rows)

def should_regenerate_wheel(session: Session, wheel_id: str) -> bool:
    wheel = session.get(FlavorWheel, wheel_id)
    if wheel is None:
        return True
    if wheel.expires_at is None or wheel.expires_at < utcnow():
        return True
    scope_filter = clean_scope_filter(wheel.scope_filter)
    if wheel.scope_type == "personal" and wheel.user_id:
        scope_filter.setdefault("user_id", wheel.user_id)
    newer = _scoped_query(wheel.wheel_type, wheel.scope_type, scope_filter).where(
        FlavorDescriptor.created_at > wheel.created_at
    )
    return session.exec(newer).first() is not None

def cleanup_expired_wheels(session: Session) -> int:
    expired = session.exec(select(FlavorWheel).where(FlavorWheel.expires_at < utcnow())).all()
    for row in expired:
        session.delete(row)
    session.commit()
    if expired:
        log.info(f"[wheels] cleaned up {len(expired)} expired wheel(s)")
    return len(expired)

def get_user_wheel_stats(session: Session, user_id: str) -> Dict[str, Any]:
    rows = session.exec(
        select(FlavorWheel.wheel_type, func.count(), func.max(FlavorWheel.total_descriptors),
               func.max(FlavorWheel.unique_descriptors))
        .where(FlavorWheel.user_id == user_id)
        .group_by(FlavorWheel.wheel_type)
    ).all()
    by_type = {wheel_type: count for wheel_type, count, _, _ in rows}
    return {
        "total_wheels": sum(by_type.values()),
        "wheels_by_type": by_type,
        "total_descriptors": max((t or 0 for _, _, t, _ in rows), default=0),
        "unique_descriptors": max((u or 0 for _, _, _, u in rows), default=0),
    }

def get_aroma_molecules(session: Session, descriptor: str) -> AromaMolecule:
    row = session.exec(
        select(AromaMolecule).where(func.lower(AromaMolecule.descriptor) == (descriptor or "").strip().lower())
    ).first()
    if row is None:
        raise NotFound("No molecules recorded for this descriptor")
    return row
