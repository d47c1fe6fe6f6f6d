# flavatix_backend/app/routers/flavor_wheels.py
from __future__ import annotations
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from flavatix_backend.app.db.session import get_session
from flavatix_backend.app.flavour.extractor import (
    extract_from_structured,
    extract_with_intensity,
    get_available_categories,
    get_subcategories,
)
from flavatix_backend.app.schemas import ExtractDescriptorsIn, GenerateWheelIn
from flavatix_backend.app.services import flavor_wheels as svc
from flavatix_backend.app.services.auth import current_user
from flavatix_backend.app.services.errors import InvalidInput

router = APIRouter(prefix="/flavor-wheels", tags=["flavor-wheels"])
log = logging.getLogger("flavatix.wheels")

EMPTY_WHEEL_MESSAGE = (
    "No flavor descriptors found for the specified scope. "
    "Try adding some tasting notes or reviews first."
)

@router.post("/extract-descriptors")
def extract_descriptors(
    body: ExtractDescriptorsIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    notes = body.structured_data
    if notes is not None:
        descriptors = extract_from_structured(
            aroma_notes=notes.aroma_notes,
            flavor_notes=notes.flavor_notes,
            texture_notes=notes.texture_notes,
            other_notes=notes.other_notes,
            aroma_intensity=notes.aroma_intensity,
            flavor_intensity=notes.flavor_intensity,
        )
    elif body.text and body.text.strip():
        descriptors = extract_with_intensity(body.text)
    else:
        raise InvalidInput("Either text or structured_data is required")

    context = body.item_context
    saved = 0
    if descriptors:
        saved = svc.save_descriptors(
            session,
            user_id=user,
            source_type=body.source_type.value,
            source_id=body.source_id,
            descriptors=descriptors,
            item_name=context.item_name if context else None,
            item_category=context.item_category if context else None,
            tasting_id=svc.resolve_tasting_id(session, body.source_type.value, body.source_id),
        )
    return {
        "success": True,
        "descriptors": [d.model_dump() for d in descriptors],
        "saved_count": saved,
    }

@router.post("/generate")
def generate(
    body: GenerateWheelIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    wheel_type = body.wheel_type.value
    scope_type = body.scope_type.value
    scope_filter = svc.clean_scope_filter(body.scope_filter.model_dump() if body.scope_filter else None)

    if scope_type == "personal":
        scope_filter = {"user_id": user}
    else:
        key = svc.required_filter_key(scope_type)
        if key and not scope_filter.get(key):
            raise InvalidInput(f"scope_filter.{key} is required for {scope_type} scope")

    owner = user if scope_type == "personal" else None
    if body.force_regenerate:
        dropped = svc.delete_wheels(session, wheel_type, scope_type, owner)
        log.info(f"[wheels] force regenerate dropped {dropped} cached wheel(s)")

    wheel, wheel_id, cached = svc.get_or_generate_flavor_wheel(
        session,
        wheel_type,
        scope_type,
        scope_filter,
        user_id=owner,
        min_descriptor_count=body.min_descriptor_count,
        max_descriptors_per_subcategory=body.max_descriptors_per_subcategory,
    )
    out: Dict[str, Any] = {
        "success": True,
        "wheel_data": wheel.model_dump(mode="json"),
        "wheel_id": wheel_id,
        "cached": cached,
    }
    if not wheel.categories:
        out["cached"] = False
        out["error"] = EMPTY_WHEEL_MESSAGE
    return out

@router.get("/stats")
def wheel_stats(user: str = Depends(current_user), session: Session = Depends(get_session)) -> Dict[str, Any]:
    return svc.get_user_wheel_stats(session, user)

@router.get("/{wheel_id}/stale")
def wheel_stale(wheel_id: str, session: Session = Depends(get_session)) -> Dict[str, Any]:
    return {"wheel_id": wheel_id, "should_regenerate": svc.should_regenerate_wheel(session, wheel_id)}

@router.post("/cleanup")
def cleanup(user: str = Depends(current_user), session: Session = Depends(get_session)) -> Dict[str, Any]:
    return {"deleted": svc.cleanup_expired_wheels(session)}

# ---- lexicon browsing ----
@router.get("/categories/{descriptor_type}")
def categories(descriptor_type: str) -> Dict[str, List[str]]:
    return {"categories": get_available_categories(descriptor_type)}

@router.get("/categories/{descriptor_type}/{category}")
def subcategories(descriptor_type: str, category: str) -> Dict[str, List[str]]:
    return {"subcategories": get_subcategories(descriptor_type, category)}

@router.get("/molecules/{descriptor}")
def aroma_molecules(descriptor: str, session: Session = Depends(get_session)) -> Dict[str, Any]:
    row = svc.get_aroma_molecules(session, descriptor)
    return {"descriptor": row.descriptor, "molecules": row.molecules or []}
