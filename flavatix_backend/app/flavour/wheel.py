# flavatix_backend/app/flavour/wheel.py
from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import (
    FlavorWheelData,
    ScopeType,
    WheelCategory,
    WheelDescriptor,
    WheelSubcategory,
    WheelType,
)

UNCATEGORIZED = "Uncategorized"
GENERAL = "General"
DEFAULT_INTENSITY = 3.0

def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

def build_wheel(
    records: Iterable[Any],
    wheel_type: WheelType,
    scope_type: ScopeType,
    min_descriptor_count: int = 1,
    max_descriptors_per_subcategory: int = 10,
    generated_at: Optional[datetime] = None,
) -> FlavorWheelData:
    """
    Aggregate descriptor records (rows or dicts carrying descriptor_text,
    category, subcategory, intensity) into category -> subcategory -> term
    counts. Percentages are relative to the number of records.
    """
    rows = list(records)
    total = len(rows)

    # category -> subcategory -> term -> {"count", "intensities"}
    tree: Dict[str, Dict[str, Dict[str, Dict[str, Any]]]] = defaultdict(
        lambda: defaultdict(lambda: defaultdict(lambda: {"count": 0, "intensities": []}))
    )
    unique_terms: set[str] = set()

    for r in rows:
        text = str(_field(r, "descriptor_text") or "").strip().lower()
        if not text:
            continue
        category = _field(r, "category") or UNCATEGORIZED
        subcategory = _field(r, "subcategory") or GENERAL
        bucket = tree[category][subcategory][text]
        bucket["count"] += 1
        intensity = _field(r, "intensity")
        if intensity:
            bucket["intensities"].append(float(intensity))
        unique_terms.add(text)

    categories: List[WheelCategory] = []
    for cat_name, subs in tree.items():
        sub_out: List[WheelSubcategory] = []
        for sub_name, terms in subs.items():
            ranked = sorted(terms.items(), key=lambda kv: kv[1]["count"], reverse=True)
            ranked = ranked[:max_descriptors_per_subcategory]
            descriptors = [
                WheelDescriptor(
                    text=term,
                    count=info["count"],
                    avg_intensity=(
                        round(sum(info["intensities"]) / len(info["intensities"]), 1)
                        if info["intensities"] else DEFAULT_INTENSITY
                    ),
                    percentage=(info["count"] / total * 100) if total else 0.0,
                )
                for term, info in ranked
                if info["count"] >= min_descriptor_count
            ]
            if not descriptors:
                continue
            sub_count = sum(d.count for d in descriptors)
            sub_out.append(WheelSubcategory(
                name=sub_name,
                count=sub_count,
                percentage=sub_count / total * 100,
                descriptors=descriptors,
            ))
        if not sub_out:
            continue
        sub_out.sort(key=lambda s: s.count, reverse=True)
        cat_count = sum(s.count for s in sub_out)
        categories.append(WheelCategory(
            name=cat_name,
            count=cat_count,
            percentage=cat_count / total * 100,
            subcategories=sub_out,
        ))

    categories.sort(key=lambda c: c.count, reverse=True)

    return FlavorWheelData(
        categories=categories,
        total_descriptors=total,
        unique_descriptors=len(unique_terms),
        generated_from={"descriptor_records": total},
        generated_at=generated_at or _utcnow(),
        wheel_type=wheel_type,
        scope_type=scope_type,
    )
