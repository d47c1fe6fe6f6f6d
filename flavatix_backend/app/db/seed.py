# flavatix_backend/app/db/seed.py
import logging

from sqlmodel import Session, select

from flavatix_backend.app.flavour.extractor import extract_from_structured
from .session import new_session
from .models import AromaMolecule, FlavorDescriptor, Profile, QuickTasting, QuickTastingItem, utcnow

log = logging.getLogger("flavatix.seed")

DEMO_USER = "demo-user"
DEMO_TASTING = "demo-tasting"

def upsert(session: Session, model, where: dict, values: dict):
    row = session.exec(select(model).filter_by(**where)).first()
    if row:
        for k, v in values.items():
            setattr(row, k, v)
        session.add(row)
        return row
    row = model(**where, **values)
    session.add(row)
    return row

def seed_defaults():
    with new_session() as session:
        # Demo taster
        upsert(session, Profile,
               {"user_id": DEMO_USER},
               {"username": "demo", "full_name": "Demo Taster", "preferred_category": "coffee"})

        # Demo tasting with two scored coffees
        upsert(session, QuickTasting,
               {"id": DEMO_TASTING},
               {"user_id": DEMO_USER, "category": "coffee", "session_name": "Demo Cupping",
                "mode": "quick", "total_items": 2, "completed_items": 2, "average_score": 86.0,
                "completed_at": utcnow()})
        items = [
            upsert(session, QuickTastingItem,
                   {"id": "demo-item-1"},
                   {"tasting_id": DEMO_TASTING, "item_name": "Ethiopia Guji", "overall_score": 88,
                    "aroma": "strong jasmine and lemon", "flavor": "peach, bergamot, honey",
                    "notes": "silky body, bright like a summer morning"}),
            upsert(session, QuickTastingItem,
                   {"id": "demo-item-2"},
                   {"tasting_id": DEMO_TASTING, "item_name": "Colombia Huila", "overall_score": 84,
                    "aroma": "caramel and subtle cocoa", "flavor": "red apple, brown sugar",
                    "notes": "round body"}),
        ]

        # Descriptors extracted from the demo notes
        for item in items:
            for d in extract_from_structured(aroma_notes=item.aroma, flavor_notes=item.flavor, other_notes=item.notes):
                upsert(session, FlavorDescriptor,
                       {"source_type": "quick_tasting", "source_id": item.id,
                        "descriptor_text": d.text, "descriptor_type": d.type},
                       {"user_id": DEMO_USER, "tasting_id": DEMO_TASTING, "category": d.category, "subcategory": d.subcategory,
                        "confidence_score": d.confidence, "intensity": d.intensity,
                        "item_name": item.item_name, "item_category": "coffee"})

        # Reference aroma chemistry
        upsert(session, AromaMolecule,
               {"descriptor": "jasmine"},
               {"molecules": [{"name": "Linalool", "formula": "C10H18O"},
                              {"name": "Benzyl acetate", "formula": "C9H10O2"}]})
        upsert(session, AromaMolecule,
               {"descriptor": "lemon"},
               {"molecules": [{"name": "Limonene", "formula": "C10H16"},
                              {"name": "Citral", "formula": "C10H16O"}]})
        upsert(session, AromaMolecule,
               {"descriptor": "caramel"},
               {"molecules": [{"name": "Furaneol", "formula": "C6H8O3"},
                              {"name": "Maltol", "formula": "C6H6O3"}]})
        upsert(session, AromaMolecule,
               {"descriptor": "vanilla"},
               {"molecules": [{"name": "Vanillin", "formula": "C8H8O3"}]})
        upsert(session, AromaMolecule,
               {"descriptor": "smoky"},
               {"molecules": [{"name": "Guaiacol", "formula": "C7H8O2"}]})

        session.commit()
        log.info("[seed] demo data in place")
        return "seeded"
