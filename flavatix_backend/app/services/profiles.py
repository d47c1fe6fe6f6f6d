# flavatix_backend/app/services/profiles.py
from __future__ import annotations

from sqlmodel import Session, select

from flavatix_backend.app.db.models import Profile, utcnow
from flavatix_backend.app.schemas import ProfileIn
from flavatix_backend.app.utils.strings import null_to_none_or_strip
from .errors import Conflict, NotFound


def get_profile(session: Session, user_id: str) -> Profile:
    profile = session.get(Profile, user_id)
    if profile is None:
        raise NotFound("Profile not found")
    return profile

def upsert_profile(session: Session, user_id: str, body: ProfileIn) -> Profile:
    changes = body.model_dump(exclude_unset=True)
    if "username" in changes:
        changes["username"] = null_to_none_or_strip(changes["username"])
        username = changes["username"]
        if username:
            taken = session.exec(
                select(Profile).where(Profile.username == username, Profile.user_id != user_id)
            ).first()
            if taken is not None:
                raise Conflict("Username is already taken")

    profile = session.get(Profile, user_id) or Profile(user_id=user_id)
    for key, value in changes.items():
        setattr(profile, key, value)
    profile.updated_at = utcnow()
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile
