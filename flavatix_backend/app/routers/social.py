# flavatix_backend/app/routers/social.py
from __future__ import annotations
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from flavatix_backend.app.db.session import get_session
from flavatix_backend.app.schemas import CommentIn, ShareIn
from flavatix_backend.app.services import social as svc
from flavatix_backend.app.services.auth import current_user, optional_user

router = APIRouter(prefix="/social", tags=["social"])

# ---------- likes ----------
@router.post("/tastings/{tasting_id}/like", status_code=status.HTTP_201_CREATED)
def like(tasting_id: str, user: str = Depends(current_user), session: Session = Depends(get_session)):
    return {"like": svc.like_tasting(session, tasting_id, user).model_dump()}

@router.delete("/tastings/{tasting_id}/like")
def unlike(tasting_id: str, user: str = Depends(current_user), session: Session = Depends(get_session)):
    svc.unlike_tasting(session, tasting_id, user)
    return {"ok": True}

# ---------- comments ----------
@router.get("/tastings/{tasting_id}/comments")
def list_comments(
    tasting_id: str,
    user: Optional[str] = Depends(optional_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return {"comments": svc.list_comments(session, tasting_id, user)}

@router.post("/tastings/{tasting_id}/comments", status_code=status.HTTP_201_CREATED)
def add_comment(
    tasting_id: str,
    body: CommentIn,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    comment = svc.add_comment(session, tasting_id, user, body.comment_text, body.parent_comment_id)
    return {"comment": comment.model_dump()}

@router.delete("/comments/{comment_id}")
def delete_comment(comment_id: str, user: str = Depends(current_user), session: Session = Depends(get_session)):
    svc.delete_comment(session, comment_id, user)
    return {"ok": True}

@router.post("/comments/{comment_id}/like", status_code=status.HTTP_201_CREATED)
def like_comment(comment_id: str, user: str = Depends(current_user), session: Session = Depends(get_session)):
    return {"like": svc.like_comment(session, comment_id, user).model_dump()}

@router.delete("/comments/{comment_id}/like")
def unlike_comment(comment_id: str, user: str = Depends(current_user), session: Session = Depends(get_session)):
    svc.unlike_comment(session, comment_id, user)
    return {"ok": True}

# ---------- shares ----------
@router.post("/tastings/{tasting_id}/share", status_code=status.HTTP_201_CREATED)
def share(
    tasting_id: str,
    body: Optional[ShareIn] = None,
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return {"share": svc.share_tasting(session, tasting_id, user, body.platform if body else None).model_dump()}

# ---------- follows & feed ----------
@router.post("/follow/{user_id}", status_code=status.HTTP_201_CREATED)
def follow(user_id: str, user: str = Depends(current_user), session: Session = Depends(get_session)):
    return {"follow": svc.follow(session, user, user_id).model_dump()}

@router.delete("/follow/{user_id}")
def unfollow(user_id: str, user: str = Depends(current_user), session: Session = Depends(get_session)):
    svc.unfollow(session, user, user_id)
    return {"ok": True}

@router.get("/feed")
def feed(
    scope: str = Query("following", pattern="^(following|all)$"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: str = Depends(current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return {"data": svc.get_feed(session, user, scope, limit, offset)}
