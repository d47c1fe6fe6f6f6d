# flavatix_backend/app/services/social.py
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from flavatix_backend.app.db.models import (
    CommentLike,
    Profile,
    QuickTasting,
    TastingComment,
    TastingLike,
    TastingShare,
    UserFollow,
    utcnow,
)
from .errors import Conflict, Forbidden, InvalidInput, NotFound

log = logging.getLogger("flavatix.social")

COMMENT_MAX = 1000

def _tasting_or_404(session: Session, tasting_id: str) -> QuickTasting:
    tasting = session.get(QuickTasting, tasting_id)
    if tasting is None:
        raise NotFound("Tasting session not found")
    return tasting

def _profile_brief(profile: Optional[Profile]) -> Optional[Dict[str, Any]]:
    if profile is None:
        return None
    return {"full_name": profile.full_name, "username": profile.username, "avatar_url": profile.avatar_url}

def _count_by(session: Session, column, ids: List[str], *where) -> Dict[str, int]:
    if not ids:
        return {}
    rows = session.exec(select(column, func.count()).where(column.in_(ids), *where).group_by(column)).all()
    return {key: n for key, n in rows}

# -----------------------------------------------------------------------------
# Likes
# -----------------------------------------------------------------------------
def like_tasting(session: Session, tasting_id: str, user_id: str) -> TastingLike:
    _tasting_or_404(session, tasting_id)
    existing = session.exec(
        select(TastingLike).where(TastingLike.tasting_id == tasting_id, TastingLike.user_id == user_id)
    ).first()
    if existing is not None:
        raise Conflict("Already liked")
    like = TastingLike(tasting_id=tasting_id, user_id=user_id)
    session.add(like)
    session.commit()
    session.refresh(like)
    return like

def unlike_tasting(session: Session, tasting_id: str, user_id: str) -> None:
    like = session.exec(
        select(TastingLike).where(TastingLike.tasting_id == tasting_id, TastingLike.user_id == user_id)
    ).first()
    if like is None:
        raise NotFound("Like not found")
    session.delete(like)
    session.commit()

# -----------------------------------------------------------------------------
# Comments
# -----------------------------------------------------------------------------
def add_comment(
    session: Session,
    tasting_id: str,
    user_id: str,
    text: str,
    parent_comment_id: Optional[str] = None,
) -> TastingComment:
    _tasting_or_404(session, tasting_id)
    body = (text or "").strip()
    if not body:
        raise InvalidInput("Comment cannot be empty")
    if len(body) > COMMENT_MAX:
        raise InvalidInput(f"Comment must be {COMMENT_MAX} characters or less")
    if parent_comment_id:
        parent = session.get(TastingComment, parent_comment_id)
        if parent is None or parent.tasting_id != tasting_id or parent.is_deleted:
            raise InvalidInput("Parent comment does not belong to this tasting")

    comment = TastingComment(
        tasting_id=tasting_id,
        user_id=user_id,
        comment_text=body,
        parent_comment_id=parent_comment_id,
    )
    session.add(comment)
    session.commit()
    session.refresh(comment)
    return comment

def list_comments(session: Session, tasting_id: str, viewer: Optional[str] = None) -> List[Dict[str, Any]]:
    """Top-level comments (oldest first) with nested replies."""
    _tasting_or_404(session, tasting_id)
    rows = session.exec(
        select(TastingComment, Profile)
        .join(Profile, Profile.user_id == TastingComment.user_id, isouter=True)
        .where(TastingComment.tasting_id == tasting_id, TastingComment.is_deleted == False)  # noqa: E712
        .order_by(TastingComment.created_at)
    ).all()
    ids = [c.id for c, _ in rows]
    likes = _count_by(session, CommentLike.comment_id, ids)
    mine = set()
    if viewer and ids:
        mine = set(session.exec(
            select(CommentLike.comment_id).where(CommentLike.user_id == viewer, CommentLike.comment_id.in_(ids))
        ).all())

    nodes: Dict[str, Dict[str, Any]] = {}
    for comment, profile in rows:
        node = comment.model_dump()
        node["user"] = _profile_brief(profile)
        node["likes_count"] = likes.get(comment.id, 0)
        node["is_liked"] = comment.id in mine
        node["replies"] = []
        nodes[comment.id] = node

    replies = defaultdict(list)
    top: List[Dict[str, Any]] = []
    for node in nodes.values():
        parent = node["parent_comment_id"]
        if parent and parent in nodes:
            replies[parent].append(node)
        elif not parent:
            top.append(node)
    for cid, children in replies.items():
        nodes[cid]["replies"] = children
    return top

def delete_comment(session: Session, comment_id: str, user_id: str) -> None:
    comment = session.get(TastingComment, comment_id)
    if comment is None or comment.is_deleted:
        raise NotFound("Comment not found")
    if comment.user_id != user_id:
        raise Forbidden("You can only delete your own comments")
    comment.is_deleted = True
    comment.updated_at = utcnow()
    session.add(comment)
    session.commit()

def like_comment(session: Session, comment_id: str, user_id: str) -> CommentLike:
    comment = session.get(TastingComment, comment_id)
    if comment is None or comment.is_deleted:
        raise NotFound("Comment not found")
    existing = session.exec(
        select(CommentLike).where(CommentLike.comment_id == comment_id, CommentLike.user_id == user_id)
    ).first()
    if existing is not None:
        raise Conflict("Already liked")
    like = CommentLike(comment_id=comment_id, user_id=user_id)
    session.add(like)
    session.commit()
    session.refresh(like)
    return like

def unlike_comment(session: Session, comment_id: str, user_id: str) -> None:
    like = session.exec(
        select(CommentLike).where(CommentLike.comment_id == comment_id, CommentLike.user_id == user_id)
    ).first()
    if like is None:
        raise NotFound("Like not found")
    session.delete(like)
    session.commit()

# -----------------------------------------------------------------------------
# Shares
# -----------------------------------------------------------------------------
def share_tasting(session: Session, tasting_id: str, user_id: str, platform: Optional[str] = None) -> TastingShare:
    _tasting_or_404(session, tasting_id)
    share = TastingShare(tasting_id=tasting_id, user_id=user_id, platform=platform)
    session.add(share)
    session.commit()
    session.refresh(share)
    return share

# -----------------------------------------------------------------------------
# Follows
# -----------------------------------------------------------------------------
def _bump(session: Session, user_id: str, field: str, delta: int) -> None:
    profile = session.get(Profile, user_id)
    if profile is None:
        profile = Profile(user_id=user_id)
    setattr(profile, field, max(0, getattr(profile, field) + delta))
    session.add(profile)

def follow(session: Session, follower_id: str, following_id: str) -> UserFollow:
    if follower_id == following_id:
        raise InvalidInput("You cannot follow yourself")
    existing = session.exec(
        select(UserFollow).where(UserFollow.follower_id == follower_id, UserFollow.following_id == following_id)
    ).first()
    if existing is not None:
        raise Conflict("Already following")
    edge = UserFollow(follower_id=follower_id, following_id=following_id)
    session.add(edge)
    _bump(session, follower_id, "following_count", 1)
    _bump(session, following_id, "followers_count", 1)
    session.commit()
    session.refresh(edge)
    log.info(f"[social] {follower_id} follows {following_id}")
    return edge

def unfollow(session: Session, follower_id: str, following_id: str) -> None:
    edge = session.exec(
        select(UserFollow).where(UserFollow.follower_id == follower_id, UserFollow.following_id == following_id)
    ).first()
    if edge is None:
        raise NotFound("Not following")
    session.delete(edge)
    _bump(session, follower_id, "following_count", -1)
    _bump(session, following_id, "followers_count", -1)
    session.commit()

def following_ids(session: Session, user_id: str) -> List[str]:
    return list(session.exec(select(UserFollow.following_id).where(UserFollow.follower_id == user_id)).all())

# -----------------------------------------------------------------------------
# Feed
# -----------------------------------------------------------------------------
def get_feed(session: Session, viewer: str, scope: str = "following", limit: int = 20, offset: int = 0) -> List[Dict[str, Any]]:
    followed = following_ids(session, viewer)
    q = (
        select(QuickTasting, Profile)
        .join(Profile, Profile.user_id == QuickTasting.user_id, isouter=True)
        .where(QuickTasting.completed_at.is_not(None))
    )
    if scope != "all":
        if not followed:
            return []
        q = q.where(QuickTasting.user_id.in_(followed))
    q = q.order_by(QuickTasting.completed_at.desc()).offset(offset).limit(limit)
    rows = session.exec(q).all()

    ids = [t.id for t, _ in rows]
    likes = _count_by(session, TastingLike.tasting_id, ids)
    comments = _count_by(
        session, TastingComment.tasting_id, ids, TastingComment.is_deleted == False  # noqa: E712
    )
    shares = _count_by(session, TastingShare.tasting_id, ids)
    liked = set()
    if ids:
        liked = set(session.exec(
            select(TastingLike.tasting_id).where(TastingLike.user_id == viewer, TastingLike.tasting_id.in_(ids))
        ).all())
    followed_set = set(followed)

    feed = []
    for tasting, profile in rows:
        entry = tasting.model_dump()
        entry["user"] = _profile_brief(profile)
        entry["likes_count"] = likes.get(tasting.id, 0)
        entry["comments_count"] = comments.get(tasting.id, 0)
        entry["shares_count"] = shares.get(tasting.id, 0)
        entry["is_liked"] = tasting.id in liked
        entry["is_following"] = tasting.user_id in followed_set
        feed.append(entry)
    return feed
