# models.py  (tastings, study sessions, descriptors/wheels, social graph, reviews)

from __future__ import annotations
import uuid
from typing import Optional
from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator
from sqlmodel import SQLModel, Field, Column, JSON, UniqueConstraint
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class UTCDateTime(TypeDecorator):
    """Aware UTC datetimes in and out. Naive values are taken as UTC; sqlite keeps the UTC wall time."""
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

def stamp():
    return Field(default_factory=utcnow, sa_type=UTCDateTime)

def optional_stamp():
    return Field(default=None, sa_type=UTCDateTime)

def new_id() -> str:
    return str(uuid.uuid4())


# ---------- Profiles ----------

class Profile(SQLModel, table=True):
    user_id: str = Field(primary_key=True)
    username: Optional[str] = Field(default=None, unique=True, index=True)
    full_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    preferred_category: Optional[str] = None
    followers_count: int = 0
    following_count: int = 0
    created_at: datetime = stamp()
    updated_at: datetime = stamp()


# ---------- Tastings ----------

class QuickTasting(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True)
    category: str
    session_name: str
    mode: str = "quick"                            # quick | study | competition
    study_approach: Optional[str] = None           # predefined | collaborative
    rank_participants: bool = False
    ranking_type: Optional[str] = None
    is_blind_participants: bool = False
    is_blind_items: bool = False
    is_blind_attributes: bool = False
    notes: Optional[str] = None
    total_items: int = 0
    completed_items: int = 0
    average_score: Optional[float] = None
    created_at: datetime = stamp()
    updated_at: datetime = stamp()
    completed_at: Optional[datetime] = optional_stamp()

class QuickTastingItem(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    tasting_id: str = Field(foreign_key="quicktasting.id", index=True)
    item_name: str
    notes: Optional[str] = None
    aroma: Optional[str] = None
    flavor: Optional[str] = None
    flavor_scores: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    overall_score: Optional[float] = None
    photo_url: Optional[str] = None
    include_in_ranking: bool = True
    correct_answers: Optional[dict] = Field(default=None, sa_column=Column(JSON))  # competition key
    created_at: datetime = stamp()
    updated_at: datetime = stamp()

class TastingParticipant(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("tasting_id", "user_id"),)
    id: str = Field(default_factory=new_id, primary_key=True)
    tasting_id: str = Field(foreign_key="quicktasting.id", index=True)
    user_id: str = Field(index=True)
    role: str = "participant"                      # host | participant | both
    can_moderate: bool = False
    can_add_items: bool = True
    score: Optional[float] = None
    rank: Optional[int] = None
    created_at: datetime = stamp()

class ItemSuggestion(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    tasting_id: str = Field(foreign_key="quicktasting.id", index=True)
    participant_id: str = Field(foreign_key="tastingparticipant.id")
    suggested_item_name: str
    status: str = "pending"                        # pending | approved | rejected
    moderated_by: Optional[str] = None
    moderated_at: Optional[datetime] = optional_stamp()
    created_at: datetime = stamp()

class CompetitionAnswer(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("participant_id", "item_id"),)
    id: str = Field(default_factory=new_id, primary_key=True)
    tasting_id: str = Field(foreign_key="quicktasting.id", index=True)
    participant_id: str = Field(foreign_key="tastingparticipant.id")
    item_id: str = Field(foreign_key="quicktastingitem.id")
    aroma: Optional[str] = None
    flavor: Optional[str] = None
    overall_score: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime = stamp()


# ---------- Study sessions ----------

class StudySession(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    base_category: str
    status: str = "draft"                          # draft | active | finished
    session_code: str = Field(unique=True, index=True)
    host_id: str = Field(index=True)
    created_at: datetime = stamp()
    started_at: Optional[datetime] = optional_stamp()
    finished_at: Optional[datetime] = optional_stamp()

class StudyCategory(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    session_id: str = Field(foreign_key="studysession.id", index=True)
    name: str
    has_text: bool = False
    has_scale: bool = False
    has_boolean: bool = False
    scale_max: Optional[int] = None
    rank_in_summary: bool = False
    sort_order: int = 0

class StudyItem(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    session_id: str = Field(foreign_key="studysession.id", index=True)
    label: str
    sort_order: int = 0
    created_by: Optional[str] = None
    created_at: datetime = stamp()

class StudyParticipant(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    session_id: str = Field(foreign_key="studysession.id", index=True)
    user_id: Optional[str] = Field(default=None, index=True)
    display_name: str = "Anonymous"
    role: str = "participant"                      # host | participant
    progress: int = 0
    insights: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    joined_at: datetime = stamp()

class StudyResponse(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("participant_id", "item_id", "category_id"),)
    id: str = Field(default_factory=new_id, primary_key=True)
    session_id: str = Field(foreign_key="studysession.id", index=True)
    participant_id: str = Field(foreign_key="studyparticipant.id")
    item_id: str = Field(foreign_key="studyitem.id")
    category_id: str = Field(foreign_key="studycategory.id")
    text_value: Optional[str] = None
    scale_value: Optional[float] = None
    bool_value: Optional[bool] = None
    created_at: datetime = stamp()


# ---------- Descriptors & wheels ----------

class FlavorDescriptor(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("source_type", "source_id", "descriptor_text", "descriptor_type"),
    )
    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True)
    source_type: str                               # quick_tasting | quick_review | prose_review
    source_id: str = Field(index=True)
    tasting_id: Optional[str] = Field(default=None, index=True)   # set for quick_tasting rows
    descriptor_text: str
    descriptor_type: str                           # aroma | flavor | texture | metaphor
    category: Optional[str] = None
    subcategory: Optional[str] = None
    confidence_score: float = 0.85
    intensity: Optional[float] = None
    item_name: Optional[str] = Field(default=None, index=True)
    item_category: Optional[str] = Field(default=None, index=True)
    created_at: datetime = stamp()
    updated_at: datetime = stamp()

class FlavorWheel(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: Optional[str] = Field(default=None, index=True)
    wheel_type: str
    scope_type: str
    scope_filter: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    wheel_data: dict = Field(default_factory=dict, sa_column=Column(JSON))
    total_descriptors: int = 0
    unique_descriptors: int = 0
    data_sources: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = stamp()
    expires_at: Optional[datetime] = optional_stamp()

class AromaMolecule(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    descriptor: str = Field(unique=True, index=True)
    molecules: Optional[list] = Field(default=None, sa_column=Column(JSON))  # [{"name", "formula"}]


# ---------- Social ----------

class TastingLike(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "tasting_id"),)
    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True)
    tasting_id: str = Field(foreign_key="quicktasting.id", index=True)
    created_at: datetime = stamp()

class TastingComment(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True)
    tasting_id: str = Field(foreign_key="quicktasting.id", index=True)
    parent_comment_id: Optional[str] = Field(default=None, foreign_key="tastingcomment.id")
    comment_text: str
    is_deleted: bool = False
    created_at: datetime = stamp()
    updated_at: datetime = stamp()

class CommentLike(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "comment_id"),)
    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True)
    comment_id: str = Field(foreign_key="tastingcomment.id", index=True)
    created_at: datetime = stamp()

class TastingShare(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True)
    tasting_id: str = Field(foreign_key="quicktasting.id", index=True)
    platform: Optional[str] = None
    created_at: datetime = stamp()

class UserFollow(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("follower_id", "following_id"),)
    id: str = Field(default_factory=new_id, primary_key=True)
    follower_id: str = Field(index=True)
    following_id: str = Field(index=True)
    created_at: datetime = stamp()


# ---------- Reviews ----------

class Review(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True)
    review_id: str = Field(index=True)             # CATE+NAME+batch-M/D/YY
    kind: str = "structured"                       # structured | prose
    item_name: str
    category: str
    batch_id: Optional[str] = None
    aroma_notes: Optional[str] = None
    flavor_notes: Optional[str] = None
    texture_notes: Optional[str] = None
    other_notes: Optional[str] = None
    aroma_intensity: Optional[float] = None
    flavor_intensity: Optional[float] = None
    overall_score: Optional[int] = None
    review_content: Optional[str] = None
    created_at: datetime = stamp()
