# schemas.py  (request bodies for tastings, study mode, social, reviews, flavor wheels)

from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, conint, confloat, ConfigDict


# ===================== Enums =====================

class TastingMode(str, Enum):
    QUICK = "quick"
    STUDY = "study"
    COMPETITION = "competition"

class TastingCategory(str, Enum):
    COFFEE = "coffee"
    TEA = "tea"
    WINE = "wine"
    SPIRITS = "spirits"
    BEER = "beer"
    CHOCOLATE = "chocolate"

class StudyApproach(str, Enum):
    PREDEFINED = "predefined"
    COLLABORATIVE = "collaborative"

class ParticipantRole(str, Enum):
    HOST = "host"
    PARTICIPANT = "participant"
    BOTH = "both"

class SuggestionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class SourceType(str, Enum):
    QUICK_TASTING = "quick_tasting"
    QUICK_REVIEW = "quick_review"
    PROSE_REVIEW = "prose_review"

class WheelType(str, Enum):
    AROMA = "aroma"
    FLAVOR = "flavor"
    COMBINED = "combined"
    METAPHOR = "metaphor"

class ScopeType(str, Enum):
    PERSONAL = "personal"
    UNIVERSAL = "universal"
    ITEM = "item"
    CATEGORY = "category"
    TASTING = "tasting"


Score = conint(ge=0, le=100)
ReviewScore = conint(ge=1, le=100)
Intensity = confloat(ge=1, le=5)


# ===================== Tastings =====================

class TastingItemIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    item_name: str = Field(min_length=1)
    correct_answers: Optional[Dict[str, Any]] = None
    include_in_ranking: bool = True

class CreateTastingIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    user_id: Optional[str] = None                  # must match the caller when present
    mode: TastingMode
    category: TastingCategory
    session_name: Optional[str] = None
    notes: Optional[str] = None
    rank_participants: bool = False
    ranking_type: Optional[str] = None
    study_approach: Optional[StudyApproach] = None
    is_blind_participants: bool = False
    is_blind_items: bool = False
    is_blind_attributes: bool = False
    items: List[TastingItemIn] = []

class ItemUpdateIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    item_name: Optional[str] = None
    notes: Optional[str] = None
    aroma: Optional[str] = None
    flavor: Optional[str] = None
    flavor_scores: Optional[Dict[str, Any]] = None
    overall_score: Optional[Score] = None
    photo_url: Optional[str] = None
    include_in_ranking: Optional[bool] = None

class CompleteTastingIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    notes: Optional[str] = None


# ===================== Participants & suggestions =====================

class JoinTastingIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    role: Optional[ParticipantRole] = None

class RoleUpdateIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    user_id: Optional[str] = None
    role: ParticipantRole

class TransferHostIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    new_host_user_id: str

class SuggestionIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    user_id: Optional[str] = None
    participant_id: str
    item_name: str

class ModerateIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    user_id: Optional[str] = None
    moderator_id: Optional[str] = None
    action: str


# ===================== Study sessions =====================

class StudyCategoryIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    name: str = ""
    has_text: bool = False
    has_scale: bool = False
    has_boolean: bool = False
    scale_max: Optional[int] = None
    rank_in_summary: bool = False

class CreateStudyIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    name: str
    base_category: str
    categories: List[StudyCategoryIn] = []

class ResolveCodeIn(BaseModel):
    code: str

class JoinStudyIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    session_id: str
    display_name: Optional[str] = None

class StudyItemIn(BaseModel):
    label: str = Field(min_length=1)
    sort_order: Optional[int] = None

class StudyItemsIn(BaseModel):
    items: List[StudyItemIn]

class StudyAnswerIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    category_id: str
    text_value: Optional[str] = None
    scale_value: Optional[float] = None
    bool_value: Optional[bool] = None

class StudyResponsesIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    item_id: str
    responses: List[StudyAnswerIn]


# ===================== Competition =====================

class CompetitionAnswerIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    item_id: str
    aroma: str = ""
    flavor: str = ""
    overall_score: Score = 50
    notes: Optional[str] = None

class SubmitAnswersIn(BaseModel):
    answers: List[CompetitionAnswerIn]


# ===================== Social =====================

class CommentIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    comment_text: str
    parent_comment_id: Optional[str] = None

class ShareIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    platform: Optional[str] = None


# ===================== Reviews & profiles =====================

class StructuredReviewIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    item_name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    batch_id: Optional[str] = None
    aroma_notes: Optional[str] = None
    flavor_notes: Optional[str] = None
    texture_notes: Optional[str] = None
    other_notes: Optional[str] = None
    aroma_intensity: Optional[Intensity] = None
    flavor_intensity: Optional[Intensity] = None
    overall_score: Optional[ReviewScore] = None
    reviewed_at: Optional[datetime] = None

class ProseReviewIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    item_name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    batch_id: Optional[str] = None
    review_content: str = Field(min_length=1)
    intensity: Optional[Intensity] = None
    overall_score: Optional[ReviewScore] = None
    reviewed_at: Optional[datetime] = None

class ProfileIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    full_name: Optional[str] = None
    username: Optional[str] = Field(default=None, max_length=50)
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    preferred_category: Optional[str] = None


# ===================== Flavor wheels =====================

class ItemContextIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    item_name: Optional[str] = None
    item_category: Optional[str] = None

class StructuredNotesIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    aroma_notes: Optional[str] = None
    flavor_notes: Optional[str] = None
    texture_notes: Optional[str] = None
    other_notes: Optional[str] = None
    aroma_intensity: Optional[float] = None
    flavor_intensity: Optional[float] = None

class ExtractDescriptorsIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    source_type: SourceType
    source_id: str = Field(min_length=1)
    text: Optional[str] = None
    structured_data: Optional[StructuredNotesIn] = None
    item_context: Optional[ItemContextIn] = None

class ScopeFilterIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    user_id: Optional[str] = None
    item_name: Optional[str] = None
    item_category: Optional[str] = None
    tasting_id: Optional[str] = None

class GenerateWheelIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    wheel_type: WheelType
    scope_type: ScopeType
    scope_filter: Optional[ScopeFilterIn] = None
    force_regenerate: bool = False
    min_descriptor_count: conint(ge=1) = 1
    max_descriptors_per_subcategory: conint(ge=1, le=50) = 10
