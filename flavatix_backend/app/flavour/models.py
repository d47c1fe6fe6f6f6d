from datetime import datetime
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field

DescriptorType = Literal["aroma", "flavor", "texture", "metaphor"]
WheelType = Literal["aroma", "flavor", "combined", "metaphor"]
ScopeType = Literal["personal", "universal", "item", "category", "tasting"]

class ExtractedDescriptor(BaseModel):
    text: str
    type: DescriptorType
    category: Optional[str] = None
    subcategory: Optional[str] = None
    confidence: float = Field(0.85, ge=0.0, le=1.0)
    intensity: Optional[float] = None

class DescriptorExtractionResult(BaseModel):
    descriptors: List[ExtractedDescriptor] = []
    total_found: int = 0
    extraction_method: Literal["keyword", "ai", "hybrid"] = "keyword"

# ---------- wheel ----------

class WheelDescriptor(BaseModel):
    text: str
    count: int
    avg_intensity: float
    percentage: float

class WheelSubcategory(BaseModel):
    name: str
    count: int
    percentage: float
    descriptors: List[WheelDescriptor] = []

class WheelCategory(BaseModel):
    name: str
    count: int
    percentage: float
    subcategories: List[WheelSubcategory] = []

class FlavorWheelData(BaseModel):
    categories: List[WheelCategory] = []
    total_descriptors: int = 0
    unique_descriptors: int = 0
    generated_from: Dict[str, int] = {}
    generated_at: datetime
    wheel_type: WheelType
    scope_type: ScopeType
