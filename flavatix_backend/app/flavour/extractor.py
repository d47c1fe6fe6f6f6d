# extractor.py
# Turn tasting notes into tagged flavor/aroma descriptors by matching them
# against the descriptor lexicon (flavour/rules/descriptor_lexicon.yaml).

from __future__ import annotations
from typing import List, Optional

from .library_loader import get_descriptor_lexicon
from .models import DescriptorExtractionResult, DescriptorType, ExtractedDescriptor
from .taxonomy import DescriptorLexicon

KEYWORD_CONFIDENCE = 0.85
INTENSITY_CONTEXT_CHARS = 30

INTENSITY_HIGH = 4
INTENSITY_MEDIUM = 3
INTENSITY_LOW = 2

def _lexicon(lexicon: Optional[DescriptorLexicon]) -> DescriptorLexicon:
    return lexicon if lexicon is not None else get_descriptor_lexicon()

def extract_keyword_based(text: str, lexicon: Optional[DescriptorLexicon] = None) -> List[ExtractedDescriptor]:
    """One descriptor per matched lexicon keyword; the first hit for a given term wins."""
    if not text or not text.strip():
        return []
    lex = _lexicon(lexicon)
    found: List[ExtractedDescriptor] = []
    seen: set[str] = set()
    for (type_name, category, subcategory, keyword), pattern in lex.patterns():
        key = keyword.lower()
        if key in seen or not pattern.search(text):
            continue
        seen.add(key)
        found.append(ExtractedDescriptor(
            text=keyword,
            type=type_name,
            category=category,
            subcategory=subcategory,
            confidence=KEYWORD_CONFIDENCE,
        ))
    return found

def _infer_intensity(lower_text: str, term: str, lex: DescriptorLexicon) -> Optional[int]:
    idx = lower_text.find(term.lower())
    if idx == -1:
        return None
    context = lower_text[max(0, idx - INTENSITY_CONTEXT_CHARS):idx]
    if any(w in context for w in lex.intensity_words["high"]):
        return INTENSITY_HIGH
    if any(w in context for w in lex.intensity_words["low"]):
        return INTENSITY_LOW
    return INTENSITY_MEDIUM

def extract_with_intensity(
    text: str,
    intensity: Optional[float] = None,
    lexicon: Optional[DescriptorLexicon] = None,
) -> List[ExtractedDescriptor]:
    """
    Keyword extraction plus an intensity per descriptor.
    A numeric intensity (when truthy) is applied to every descriptor; otherwise
    it is read from cue words ("strong", "hint of", ...) just before the term.
    """
    lex = _lexicon(lexicon)
    descriptors = extract_keyword_based(text, lex)
    lower_text = (text or "").lower()
    for d in descriptors:
        if intensity:
            d.intensity = intensity
        else:
            d.intensity = _infer_intensity(lower_text, d.text, lex)
    return descriptors

def _retype(descriptors: List[ExtractedDescriptor], type_name: DescriptorType) -> List[ExtractedDescriptor]:
    for d in descriptors:
        d.type = type_name
    return descriptors

def extract_from_structured(
    aroma_notes: Optional[str] = None,
    flavor_notes: Optional[str] = None,
    texture_notes: Optional[str] = None,
    other_notes: Optional[str] = None,
    aroma_intensity: Optional[float] = None,
    flavor_intensity: Optional[float] = None,
    lexicon: Optional[DescriptorLexicon] = None,
) -> List[ExtractedDescriptor]:
    """
    Field-aware extraction for structured reviews:
      aroma_notes   -> type "aroma"   (with intensity)
      flavor_notes  -> type "flavor"  (with intensity)
      texture_notes -> type "texture"
      other_notes   -> metaphors only
    Duplicates are dropped on (lowercase text, type).
    """
    lex = _lexicon(lexicon)
    collected: List[ExtractedDescriptor] = []

    if aroma_notes:
        collected += _retype(extract_with_intensity(aroma_notes, aroma_intensity, lex), "aroma")
    if flavor_notes:
        collected += _retype(extract_with_intensity(flavor_notes, flavor_intensity, lex), "flavor")
    if texture_notes:
        collected += _retype(extract_keyword_based(texture_notes, lex), "texture")
    if other_notes:
        collected += [d for d in extract_keyword_based(other_notes, lex) if d.type == "metaphor"]

    unique: List[ExtractedDescriptor] = []
    seen: set[tuple[str, str]] = set()
    for d in collected:
        key = (d.text.lower(), d.type)
        if key in seen:
            continue
        seen.add(key)
        unique.append(d)
    return unique

def extract_flavor_descriptors(
    text: str,
    type: Optional[DescriptorType] = None,
    intensity: Optional[float] = None,
    lexicon: Optional[DescriptorLexicon] = None,
) -> DescriptorExtractionResult:
    descriptors = extract_with_intensity(text, intensity, lexicon)
    if type:
        descriptors = [d for d in descriptors if d.type == type]
    return DescriptorExtractionResult(
        descriptors=descriptors,
        total_found=len(descriptors),
        extraction_method="keyword",
    )

def get_available_categories(type: str, lexicon: Optional[DescriptorLexicon] = None) -> List[str]:
    return _lexicon(lexicon).available_categories(type)

def get_subcategories(type: str, category: str, lexicon: Optional[DescriptorLexicon] = None) -> List[str]:
    return _lexicon(lexicon).subcategories(type, category)
