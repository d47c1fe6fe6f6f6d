import re
from typing import Dict, Iterator, List, Optional, Pattern, Tuple, Union

DESCRIPTOR_TYPES = ("aroma", "flavor", "texture", "metaphor")

CategoryBody = Union[List[str], Dict[str, List[str]]]
LexiconEntry = Tuple[str, str, Optional[str], str]  # (type, category, subcategory, keyword)

class DescriptorLexicon:
    def __init__(self, types: Dict[str, Dict[str, CategoryBody]], intensity_words: Dict[str, List[str]]):
        self.types = types
        self.intensity_words = {
            level: [w.lower() for w in (intensity_words.get(level) or [])]
            for level in ("high", "medium", "low")
        }
        self._entries: List[LexiconEntry] = list(self._walk())
        # whole-word, case-insensitive; compiled once per lexicon
        self._patterns: List[Tuple[LexiconEntry, Pattern[str]]] = [
            (entry, re.compile(rf"\b{re.escape(entry[3])}\b", re.IGNORECASE))
            for entry in self._entries
        ]

    def _walk(self) -> Iterator[LexiconEntry]:
        for type_name, categories in self.types.items():
            for category, body in categories.items():
                if isinstance(body, list):
                    for kw in body:
                        yield type_name, category, None, str(kw)
                    continue
                for subcategory, keywords in body.items():
                    for kw in keywords:
                        yield type_name, category, subcategory, str(kw)

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> List[LexiconEntry]:
        return list(self._entries)

    def patterns(self) -> List[Tuple[LexiconEntry, Pattern[str]]]:
        return self._patterns

    def available_categories(self, type_name: str) -> List[str]:
        return list((self.types.get(type_name) or {}).keys())

    def subcategories(self, type_name: str, category: str) -> List[str]:
        body = (self.types.get(type_name) or {}).get(category)
        if isinstance(body, dict):
            return list(body.keys())
        return []
