# ABOUTME: Holds the 46-character hiragana catalog and the template store built from it.
# ABOUTME: Unknown characters resolve to a generic baseline template instead of failing.

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from src.common.schemas import Character, CharacterTemplate, FeatureSet

logger = logging.getLogger(__name__)

# (character, reading, difficulty, category, strokes, horizontal, vertical, curve, complexity)
_HIRAGANA_TABLE: Tuple[tuple, ...] = (
    ("あ", "a", 1, "あ行", 3, True, True, True, 0.7),
    ("い", "i", 1, "あ行", 2, False, True, True, 0.4),
    ("う", "u", 1, "あ行", 2, True, False, True, 0.3),
    ("え", "e", 1, "あ行", 2, True, False, True, 0.4),
    ("お", "o", 1, "あ行", 3, True, True, True, 0.6),
    ("か", "ka", 2, "か行", 3, True, True, False, 0.6),
    ("き", "ki", 2, "か行", 4, True, True, True, 0.8),
    ("く", "ku", 2, "か行", 1, False, False, True, 0.2),
    ("け", "ke", 2, "か行", 3, True, True, True, 0.7),
    ("こ", "ko", 2, "か行", 2, True, False, False, 0.3),
    ("さ", "sa", 2, "さ行", 3, True, False, True, 0.5),
    ("し", "shi", 3, "さ行", 1, False, False, True, 0.3),
    ("す", "su", 2, "さ行", 2, False, False, True, 0.4),
    ("せ", "se", 2, "さ行", 3, True, False, True, 0.6),
    ("そ", "so", 2, "さ行", 1, False, False, True, 0.2),
    ("た", "ta", 2, "た行", 4, True, True, False, 0.7),
    ("ち", "chi", 2, "た行", 2, False, True, True, 0.5),
    ("つ", "tsu", 2, "た行", 1, False, False, True, 0.3),
    ("て", "te", 2, "た行", 1, False, False, True, 0.2),
    ("と", "to", 2, "た行", 2, False, True, True, 0.4),
    ("な", "na", 2, "な行", 4, True, True, True, 0.8),
    ("に", "ni", 2, "な行", 3, True, True, False, 0.5),
    ("ぬ", "nu", 2, "な行", 2, False, False, True, 0.6),
    ("ね", "ne", 2, "な行", 2, False, False, True, 0.5),
    ("の", "no", 2, "な行", 1, False, False, True, 0.2),
    ("は", "ha", 3, "は行", 3, True, True, True, 0.7),
    ("ひ", "hi", 3, "は行", 1, False, True, False, 0.2),
    ("ふ", "fu", 3, "は行", 4, True, False, True, 0.8),
    ("へ", "he", 3, "は行", 1, False, False, True, 0.1),
    ("ほ", "ho", 3, "は行", 4, True, True, True, 0.9),
    ("ま", "ma", 3, "ま行", 3, True, False, True, 0.6),
    ("み", "mi", 3, "ま行", 2, False, False, True, 0.5),
    ("む", "mu", 3, "ま行", 3, True, False, True, 0.7),
    ("め", "me", 3, "ま行", 2, False, False, True, 0.6),
    ("も", "mo", 3, "ま行", 3, True, True, True, 0.7),
    ("や", "ya", 3, "や行", 3, True, True, True, 0.6),
    ("ゆ", "yu", 3, "や行", 2, False, True, True, 0.5),
    ("よ", "yo", 3, "や行", 2, True, False, True, 0.4),
    ("ら", "ra", 4, "ら行", 2, False, False, True, 0.5),
    ("り", "ri", 4, "ら行", 2, False, True, True, 0.4),
    ("る", "ru", 4, "ら行", 1, False, False, True, 0.4),
    ("れ", "re", 4, "ら行", 1, False, False, True, 0.3),
    ("ろ", "ro", 4, "ら行", 3, True, False, True, 0.6),
    ("わ", "wa", 4, "わ行", 3, True, False, True, 0.6),
    ("を", "wo", 4, "わ行", 3, True, True, True, 0.7),
    ("ん", "n", 4, "わ行", 1, False, False, True, 0.2),
)

BASELINE_FEATURES = FeatureSet(has_horizontal_line=False, has_vertical_line=False, has_curve=True, complexity=0.5)
BASELINE_STROKE_COUNT = 2


def load_hiragana_catalog() -> List[Character]:
    return [
        Character(
            character=char,
            reading=reading,
            difficulty=difficulty,
            category=category,
            stroke_count=strokes,
            features=FeatureSet(horizontal, vertical, curve, complexity),
        )
        for char, reading, difficulty, category, strokes, horizontal, vertical, curve, complexity in _HIRAGANA_TABLE
    ]


def baseline_template(character: str) -> CharacterTemplate:
    return CharacterTemplate(character, BASELINE_STROKE_COUNT, BASELINE_FEATURES)


class TemplateStore:
    """Read-only lookup of characters and their reference templates."""

    def __init__(self, characters: Optional[Iterable[Character]] = None) -> None:
        self._characters: Dict[str, Character] = {}
        for character in characters if characters is not None else load_hiragana_catalog():
            self._characters[character.character] = character
        self._templates = {c: ch.template for c, ch in self._characters.items()}

    def __len__(self) -> int:
        return len(self._characters)

    def __contains__(self, character: object) -> bool:
        return character in self._characters

    def characters(self) -> List[Character]:
        return list(self._characters.values())

    def supported_characters(self) -> List[str]:
        return list(self._characters)

    def get_character(self, character: str) -> Optional[Character]:
        return self._characters.get(character)

    def get_template(self, character: str) -> Optional[CharacterTemplate]:
        return self._templates.get(character)

    def template_or_baseline(self, character: str) -> Tuple[CharacterTemplate, bool]:
        """Return ``(template, missing)``; missing characters get the baseline descriptor."""
        template = self._templates.get(character)
        if template is None:
            logger.warning("No template for %r, scoring against baseline", character)
            return baseline_template(character), True
        return template, False

    def difficulties(self) -> List[int]:
        return sorted({c.difficulty for c in self._characters.values()})

    def categories(self) -> List[str]:
        return list(dict.fromkeys(c.category for c in self._characters.values()))

    def characters_by_complexity(self) -> Dict[str, List[str]]:
        grouped: Dict[str, List[str]] = {"beginner": [], "intermediate": [], "advanced": []}
        for character in self._characters.values():
            grouped[character.stroke_complexity_level].append(character.character)
        return grouped
