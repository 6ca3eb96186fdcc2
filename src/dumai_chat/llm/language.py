"""Script-based language detection heuristic."""

import unicodedata

from dumai_chat.db.models import UNSET_LANGUAGE

# Checked in order; kana must win over Han so Japanese is not reported as zh
_SCRIPT_RANGES: list[tuple[str, list[tuple[int, int]]]] = [
    ("ja", [(0x3040, 0x309F), (0x30A0, 0x30FF), (0x31F0, 0x31FF)]),
    ("ko", [(0xAC00, 0xD7AF), (0x1100, 0x11FF), (0x3130, 0x318F)]),
    ("zh", [(0x4E00, 0x9FFF), (0x3400, 0x4DBF)]),
    ("ru", [(0x0400, 0x04FF)]),
    ("ar", [(0x0600, 0x06FF)]),
    ("he", [(0x0590, 0x05FF)]),
    ("el", [(0x0370, 0x03FF)]),
    ("hi", [(0x0900, 0x097F)]),
    ("th", [(0x0E00, 0x0E7F)]),
]

LANGUAGE_NAMES = {
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "ru": "Russian",
    "ar": "Arabic",
    "he": "Hebrew",
    "el": "Greek",
    "hi": "Hindi",
    "th": "Thai",
    "en": "English",
}


def _in_ranges(codepoint: int, ranges: list[tuple[int, int]]) -> bool:
    return any(start <= codepoint <= end for start, end in ranges)


def detect_language(text: str) -> str:
    """Guess the language of ``text`` from the scripts it uses.

    Returns a short language tag, or ``UNSET_LANGUAGE`` for empty text or
    text without any letters.
    """
    if not text or not text.strip():
        return UNSET_LANGUAGE

    codepoints = [ord(ch) for ch in text]
    for tag, ranges in _SCRIPT_RANGES:
        if any(_in_ranges(cp, ranges) for cp in codepoints):
            return tag

    if any(unicodedata.category(ch).startswith("L") for ch in text):
        return "en"
    return UNSET_LANGUAGE
