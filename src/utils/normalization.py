"""
Centralized text normalization for item matching.
"""

import re


def normalize_key(text: str) -> str:
    """Case-insensitive lookup key: trimmed and lowercased, nothing else."""
    if not text:
        return ""
    return text.strip().lower()


def normalize_match_text(text: str) -> str:
    """
    Standardizes item text before fuzzy scoring.
    
    Transformation pipeline:
    1. Force lowercase
    2. Replace punctuation with spaces ("ALMOND-MLK" -> "almond mlk")
    3. Collapse internal whitespace and trim
    """
    if not text:
        return ""

    norm = text.lower()
    norm = re.sub(r'[^\w\s]|_', ' ', norm)
    norm = re.sub(r'\s+', ' ', norm).strip()

    return norm


def to_title_case(text: str) -> str:
    """
    Capitalizes each word of a raw receipt name.

    "bananas organic" -> "Bananas Organic", "KS ALMOND MLK" -> "Ks Almond Mlk"
    """
    if not text:
        return ""
    return re.sub(
        r'\w\S*',
        lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(),
        text.strip()
    )
