"""Recommender name normalization for mangovoice.

Speech recognition routinely mishears proper names ("Kyo" for "Keo",
"hyatt" for "Hayat") and publications arrive as abbreviations ("NYT").
This module maps those transcriptions to a fixed display form.

Normalization is deterministic and idempotent: normalizing an already
canonical name returns it unchanged.
"""

from typing import Dict, List

_PEOPLE: Dict[str, str] = {
    # Keo
    "keo": "Keo",
    "kio": "Keo",
    "geo": "Keo",
    "ceo": "Keo",
    "keyo": "Keo",
    "kyo": "Keo",
    "kyro": "Keo",
    "cairo": "Keo",
    "keyhole": "Keo",
    "kayo": "Keo",
    "key oh": "Keo",
    "key-oh": "Keo",
    # Kailan
    "kailan": "Kailan",
    "kaylan": "Kailan",
    "kailyn": "Kailan",
    "cailin": "Kailan",
    "kalen": "Kailan",
    "kaylen": "Kailan",
    "kylan": "Kailan",
    "kaylon": "Kailan",
    "ki-lan": "Kailan",
    "kai-lan": "Kailan",
    "kai lan": "Kailan",
    "kyle and": "Kailan",
    "kyle in": "Kailan",
    # Hayat
    "hayat": "Hayat",
    "hyatt": "Hayat",
    "high at": "Hayat",
    "hi at": "Hayat",
    "ayat": "Hayat",
    "hey yacht": "Hayat",
    "hi yacht": "Hayat",
}

_PUBLICATIONS: Dict[str, str] = {
    "nyt": "The New York Times",
    "ny times": "The New York Times",
    "new york times": "The New York Times",
    "the new york times": "The New York Times",
    "the nyt": "The New York Times",
    "wsj": "The Wall Street Journal",
    "wall street journal": "The Wall Street Journal",
    "the wall street journal": "The Wall Street Journal",
    "the journal": "The Wall Street Journal",
    "la times": "Los Angeles Times",
    "the la times": "Los Angeles Times",
    "los angeles times": "Los Angeles Times",
    "the los angeles times": "Los Angeles Times",
    "guardian": "The Guardian",
    "the guardian": "The Guardian",
    "rolling stone": "Rolling Stone",
    "new yorker": "The New Yorker",
    "the new yorker": "The New Yorker",
    "variety": "Variety",
}

RECOMMENDER_ALIASES: Dict[str, str] = {**_PEOPLE, **_PUBLICATIONS}


def _title_case(text: str) -> str:
    return " ".join(token.capitalize() for token in text.split(" "))


def normalize_recommender(raw: str) -> str:
    """Normalize a recommender name heard by speech recognition.

    Lookup is an exact match on the trimmed, lowercased input. Unknown names
    fall back to title case so new recommenders still display sensibly.

    Args:
        raw: Attribution text as extracted from the utterance

    Returns:
        Canonical display name
    """
    trimmed = (raw or "").strip()
    if not trimmed:
        return raw

    match = RECOMMENDER_ALIASES.get(trimmed.lower())
    if match:
        return match

    return _title_case(trimmed)


def is_known_recommender(raw: str) -> bool:
    """Check whether a name is a known alias or canonical recommender."""
    key = (raw or "").strip().lower()
    if key in RECOMMENDER_ALIASES:
        return True
    return key in {name.lower() for name in RECOMMENDER_ALIASES.values()}


def known_recommenders() -> List[str]:
    """All canonical recommender names, sorted."""
    return sorted(set(RECOMMENDER_ALIASES.values()))


class RecommenderNormalizer:
    """Injectable wrapper around normalize_recommender()."""

    def normalize(self, raw: str) -> str:
        return normalize_recommender(raw)
