"""Search-intent classification for mangovoice.

Decides whether a search phrase is an exact title lookup (direct) or a
description of what the user wants (semantic). The classifier is total:
every string gets an answer, so it can never block search dispatch.
"""

import logging

from mangovoice.models.command import SearchType

logger = logging.getLogger(__name__)


# Checked first. Higher-precision than the word-count heuristic.
SEMANTIC_INDICATORS = (
    # Comparison
    "movies like",
    "films like",
    "movie like",
    "film like",
    "something like",
    "similar to",
    "reminds me of",
    # Audience
    "for kids",
    "for children",
    "for the family",
    "for family",
    "family-friendly",
    "family friendly",
    "date night",
    # Mood
    "funny movies",
    "scary movies",
    "sad movies",
    "romantic movies",
    "feel-good",
    "feel good",
    "heartwarming",
    "in the mood for",
    # Superlatives
    "best movies",
    "best films",
    "top movies",
    "greatest movies",
    "most popular",
    # Requests
    "what should i watch",
    "something to watch",
    "any good",
    # Source material
    "based on",
    "adapted from",
)

DIRECT_INDICATORS = (
    "the movie",
    "the film",
    "called",
    "named",
    "titled",
)

DIRECT_MAX_WORDS = 4


def classify_search(query: str) -> SearchType:
    """Classify a search phrase as direct or semantic.

    Decision order (first match wins):
    1. Semantic indicator phrase present -> SEMANTIC
    2. Direct indicator phrase present -> DIRECT
    3. Word count of the untouched query: <= 4 -> DIRECT, otherwise SEMANTIC

    Args:
        query: Phrase that will be sent to search

    Returns:
        SearchType for the phrase
    """
    text = query or ""
    lowered = text.lower()

    for indicator in SEMANTIC_INDICATORS:
        if indicator in lowered:
            logger.debug(f"Semantic indicator '{indicator}' in {text[:80]!r}")
            return SearchType.SEMANTIC

    for indicator in DIRECT_INDICATORS:
        if indicator in lowered:
            logger.debug(f"Direct indicator '{indicator}' in {text[:80]!r}")
            return SearchType.DIRECT

    word_count = len(text.split(" "))
    if word_count <= DIRECT_MAX_WORDS:
        return SearchType.DIRECT
    return SearchType.SEMANTIC


class SearchIntentClassifier:
    """Injectable wrapper around classify_search()."""

    def classify(self, query: str) -> SearchType:
        return classify_search(query)
