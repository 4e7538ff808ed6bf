"""Utterance parsing for mangovoice."""

from mangovoice.parsing.command_extractor import CommandExtractor, clean_target, extract_command
from mangovoice.parsing.recommender_normalizer import (
    RecommenderNormalizer,
    is_known_recommender,
    known_recommenders,
    normalize_recommender,
)

__all__ = [
    "CommandExtractor",
    "clean_target",
    "extract_command",
    "RecommenderNormalizer",
    "is_known_recommender",
    "known_recommenders",
    "normalize_recommender",
]
