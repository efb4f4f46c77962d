"""Pure pipeline stages: keyword detection, query building, chips, candidate scoring and ranking."""

from .candidates import build_candidates, clean_title, extract_catalog_id, extract_year
from .chips import extract_chips
from .keywords import detect_decade, extract_genres, extract_keywords, extract_significant_objects
from .query import build_search_query
from .scoring import CandidateScore, calculate_score, score_candidate

__all__ = [
    "CandidateScore",
    "build_candidates",
    "build_search_query",
    "calculate_score",
    "clean_title",
    "detect_decade",
    "extract_catalog_id",
    "extract_chips",
    "extract_genres",
    "extract_keywords",
    "extract_significant_objects",
    "extract_year",
    "score_candidate",
]
