"""
Candidate building: turn web search results into a ranked, capped list of
FilmCandidate for one scoring pass.
"""

import logging
import re
from typing import Dict, List

from ..config import DEFAULT_CONFIG, IdentificationConfig
from ..models.analysis import FrameAnalysis
from ..models.candidate import FilmCandidate, SearchResult
from .scoring import score_candidate

logger = logging.getLogger(__name__)

CATALOG_ID_PATTERN = re.compile(r"themoviedb\.org/movie/(\d+)")
RESULT_YEAR_PATTERN = re.compile(r"\b(?:19|20)\d{2}\b")
MIN_YEAR = 1900
MAX_YEAR = 2030

SITE_SUFFIXES = [
    " - IMDb",
    " - Wikipedia",
    " - TMDb",
    " — The Movie Database (TMDB)",
    " | The Movie Database (TMDB)",
    " — The Movie Database (TMDb)",
]

CANDIDATE_SOURCE = "web_search"


def extract_catalog_id(link: str) -> str:
    """Numeric film id from a catalog URL (".../movie/105-back-to-the-future" -> "105")."""
    match = CATALOG_ID_PATTERN.search(link or "")
    return match.group(1) if match else ""


def clean_title(title: str) -> str:
    title = (title or "").split(" - ")[0]
    for suffix in SITE_SUFFIXES:
        if title.endswith(suffix):
            title = title[: -len(suffix)]
    return title.strip()


def extract_year(title: str, snippet: str) -> int:
    """First 4-digit year in title + snippet within [1900, 2030]; 0 when none."""
    for match in RESULT_YEAR_PATTERN.finditer(f"{title or ''} {snippet or ''}"):
        year = int(match.group(0))
        if MIN_YEAR <= year <= MAX_YEAR:
            return year
    return 0


def build_candidates(
    results: List[SearchResult],
    analysis: FrameAnalysis,
    feedback: Dict[str, bool],
    config: IdentificationConfig = DEFAULT_CONFIG,
) -> List[FilmCandidate]:
    """
    Score every result that links to a catalog entry, sort by descending
    score (ties keep search-result order), and keep the top max_candidates.
    """
    candidates: List[FilmCandidate] = []
    for result in results:
        catalog_id = extract_catalog_id(result.link)
        if not catalog_id:
            logger.debug("[ident] skipping result without catalog id: %s", result.link)
            continue
        candidate = FilmCandidate(
            title=clean_title(result.title),
            year=extract_year(result.title, result.snippet),
            catalog_id=catalog_id,
            source=CANDIDATE_SOURCE,
            snippet=result.snippet,
        )
        breakdown = score_candidate(candidate, analysis, feedback, config)
        candidate.score = breakdown.score
        candidate.matched_on = breakdown.matched_on
        candidates.append(candidate)

    # sorted() is stable, so equal scores keep search-result order.
    ranked = sorted(candidates, key=lambda c: c.score, reverse=True)
    return ranked[: config.max_candidates]
