"""Search query building from one frame analysis and the current feedback."""

from typing import Dict, List

from ..models.analysis import FrameAnalysis
from .keywords import detect_decade, extract_genres, extract_keywords

# Restricts web results to the film catalog so result links carry a catalog id.
SITE_SUFFIX = "movie site:themoviedb.org"

DEFAULT_MAX_KEYWORDS = 8


def build_search_query(
    analysis: FrameAnalysis,
    feedback: Dict[str, bool],
    max_keywords: int = DEFAULT_MAX_KEYWORDS,
) -> str:
    """
    Caption keywords (capped), detected decade, first detected genre, then
    every selected feedback chip; de-duplicated in first-seen order and
    suffixed with the catalog site restriction.
    """
    parts: List[str] = list(extract_keywords(analysis.caption)[:max_keywords])

    decade = detect_decade(analysis)
    if decade:
        parts.append(decade)

    genres = extract_genres(analysis)
    if genres:
        parts.append(genres[0])

    parts.extend(chip for chip, selected in feedback.items() if selected)

    seen = set()
    unique: List[str] = []
    for part in parts:
        if part and part not in seen:
            seen.add(part)
            unique.append(part)

    return " ".join(unique + [SITE_SUFFIX])
