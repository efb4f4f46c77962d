"""
Keyword detection over one frame analysis: era, genre, notable objects, and
caption keywords for query building.

All functions are pure and case-insensitive. Detection runs over the caption
plus every label name (FrameAnalysis.label_text).
"""

import re
from typing import List, Optional

from ..models.analysis import FrameAnalysis

DECADE_TOKENS = [
    "1920s", "1930s", "1940s", "1950s", "1960s", "1970s",
    "1980s", "1990s", "2000s", "2010s", "2020s",
]

YEAR_PATTERN = re.compile(r"(19|20)\d{2}")

# Ordered: the first match is the one a query uses.
GENRE_KEYWORDS = [
    "action", "comedy", "drama", "horror", "sci-fi", "thriller",
    "romance", "adventure", "fantasy", "mystery", "crime", "animation",
]

SIGNIFICANT_OBJECTS = {
    "car", "gun", "explosion", "spaceship", "robot", "monster", "castle", "sword",
}

# Vision-model refusals that would otherwise leak into the search query.
SKIP_PHRASES = [
    "i'm unable to identify",
    "unable to identify",
    "unable identify",
    "cannot identify",
    "can't identify",
    "i cannot",
    "specific movie",
    "specific movies",
    "recognize people",
    "however provide",
    "however give",
]

STOP_WORDS = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "is", "are", "was", "were", "been", "be", "this", "that", "from",
    "have", "has", "had", "will", "would", "could", "should",
    "images", "image", "frame", "scene", "provide",
}

_STRIP_CHARS = ".,!?;:'\"*"


def decade_of(year: int) -> int:
    """Round a year down to its decade (1985 -> 1980)."""
    return (year // 10) * 10


def detect_decade(analysis: FrameAnalysis) -> str:
    """
    Era token for a frame, e.g. "1980s"; "" when nothing is detected.

    Literal decade tokens win. Otherwise the first bare year (19xx / 20xx)
    is rounded down to its decade.
    """
    text = analysis.label_text()
    for decade in DECADE_TOKENS:
        if decade in text:
            return decade
    match = YEAR_PATTERN.search(text)
    if match:
        return f"{decade_of(int(match.group(0)))}s"
    return ""


def decade_year(decade: str) -> Optional[int]:
    """Leading year of a decade token ("1980s" -> 1980)."""
    match = re.search(r"\d{4}", decade or "")
    return int(match.group(0)) if match else None


def extract_genres(analysis: FrameAnalysis) -> List[str]:
    text = analysis.label_text()
    return [genre for genre in GENRE_KEYWORDS if genre in text]


def extract_significant_objects(analysis: FrameAnalysis, min_confidence: float = 0.7) -> List[str]:
    """Labels from the notable-object vocabulary seen with confidence above min_confidence."""
    objects: List[str] = []
    for label in analysis.labels:
        name = label.name.lower()
        if name in SIGNIFICANT_OBJECTS and label.confidence > min_confidence and name not in objects:
            objects.append(name)
    return objects


def extract_keywords(caption: str) -> List[str]:
    """Caption words longer than 4 characters, minus refusal boilerplate and stop words."""
    text = (caption or "").lower()
    for phrase in SKIP_PHRASES:
        text = text.replace(phrase, "")
    keywords = []
    for word in text.split():
        word = word.strip(_STRIP_CHARS)
        if len(word) > 4 and word not in STOP_WORDS:
            keywords.append(word)
    return keywords
