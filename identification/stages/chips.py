"""
Chip extraction: refinement tags offered to the user for one frame.

Chips are recomputed every pass from the current frame, never accumulated;
their selected flag mirrors the session feedback map.
"""

from typing import Dict, List

from ..models.analysis import FrameAnalysis
from ..models.session import Chip, ChipKind
from .keywords import detect_decade, extract_genres, extract_significant_objects


def extract_chips(
    analysis: FrameAnalysis,
    feedback: Dict[str, bool],
    min_object_confidence: float = 0.7,
) -> List[Chip]:
    """At most one decade chip, then one chip per genre, then one per notable object."""
    chips: List[Chip] = []

    decade = detect_decade(analysis)
    if decade:
        chips.append(Chip(
            value=decade,
            label=f"Era: {decade}",
            kind=ChipKind.DECADE,
            selected=feedback.get(decade, False),
        ))

    for genre in extract_genres(analysis):
        chips.append(Chip(
            value=genre,
            label=genre.title(),
            kind=ChipKind.GENRE,
            selected=feedback.get(genre, False),
        ))

    for obj in extract_significant_objects(analysis, min_object_confidence):
        chips.append(Chip(
            value=obj,
            label=obj.title(),
            kind=ChipKind.OBJECT,
            selected=feedback.get(obj, False),
        ))

    return chips
