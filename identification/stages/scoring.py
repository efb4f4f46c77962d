"""
Candidate scoring: one analyzed frame + one search result + feedback -> score.

score = w_snippet * text_overlap + w_actor * [1 <= faces <= 5]
      + w_decade * decade_match + w_genre * genre_match
      + feedback_bonus * (selected chips matching a credited reason)
clamped to [0, 1].

Match reasons record both the signal ("decade", "genre", "actor") and the
concrete token that matched ("1980s", "sci-fi"), so a selected chip is
credited when its value equals either.
"""

from typing import Dict, List

from pydantic import BaseModel, Field

from ..config import DEFAULT_CONFIG, IdentificationConfig
from ..models.analysis import FaceDetection, FrameAnalysis
from ..models.candidate import FilmCandidate
from .keywords import GENRE_KEYWORDS, decade_of, decade_year, detect_decade


class CandidateScore(BaseModel):
    """Explainable score components for one candidate."""

    text_similarity: float = 0.0
    actor_match: bool = False
    decade_match: bool = False
    genre_match: bool = False
    feedback_matches: List[str] = Field(default_factory=list)
    matched_on: List[str] = Field(default_factory=list)
    score: float = 0.0


def calculate_text_similarity(title: str, snippet: str, caption: str) -> float:
    """
    Unweighted overlap in [0, 1]: +0.2 per title word (len > 3) found in the
    caption or snippet, +0.1 per caption word (len > 5) found in the snippet.
    """
    title_lower = (title or "").lower()
    snippet_lower = (snippet or "").lower()
    caption_lower = (caption or "").lower()

    match_score = 0.0
    for word in title_lower.split():
        if len(word) > 3 and (word in caption_lower or word in snippet_lower):
            match_score += 0.2
    for word in caption_lower.split():
        if len(word) > 5 and word in snippet_lower:
            match_score += 0.1
    return min(match_score, 1.0)


def actor_match(faces: List[FaceDetection]) -> bool:
    # Placeholder heuristic: any plausible cast-sized face count counts as a match.
    # Replace with identity matching against the candidate's cast.
    return 0 < len(faces) <= 5


def decade_match(candidate_year: int, analysis: FrameAnalysis) -> bool:
    """Candidate decade within 10 years of the detected decade."""
    detected = decade_year(detect_decade(analysis))
    if detected is None or candidate_year <= 0:
        return False
    return abs(decade_of(candidate_year) - decade_of(detected)) <= 10


def matched_genres(snippet: str, analysis: FrameAnalysis) -> List[str]:
    """Genres mentioned in both the candidate snippet and the frame analysis."""
    snippet_lower = (snippet or "").lower()
    analysis_text = analysis.label_text()
    return [g for g in GENRE_KEYWORDS if g in snippet_lower and g in analysis_text]


def score_candidate(
    candidate: FilmCandidate,
    analysis: FrameAnalysis,
    feedback: Dict[str, bool],
    config: IdentificationConfig = DEFAULT_CONFIG,
) -> CandidateScore:
    result = CandidateScore()
    score = 0.0

    result.text_similarity = calculate_text_similarity(candidate.title, candidate.snippet, analysis.caption)
    score += config.weight_snippet_similarity * result.text_similarity

    if actor_match(analysis.faces):
        result.actor_match = True
        score += config.weight_actor_match
        result.matched_on.append("actor")

    if decade_match(candidate.year, analysis):
        result.decade_match = True
        score += config.weight_decade_match
        result.matched_on.extend(["decade", detect_decade(analysis)])

    genres = matched_genres(candidate.snippet, analysis)
    if genres:
        result.genre_match = True
        score += config.weight_genre_match
        result.matched_on.append("genre")
        result.matched_on.extend(genres)

    for chip, selected in sorted(feedback.items()):
        if selected and chip in result.matched_on:
            result.feedback_matches.append(chip)
            score += config.feedback_bonus

    result.score = max(0.0, min(score, 1.0))
    return result


def calculate_score(
    candidate: FilmCandidate,
    analysis: FrameAnalysis,
    feedback: Dict[str, bool],
    config: IdentificationConfig = DEFAULT_CONFIG,
) -> float:
    """Score in [0, 1]; see score_candidate for the breakdown."""
    return score_candidate(candidate, analysis, feedback, config).score
