"""
Candidate models: web search results, scored film guesses, and film details.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SearchResult(BaseModel):
    """One ranked web search hit."""

    title: str = ""
    link: str = ""
    snippet: str = ""


class FilmCandidate(BaseModel):
    """A scored guess at the source film, built fresh each scoring pass."""

    title: str
    year: int = 0
    catalog_id: str
    score: float = 0.0
    matched_on: List[str] = Field(default_factory=list)
    source: str = "web_search"
    snippet: str = ""


class Genre(BaseModel):
    id: int = 0
    name: str


class CastMember(BaseModel):
    name: str
    character: str = ""
    order: int = 0


class CrewMember(BaseModel):
    name: str
    job: str = ""
    department: str = ""


class Credits(BaseModel):
    cast: List[CastMember] = Field(default_factory=list)
    crew: List[CrewMember] = Field(default_factory=list)


class FilmDetails(BaseModel):
    """Full film metadata returned by the film detail provider."""

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str
    release_date: Optional[str] = ""
    overview: Optional[str] = ""
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    vote_average: float = 0.0
    genres: List[Genre] = Field(default_factory=list)
    runtime: Optional[int] = None
    credits: Credits = Field(default_factory=Credits)

    @property
    def year(self) -> int:
        """Release year parsed from release_date ("YYYY-MM-DD"), 0 when unknown."""
        date = self.release_date or ""
        return int(date[:4]) if len(date) >= 4 and date[:4].isdigit() else 0
