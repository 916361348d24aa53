"""
TMDB payload schemas

Typed views over the JSON TMDB returns. Unknown fields are ignored, so new
upstream fields never break parsing.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class TMDBModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Genre(TMDBModel):
    id: int
    name: str


class CastMember(TMDBModel):
    id: int
    name: str
    character: Optional[str] = None
    profile_path: Optional[str] = None
    order: int = 0


class CrewMember(TMDBModel):
    id: int
    name: str
    job: Optional[str] = None
    department: Optional[str] = None
    profile_path: Optional[str] = None


class Credits(TMDBModel):
    cast: List[CastMember] = Field(default_factory=list)
    crew: List[CrewMember] = Field(default_factory=list)


class MovieSummary(TMDBModel):
    """Movie as it appears in search and list results"""
    id: int
    title: str = ""
    original_title: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    release_date: Optional[str] = None
    overview: Optional[str] = None
    vote_average: float = 0.0
    genre_ids: List[int] = Field(default_factory=list)


class MovieDetails(TMDBModel):
    """Full movie details with credits appended in the same response"""
    id: int
    title: str = ""
    original_title: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    release_date: Optional[str] = None
    runtime: Optional[int] = None
    overview: Optional[str] = None
    vote_average: Optional[float] = 0.0
    genres: Optional[List[Genre]] = Field(default_factory=list)
    credits: Credits = Field(default_factory=Credits)


class SearchResult(TMDBModel):
    page: int = 1
    results: List[MovieSummary] = Field(default_factory=list)
    total_pages: int = 0
    total_results: int = 0


class GenreList(TMDBModel):
    genres: List[Genre] = Field(default_factory=list)


class PersonDetails(TMDBModel):
    id: int
    name: str
    biography: Optional[str] = None
    birthday: Optional[str] = None
    deathday: Optional[str] = None
    place_of_birth: Optional[str] = None
    profile_path: Optional[str] = None
    known_for_department: Optional[str] = None


class MovieCredit(TMDBModel):
    """One movie in a person's filmography"""
    id: int
    title: str = ""
    character: Optional[str] = None
    poster_path: Optional[str] = None
    release_date: Optional[str] = None
    vote_average: float = 0.0


class PersonCredits(TMDBModel):
    id: Optional[int] = None
    cast: List[MovieCredit] = Field(default_factory=list)
