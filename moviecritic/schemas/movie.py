"""
Movie Schemas - responses for locally stored movies and the sync endpoint
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional


class SyncRequest(BaseModel):
    """Body of POST /api/movies/sync"""
    tmdb_id: int = Field(..., description="TMDB movie ID", gt=0)


class GenreResponse(BaseModel):
    id: int
    name: str


class CastMemberResponse(BaseModel):
    id: int
    movie_id: int
    tmdb_id: int = Field(..., description="TMDB person ID")
    name: str
    character: Optional[str] = None
    profile_path: Optional[str] = None
    order: int

    model_config = ConfigDict(from_attributes=True)


class MovieResponse(BaseModel):
    """A movie as stored locally"""
    id: int
    tmdb_id: int
    title: str
    original_title: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    release_date: Optional[str] = None
    runtime: Optional[int] = None
    overview: Optional[str] = None
    tmdb_rating: Optional[float] = None
    director: Optional[str] = None
    genres: List[GenreResponse] = []
    last_synced: datetime

    model_config = ConfigDict(from_attributes=True)


class MovieListResponse(BaseModel):
    page: int
    per_page: int
    total_items: int
    items: List[MovieResponse]
