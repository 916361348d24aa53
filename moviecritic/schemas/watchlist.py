from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, List


class WatchlistCreate(BaseModel):
    """Schema for creating a watchlist"""
    name: str = Field(..., min_length=1, max_length=100, description="List name")
    description: Optional[str] = Field(None, max_length=500, description="List description")
    is_public: bool = Field(False, description="Is list public?")


class WatchlistUpdate(BaseModel):
    """Schema for updating a watchlist"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_public: Optional[bool] = None


class WatchlistMovieAdd(BaseModel):
    """Schema for adding a movie to a watchlist"""
    movie_id: int = Field(..., description="TMDB movie ID", gt=0)
    notes: Optional[str] = Field(None, max_length=500, description="Personal notes")


class WatchlistMovieResponse(BaseModel):
    id: int
    watchlist_id: int
    movie_id: int  # Internal DB id
    tmdb_id: Optional[int] = None
    notes: Optional[str] = None
    added_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class WatchlistResponse(BaseModel):
    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    is_public: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items_count: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class WatchlistMembership(BaseModel):
    """Whether a movie is on a list"""
    in_watchlist: bool
    item_id: Optional[int] = None
