"""
Review Schemas - Pydantic models for review request/response validation
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import List, Optional

from moviecritic.schemas.validation import SafeStringMixin


class ReviewCreate(BaseModel, SafeStringMixin):
    """Schema for creating a review"""
    movie_id: int = Field(..., description="TMDB movie ID", gt=0)
    rating: int = Field(..., description="Rating value (1-10)", ge=1, le=10)
    title: str = Field("", max_length=200)
    content: str = Field("", max_length=5000)
    contains_spoilers: bool = False

    @field_validator('title', 'content')
    @classmethod
    def clean_text(cls, v):
        v = cls.validate_no_script(v)
        return cls.sanitize_html(v)


class ReviewUpdate(BaseModel, SafeStringMixin):
    """Schema for updating a review - only sent fields change"""
    rating: Optional[int] = Field(None, ge=1, le=10)
    title: Optional[str] = Field(None, max_length=200)
    content: Optional[str] = Field(None, max_length=5000)
    contains_spoilers: Optional[bool] = None

    @field_validator('title', 'content')
    @classmethod
    def clean_text(cls, v):
        if v is None:
            return v
        v = cls.validate_no_script(v)
        return cls.sanitize_html(v)


class ReviewResponse(BaseModel):
    id: int
    user_id: int
    user_name: Optional[str] = None
    movie_id: int  # Internal DB movie ID
    tmdb_id: Optional[int] = None
    rating: int
    title: str = ""
    content: str = ""
    contains_spoilers: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewListResponse(BaseModel):
    page: int
    per_page: int
    total_items: int
    items: List[ReviewResponse]


class MovieRatingStats(BaseModel):
    """Community rating of one movie"""
    total_reviews: int = Field(..., description="Total reviews for this movie")
    average_rating: float = Field(..., description="Average user rating, one decimal")


class GenrePreference(BaseModel):
    name: str
    count: int


class ReviewStats(BaseModel):
    """Profile statistics of a reviewer"""
    total_reviews: int
    average_rating: float
    genre_preferences: List[GenrePreference]
