"""
Review Routes - API endpoints for movie reviews
"""

from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.orm import Session
from typing import List, Optional

from moviecritic.database import get_db
from moviecritic.utils.dependencies import get_current_user, get_sync_service
from moviecritic.models.user import User
from moviecritic.schemas.review import (
    ReviewCreate,
    ReviewUpdate,
    ReviewResponse,
    ReviewListResponse,
    ReviewStats,
    MovieRatingStats,
)
from moviecritic.schemas.validation import validate_pagination
from moviecritic.services.review_service import ReviewService
from moviecritic.services.sync_service import MovieSyncService

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])


def get_user_id(user: User) -> int:
    """Helper to extract user_id as int for type safety"""
    return int(user.id)  # type: ignore


# ==================== REVIEW CRUD ENDPOINTS ====================

@router.post("/", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def create_review(
    review_data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    sync_service: MovieSyncService = Depends(get_sync_service)
):
    """
    Review a movie

    - **movie_id**: TMDB movie ID (required)
    - **rating**: 1 to 10 (required)

    The movie is synced from TMDB first. One review per user per movie.
    """
    return ReviewService.create_review(db, sync_service, get_user_id(current_user), review_data)


@router.get("/recent", response_model=List[ReviewResponse])
def get_recent_reviews(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db)
):
    return ReviewService.get_recent_reviews(db, limit)


@router.get("/user/me", response_model=ReviewListResponse)
def get_my_reviews(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Reviews written by the current user, newest first"""
    page, per_page = validate_pagination(page, per_page)
    items, total = ReviewService.get_user_reviews(
        db, get_user_id(current_user), (page - 1) * per_page, per_page
    )
    return {"page": page, "per_page": per_page, "total_items": total, "items": items}


@router.get("/stats", response_model=ReviewStats)
def get_my_review_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Profile statistics of the current user

    Total reviews, average rating and the five most reviewed genres.
    """
    return ReviewService.get_user_stats(db, get_user_id(current_user))


@router.get("/movie/{tmdb_movie_id}", response_model=ReviewListResponse)
def get_movie_reviews(
    tmdb_movie_id: int = Path(..., description="TMDB movie ID", gt=0),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """Reviews of a movie, newest first. Public endpoint."""
    page, per_page = validate_pagination(page, per_page)
    items, total = ReviewService.get_movie_reviews(db, tmdb_movie_id, (page - 1) * per_page, per_page)
    return {"page": page, "per_page": per_page, "total_items": total, "items": items}


@router.get("/movie/{tmdb_movie_id}/mine", response_model=Optional[ReviewResponse])
def get_my_review_for_movie(
    tmdb_movie_id: int = Path(..., description="TMDB movie ID", gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Current user's review of a movie, or null"""
    return ReviewService.get_user_review_for_movie(db, get_user_id(current_user), tmdb_movie_id)


@router.get("/movie/{tmdb_movie_id}/stats", response_model=MovieRatingStats)
def get_movie_rating_stats(
    tmdb_movie_id: int = Path(..., description="TMDB movie ID", gt=0),
    db: Session = Depends(get_db)
):
    """
    Community rating of a movie

    Public endpoint - no authentication required.
    """
    return ReviewService.get_movie_stats(db, tmdb_movie_id)


@router.get("/{review_id}", response_model=ReviewResponse)
def get_review(
    review_id: int = Path(..., gt=0),
    db: Session = Depends(get_db)
):
    return ReviewService.get_review(db, review_id)


@router.patch("/{review_id}", response_model=ReviewResponse)
def update_review(
    review_data: ReviewUpdate,
    review_id: int = Path(..., gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Only the author may edit a review"""
    return ReviewService.update_review(db, get_user_id(current_user), review_id, review_data)


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(
    review_id: int = Path(..., description="Review ID to delete", gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Delete a review

    Only the author may delete it. Returns 204 No Content on success.
    """
    ReviewService.delete_review(db, get_user_id(current_user), review_id)
    return None
