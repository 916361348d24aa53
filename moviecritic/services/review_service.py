"""
Review Service - Handle all review-related business logic

A review always points at a locally stored movie, so creating one first
runs the movie through the sync engine.
"""

from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
from typing import List, Optional, Dict, Tuple
from collections import Counter
import logging

from moviecritic.models.review import Review
from moviecritic.models.movie import Movie
from moviecritic.schemas.review import ReviewCreate, ReviewUpdate
from moviecritic.services.sync_service import MovieSyncService

logger = logging.getLogger(__name__)

TOP_GENRES_LIMIT = 5


class ReviewService:
    """Service for movie review operations"""

    @staticmethod
    def _load(db: Session, review_id: int) -> Optional[Review]:
        return db.query(Review).options(
            joinedload(Review.movie),
            joinedload(Review.user)
        ).filter(Review.id == review_id).first()

    @staticmethod
    def _get_owned(db: Session, user_id: int, review_id: int) -> Review:
        """Review by id, 404 when missing and 403 when someone else wrote it"""
        review = ReviewService._load(db, review_id)
        if not review:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")
        if review.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only modify your own reviews"
            )
        return review

    @staticmethod
    def create_review(
        db: Session,
        sync_service: MovieSyncService,
        user_id: int,
        review_data: ReviewCreate
    ) -> Review:
        """
        Create a review for a TMDB movie

        Raises:
            HTTPException 409: the user already reviewed this movie
            UpstreamError / NetworkError: the movie could not be synced
        """
        movie = sync_service.sync_movie(review_data.movie_id)

        existing = db.query(Review).filter(
            Review.user_id == user_id,
            Review.movie_id == movie.id
        ).first()
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You have already reviewed this movie"
            )

        review = Review(
            user_id=user_id,
            movie_id=movie.id,
            rating=review_data.rating,
            title=review_data.title,
            content=review_data.content,
            contains_spoilers=review_data.contains_spoilers
        )
        db.add(review)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You have already reviewed this movie"
            )

        logger.info(f"User {user_id} reviewed movie {movie.tmdb_id} ({review.rating}/10)")
        return ReviewService._load(db, review.id)

    @staticmethod
    def update_review(db: Session, user_id: int, review_id: int, review_data: ReviewUpdate) -> Review:
        review = ReviewService._get_owned(db, user_id, review_id)

        for key, value in review_data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(review, key, value)

        db.commit()
        return ReviewService._load(db, review.id)

    @staticmethod
    def delete_review(db: Session, user_id: int, review_id: int) -> bool:
        review = ReviewService._get_owned(db, user_id, review_id)
        db.delete(review)
        db.commit()
        return True

    @staticmethod
    def get_review(db: Session, review_id: int) -> Review:
        review = ReviewService._load(db, review_id)
        if not review:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")
        return review

    @staticmethod
    def get_movie_reviews(
        db: Session,
        tmdb_movie_id: int,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Review], int]:
        """Reviews of a movie (by TMDB ID), newest first, with the total count"""
        query = db.query(Review).join(Movie).options(
            joinedload(Review.movie),
            joinedload(Review.user)
        ).filter(Movie.tmdb_id == tmdb_movie_id)

        total = query.count()
        reviews = query.order_by(Review.created_at.desc(), Review.id.desc()).offset(skip).limit(limit).all()
        return reviews, total

    @staticmethod
    def get_user_reviews(
        db: Session,
        user_id: int,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Review], int]:
        query = db.query(Review).options(
            joinedload(Review.movie),
            joinedload(Review.user)
        ).filter(Review.user_id == user_id)

        total = query.count()
        reviews = query.order_by(Review.created_at.desc(), Review.id.desc()).offset(skip).limit(limit).all()
        return reviews, total

    @staticmethod
    def get_recent_reviews(db: Session, limit: int = 10) -> List[Review]:
        return db.query(Review).options(
            joinedload(Review.movie),
            joinedload(Review.user)
        ).order_by(Review.created_at.desc(), Review.id.desc()).limit(limit).all()

    @staticmethod
    def get_user_review_for_movie(db: Session, user_id: int, tmdb_movie_id: int) -> Optional[Review]:
        return db.query(Review).join(Movie).options(
            joinedload(Review.movie)
        ).filter(
            Review.user_id == user_id,
            Movie.tmdb_id == tmdb_movie_id
        ).first()

    @staticmethod
    def get_movie_stats(db: Session, tmdb_movie_id: int) -> Dict:
        """
        Community rating of a movie

        Returns:
            Dictionary with total_reviews and average_rating (one decimal)
        """
        ratings = [
            row[0] for row in db.query(Review.rating).join(Movie).filter(Movie.tmdb_id == tmdb_movie_id).all()
        ]
        if not ratings:
            return {"total_reviews": 0, "average_rating": 0.0}

        return {
            "total_reviews": len(ratings),
            "average_rating": round(sum(ratings) / len(ratings), 1)
        }

    @staticmethod
    def get_user_stats(db: Session, user_id: int) -> Dict:
        """
        Profile statistics of a reviewer

        Returns:
            Dictionary with total_reviews, average_rating (one decimal) and
            the user's most reviewed genres (top 5, most frequent first)
        """
        reviews = db.query(Review).options(joinedload(Review.movie)).filter(Review.user_id == user_id).all()

        if not reviews:
            return {"total_reviews": 0, "average_rating": 0.0, "genre_preferences": []}

        total = len(reviews)
        avg = sum(r.rating for r in reviews) / total

        genre_counts = Counter()
        for review in reviews:
            genres = review.movie.genres if review.movie else None
            for genre in genres or []:
                name = genre.get("name") if isinstance(genre, dict) else None
                if name:
                    genre_counts[name] += 1

        return {
            "total_reviews": total,
            "average_rating": round(avg, 1),
            "genre_preferences": [
                {"name": name, "count": count}
                for name, count in genre_counts.most_common(TOP_GENRES_LIMIT)
            ]
        }
