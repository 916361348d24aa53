"""
Movie Store - persistence primitives used by the sync engine

Thin wrapper around one SQLAlchemy session. Every write commits (or rolls
back) before returning, so callers always observe committed state.
"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from moviecritic.exceptions import MovieNotFoundInStore
from moviecritic.models.cast_member import CastMember
from moviecritic.models.movie import Movie
import logging

logger = logging.getLogger(__name__)

# Columns the sync engine may overwrite on an existing movie
MUTABLE_MOVIE_FIELDS = (
    "title",
    "original_title",
    "poster_path",
    "backdrop_path",
    "release_date",
    "runtime",
    "overview",
    "tmdb_rating",
    "director",
    "genres",
    "last_synced",
)


class MovieStore:
    """Persisted movie and cast rows"""

    def __init__(self, db: Session):
        self.db = db

    # ==================== MOVIES ====================

    def find_one_by_external_id(self, tmdb_id: int) -> Movie:
        """
        Movie by TMDB id.

        Raises:
            MovieNotFoundInStore: no row for this id
        """
        movie = self.db.query(Movie).filter(Movie.tmdb_id == tmdb_id).first()
        if movie is None:
            raise MovieNotFoundInStore(tmdb_id)
        return movie

    def get_by_id(self, movie_id: int) -> Movie:
        movie = self.db.get(Movie, movie_id)
        if movie is None:
            raise LookupError(f"Movie {movie_id} not found")
        return movie

    def insert(self, fields: Dict) -> Movie:
        """
        Create a movie row. Lets IntegrityError through (after rollback)
        when another writer already stored the same tmdb_id.
        """
        movie = Movie(**fields)
        self.db.add(movie)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(movie)
        return movie

    def update_by_id(self, movie_id: int, fields: Dict) -> Movie:
        movie = self.get_by_id(movie_id)
        for key, value in fields.items():
            if key not in MUTABLE_MOVIE_FIELDS:
                raise ValueError(f"Field '{key}' cannot be updated by sync")
            setattr(movie, key, value)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(movie)
        return movie

    def list_stale(self, cutoff: datetime, limit: int = 50) -> List[Movie]:
        """Movies last synced before `cutoff`, oldest first"""
        return (
            self.db.query(Movie)
            .filter(Movie.last_synced < cutoff)
            .order_by(Movie.last_synced.asc())
            .limit(limit)
            .all()
        )

    def search(self, query: str, skip: int = 0, limit: int = 20) -> Tuple[List[Movie], int]:
        """Stored movies whose title or original title contains `query`"""
        pattern = f"%{query}%"
        q = self.db.query(Movie).filter(
            or_(Movie.title.ilike(pattern), Movie.original_title.ilike(pattern))
        )
        total = q.count()
        return q.order_by(Movie.title.asc(), Movie.id.asc()).offset(skip).limit(limit).all(), total

    def list_recent(self, limit: int = 20) -> List[Movie]:
        """Most recently added movies first"""
        return (
            self.db.query(Movie)
            .order_by(Movie.created_at.desc(), Movie.id.desc())
            .limit(limit)
            .all()
        )

    # ==================== CAST ====================

    def list_cast_by_movie(self, movie_id: int, limit: Optional[int] = None) -> List[CastMember]:
        """Cast rows in billing order"""
        query = (
            self.db.query(CastMember)
            .filter(CastMember.movie_id == movie_id)
            .order_by(CastMember.order.asc(), CastMember.id.asc())
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def delete_by_id(self, cast_id: int) -> None:
        cast_member = self.db.get(CastMember, cast_id)
        if cast_member is None:
            return
        self.db.delete(cast_member)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def insert_cast_row(self, fields: Dict) -> CastMember:
        cast_member = CastMember(**fields)
        self.db.add(cast_member)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(cast_member)
        return cast_member

    def replace_cast(self, movie_id: int, rows: Iterable[Dict]) -> List[CastMember]:
        """
        Delete every cast row of the movie and insert `rows`, atomically.

        Either the whole new set is committed or, on any failure, the
        previous rows are kept untouched.
        """
        try:
            for existing in self.list_cast_by_movie(movie_id):
                self.db.delete(existing)
            self.db.flush()

            created = []
            for fields in rows:
                cast_member = CastMember(movie_id=movie_id, **fields)
                self.db.add(cast_member)
                created.append(cast_member)

            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        logger.debug(f"Replaced cast of movie {movie_id} with {len(created)} rows")
        return self.list_cast_by_movie(movie_id)
