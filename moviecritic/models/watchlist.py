from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from typing import Optional
from moviecritic.database import Base


class Watchlist(Base):
    """
    Named movie list owned by a user (e.g. "Weekend", "Sci-Fi Classics")
    """
    __tablename__ = "watchlists"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_public = Column(Boolean, default=False)  # Can other users see this list?
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="watchlists")
    items = relationship("WatchlistMovie", back_populates="watchlist", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Watchlist(id={self.id}, name={self.name}, user_id={self.user_id})>"


class WatchlistMovie(Base):
    """
    A movie on a watchlist, with optional personal notes
    """
    __tablename__ = "watchlist_movies"

    id = Column(Integer, primary_key=True, index=True)
    watchlist_id = Column(Integer, ForeignKey('watchlists.id', ondelete='CASCADE'), nullable=False, index=True)
    movie_id = Column(Integer, ForeignKey('movies.id', ondelete='CASCADE'), nullable=False, index=True)
    notes = Column(Text, nullable=True)
    added_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    watchlist = relationship("Watchlist", back_populates="items")
    movie = relationship("Movie")

    # Ensure one entry per movie per list
    __table_args__ = (
        UniqueConstraint('watchlist_id', 'movie_id', name='unique_watchlist_movie'),
    )

    @property
    def tmdb_id(self) -> Optional[int]:
        """Get TMDB ID from related movie"""
        return self.movie.tmdb_id if self.movie else None

    def __repr__(self):
        return f"<WatchlistMovie(watchlist_id={self.watchlist_id}, movie_id={self.movie_id})>"
