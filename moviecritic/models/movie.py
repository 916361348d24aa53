"""
Movie model - local copy of a TMDB movie

Rows are created on the first successful sync and refreshed in place once
they are older than the staleness window. `tmdb_id` is the natural key and
is unique, so at most one local copy exists per TMDB movie.
"""
from sqlalchemy import Column, Integer, String, Float, JSON, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from moviecritic.database import Base


class Movie(Base):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, index=True)
    tmdb_id = Column(Integer, unique=True, nullable=False, index=True)

    title = Column(String(500), nullable=False)
    original_title = Column(String(500))
    poster_path = Column(String(200))
    backdrop_path = Column(String(200))
    release_date = Column(String(20))
    runtime = Column(Integer)
    overview = Column(Text)
    tmdb_rating = Column(Float, default=0.0)   # TMDB vote average (0-10)
    director = Column(String(255), default="Unknown")
    genres = Column(JSON)  # Ordered list of genre objects [{id, name}]

    last_synced = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    cast_members = relationship(
        "CastMember",
        back_populates="movie",
        cascade="all, delete-orphan",
        order_by="CastMember.order",
    )
    reviews = relationship("Review", back_populates="movie", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Movie(tmdb_id={self.tmdb_id}, title='{self.title}')>"
