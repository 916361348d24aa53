from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from moviecritic.database import Base


class CastMember(Base):
    """
    One acting credit of a movie

    Owned by its Movie: every re-sync replaces the whole set, so the rows
    always mirror the latest TMDB credits. `order` is the billing rank
    (lower = more prominent).
    """
    __tablename__ = "cast_members"

    id = Column(Integer, primary_key=True, index=True)
    movie_id = Column(Integer, ForeignKey("movies.id", ondelete="CASCADE"), nullable=False, index=True)
    tmdb_id = Column(Integer, nullable=False, index=True)  # TMDB person id
    name = Column(String(255), nullable=False)
    character = Column(String(500))
    profile_path = Column(String(200))
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    movie = relationship("Movie", back_populates="cast_members")

    def __repr__(self):
        return f"<CastMember(movie_id={self.movie_id}, name='{self.name}', order={self.order})>"
