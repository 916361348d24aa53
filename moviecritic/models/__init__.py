"""
Import all models to ensure they are registered with SQLAlchemy
"""
from moviecritic.models.user import User
from moviecritic.models.movie import Movie
from moviecritic.models.cast_member import CastMember
from moviecritic.models.review import Review
from moviecritic.models.watchlist import Watchlist, WatchlistMovie

__all__ = [
    "User",
    "Movie",
    "CastMember",
    "Review",
    "Watchlist",
    "WatchlistMovie"
]
