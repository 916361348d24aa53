from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func
from fastapi import HTTPException, status
from typing import List, Optional, Dict
import logging

from moviecritic.models.movie import Movie
from moviecritic.models.watchlist import Watchlist, WatchlistMovie
from moviecritic.schemas.watchlist import WatchlistCreate, WatchlistUpdate, WatchlistMovieAdd
from moviecritic.services.sync_service import MovieSyncService

logger = logging.getLogger(__name__)


class WatchlistService:
    """Service for named watchlists and the movies on them"""

    @staticmethod
    def _with_count(db: Session, watchlist: Watchlist) -> Watchlist:
        watchlist.items_count = db.query(func.count(WatchlistMovie.id)).filter(
            WatchlistMovie.watchlist_id == watchlist.id
        ).scalar() or 0
        return watchlist

    @staticmethod
    def create_list(db: Session, user_id: int, list_data: WatchlistCreate) -> Watchlist:
        """Create a new watchlist"""
        watchlist = Watchlist(
            user_id=user_id,
            name=list_data.name,
            description=list_data.description,
            is_public=list_data.is_public
        )
        db.add(watchlist)
        db.commit()
        db.refresh(watchlist)
        return WatchlistService._with_count(db, watchlist)

    @staticmethod
    def get_user_lists(db: Session, user_id: int) -> List[Watchlist]:
        """All lists of a user, newest first"""
        lists = db.query(Watchlist).filter(
            Watchlist.user_id == user_id
        ).order_by(Watchlist.created_at.desc(), Watchlist.id.desc()).all()
        return [WatchlistService._with_count(db, w) for w in lists]

    @staticmethod
    def get_list(db: Session, list_id: int, viewer_id: Optional[int] = None) -> Watchlist:
        """
        A watchlist as seen by `viewer_id` (None for anonymous).
        Private lists of other users look like missing ones.
        """
        watchlist = db.query(Watchlist).filter(Watchlist.id == list_id).first()

        if not watchlist or (not watchlist.is_public and watchlist.user_id != viewer_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Watchlist not found"
            )
        return WatchlistService._with_count(db, watchlist)

    @staticmethod
    def _get_owned(db: Session, user_id: int, list_id: int) -> Watchlist:
        watchlist = db.query(Watchlist).filter(Watchlist.id == list_id).first()
        if not watchlist:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Watchlist not found")
        if watchlist.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only modify your own watchlists"
            )
        return watchlist

    @staticmethod
    def update_list(db: Session, user_id: int, list_id: int, update_data: WatchlistUpdate) -> Watchlist:
        """Update a watchlist"""
        watchlist = WatchlistService._get_owned(db, user_id, list_id)

        if update_data.name is not None:
            watchlist.name = update_data.name  # type: ignore
        if update_data.description is not None:
            watchlist.description = update_data.description  # type: ignore
        if update_data.is_public is not None:
            watchlist.is_public = update_data.is_public  # type: ignore

        db.commit()
        db.refresh(watchlist)
        return WatchlistService._with_count(db, watchlist)

    @staticmethod
    def delete_list(db: Session, user_id: int, list_id: int) -> None:
        watchlist = WatchlistService._get_owned(db, user_id, list_id)
        db.delete(watchlist)
        db.commit()

    @staticmethod
    def add_movie(
        db: Session,
        sync_service: MovieSyncService,
        user_id: int,
        list_id: int,
        item_data: WatchlistMovieAdd
    ) -> WatchlistMovie:
        """Add a TMDB movie to a list, syncing it into the local store first"""
        WatchlistService._get_owned(db, user_id, list_id)
        movie = sync_service.sync_movie(item_data.movie_id)

        existing = db.query(WatchlistMovie).filter(
            WatchlistMovie.watchlist_id == list_id,
            WatchlistMovie.movie_id == movie.id
        ).first()

        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Movie already in this watchlist"
            )

        item = WatchlistMovie(
            watchlist_id=list_id,
            movie_id=movie.id,
            notes=item_data.notes
        )
        db.add(item)
        db.commit()

        logger.info(f"Added movie {movie.tmdb_id} to watchlist {list_id}")
        return db.query(WatchlistMovie).options(joinedload(WatchlistMovie.movie)).filter(
            WatchlistMovie.id == item.id
        ).first()

    @staticmethod
    def remove_movie(db: Session, user_id: int, list_id: int, item_id: int) -> None:
        WatchlistService._get_owned(db, user_id, list_id)

        item = db.query(WatchlistMovie).filter(
            WatchlistMovie.id == item_id,
            WatchlistMovie.watchlist_id == list_id
        ).first()

        if not item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Item not found in watchlist"
            )

        db.delete(item)
        db.commit()

    @staticmethod
    def get_list_items(db: Session, list_id: int, viewer_id: Optional[int] = None) -> List[WatchlistMovie]:
        """Movies on a list, most recently added first"""
        WatchlistService.get_list(db, list_id, viewer_id)

        return db.query(WatchlistMovie).options(joinedload(WatchlistMovie.movie)).filter(
            WatchlistMovie.watchlist_id == list_id
        ).order_by(WatchlistMovie.added_at.desc(), WatchlistMovie.id.desc()).all()

    @staticmethod
    def check_membership(db: Session, user_id: int, list_id: int, tmdb_id: int) -> Dict:
        """
        Whether a movie is on one of the user's lists
        Note: tmdb_id is the TMDB movie ID, not the internal movie.id
        """
        WatchlistService._get_owned(db, user_id, list_id)

        item = db.query(WatchlistMovie).join(Movie).filter(
            WatchlistMovie.watchlist_id == list_id,
            Movie.tmdb_id == tmdb_id
        ).first()

        if item:
            return {"in_watchlist": True, "item_id": item.id}
        return {"in_watchlist": False, "item_id": None}
