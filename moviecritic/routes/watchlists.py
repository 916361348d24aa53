from fastapi import APIRouter, Depends, status, Path
from sqlalchemy.orm import Session
from typing import List, Optional

from moviecritic.database import get_db
from moviecritic.utils.dependencies import get_current_user, get_optional_user, get_sync_service
from moviecritic.models.user import User
from moviecritic.schemas.watchlist import (
    WatchlistCreate,
    WatchlistUpdate,
    WatchlistResponse,
    WatchlistMovieAdd,
    WatchlistMovieResponse,
    WatchlistMembership,
)
from moviecritic.services.sync_service import MovieSyncService
from moviecritic.services.watchlist_service import WatchlistService

router = APIRouter(prefix="/api/watchlists", tags=["Watchlists"])


def get_user_id(user: Optional[User]) -> Optional[int]:
    """Helper to extract user_id as int for type safety"""
    return int(user.id) if user else None  # type: ignore


# ==================== LIST ENDPOINTS ====================

@router.post("/", response_model=WatchlistResponse, status_code=status.HTTP_201_CREATED)
def create_watchlist(
    list_data: WatchlistCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a watchlist

    - **name**: List name (required)
    - **description**: optional
    - **is_public**: whether other users can read it
    """
    return WatchlistService.create_list(db, get_user_id(current_user), list_data)


@router.get("/", response_model=List[WatchlistResponse])
def get_my_watchlists(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return WatchlistService.get_user_lists(db, get_user_id(current_user))


@router.get("/{list_id}", response_model=WatchlistResponse)
def get_watchlist(
    list_id: int = Path(..., gt=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """A public list, or one of your own"""
    return WatchlistService.get_list(db, list_id, get_user_id(current_user))


@router.patch("/{list_id}", response_model=WatchlistResponse)
def update_watchlist(
    update_data: WatchlistUpdate,
    list_id: int = Path(..., gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return WatchlistService.update_list(db, get_user_id(current_user), list_id, update_data)


@router.delete("/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_watchlist(
    list_id: int = Path(..., gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    WatchlistService.delete_list(db, get_user_id(current_user), list_id)
    return None


# ==================== ITEM ENDPOINTS ====================

@router.get("/{list_id}/movies", response_model=List[WatchlistMovieResponse])
def get_watchlist_movies(
    list_id: int = Path(..., gt=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    return WatchlistService.get_list_items(db, list_id, get_user_id(current_user))


@router.post("/{list_id}/movies", response_model=WatchlistMovieResponse, status_code=status.HTTP_201_CREATED)
def add_movie_to_watchlist(
    item_data: WatchlistMovieAdd,
    list_id: int = Path(..., gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    sync_service: MovieSyncService = Depends(get_sync_service)
):
    """
    Add a movie to a list

    - **movie_id**: TMDB movie ID, synced into the local store first
    - **notes**: Personal notes (optional)
    """
    return WatchlistService.add_movie(db, sync_service, get_user_id(current_user), list_id, item_data)


@router.get("/{list_id}/movies/check/{tmdb_id}", response_model=WatchlistMembership)
def check_movie_in_watchlist(
    list_id: int = Path(..., gt=0),
    tmdb_id: int = Path(..., description="TMDB movie ID", gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return WatchlistService.check_membership(db, get_user_id(current_user), list_id, tmdb_id)


@router.delete("/{list_id}/movies/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_movie_from_watchlist(
    list_id: int = Path(..., gt=0),
    item_id: int = Path(..., gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    WatchlistService.remove_movie(db, get_user_id(current_user), list_id, item_id)
    return None
