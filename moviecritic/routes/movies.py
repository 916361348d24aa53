from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status
from typing import Any, Dict, List

from moviecritic.exceptions import MovieNotFoundInStore
from moviecritic.schemas.movie import CastMemberResponse, MovieListResponse, MovieResponse, SyncRequest
from moviecritic.schemas.tmdb import GenreList, SearchResult
from moviecritic.schemas.validation import validate_pagination
from moviecritic.services.movie_store import MovieStore
from moviecritic.services.sync_service import MovieSyncService, PERSISTED_CAST_LIMIT
from moviecritic.services.tmdb_service import TMDBService
from moviecritic.utils.dependencies import get_movie_store, get_sync_service, get_tmdb_service

router = APIRouter(prefix="/api/movies", tags=["Movies"])


# ============================================
# Search & lists (TMDB, cached per process)
# ============================================

@router.get("/genres", response_model=GenreList)
def get_genres(tmdb: TMDBService = Depends(get_tmdb_service)):
    """Get list of all available movie genres"""
    return tmdb.get_genres()


@router.get("/search", response_model=SearchResult)
def search_movies(
    query: str = Query("", max_length=200, description="Search query"),
    page: int = Query(1, ge=1, le=500, description="Page number"),
    tmdb: TMDBService = Depends(get_tmdb_service)
):
    """
    Text search for movies on TMDB

    A blank query returns an empty page without calling TMDB.
    """
    query = query.strip()
    if not query:
        return SearchResult(page=page)
    return tmdb.search_movies(query, page)


@router.get("/popular", response_model=SearchResult)
def get_popular(page: int = Query(1, ge=1, le=500), tmdb: TMDBService = Depends(get_tmdb_service)):
    """Get popular movies"""
    return tmdb.get_popular_movies(page)


@router.get("/now-playing", response_model=SearchResult)
def get_now_playing(page: int = Query(1, ge=1, le=500), tmdb: TMDBService = Depends(get_tmdb_service)):
    """Get now playing movies"""
    return tmdb.get_now_playing_movies(page)


@router.get("/top-rated", response_model=SearchResult)
def get_top_rated(page: int = Query(1, ge=1, le=500), tmdb: TMDBService = Depends(get_tmdb_service)):
    """Get top rated movies"""
    return tmdb.get_top_rated_movies(page)


# ============================================
# Sync into the local store
# ============================================

@router.post("/sync", response_model=MovieResponse)
def sync_movie(
    payload: SyncRequest,
    response: Response,
    sync_service: MovieSyncService = Depends(get_sync_service)
):
    """
    Ensure a current local copy of a TMDB movie exists

    - **201** when the movie was created
    - **200** when it was fresh or has been refreshed
    """
    outcome = sync_service.sync(payload.tmdb_id)
    response.status_code = status.HTTP_201_CREATED if outcome.created else status.HTTP_200_OK
    return outcome.movie


# ============================================
# Local store queries
# ============================================

@router.get("/local/search", response_model=MovieListResponse)
def search_local_movies(
    q: str = Query(..., min_length=1, max_length=200, description="Title fragment"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    store: MovieStore = Depends(get_movie_store)
):
    """Search stored movies by title and original title"""
    page, per_page = validate_pagination(page, per_page)
    items, total = store.search(q.strip(), skip=(page - 1) * per_page, limit=per_page)
    return {"page": page, "per_page": per_page, "total_items": total, "items": items}


@router.get("/local/recent", response_model=List[MovieResponse])
def get_recent_movies(
    limit: int = Query(20, ge=1, le=100),
    store: MovieStore = Depends(get_movie_store)
):
    """Most recently added movies"""
    return store.list_recent(limit)


@router.get("/local/{movie_id}", response_model=MovieResponse)
def get_local_movie(
    movie_id: int = Path(..., description="Local movie ID", gt=0),
    store: MovieStore = Depends(get_movie_store)
):
    try:
        return store.get_by_id(movie_id)
    except LookupError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found")


@router.get("/tmdb/{tmdb_id}", response_model=MovieResponse)
def get_movie_by_tmdb_id(
    tmdb_id: int = Path(..., description="TMDB movie ID", gt=0),
    store: MovieStore = Depends(get_movie_store)
):
    """Stored copy of a TMDB movie, without syncing"""
    try:
        return store.find_one_by_external_id(tmdb_id)
    except MovieNotFoundInStore:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found")


@router.get("/tmdb/{tmdb_id}/cast", response_model=List[CastMemberResponse])
def get_movie_cast(
    tmdb_id: int = Path(..., description="TMDB movie ID", gt=0),
    limit: int = Query(PERSISTED_CAST_LIMIT, ge=1, le=PERSISTED_CAST_LIMIT),
    store: MovieStore = Depends(get_movie_store)
):
    """Stored cast of a movie in billing order"""
    try:
        movie = store.find_one_by_external_id(tmdb_id)
    except MovieNotFoundInStore:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found")
    return store.list_cast_by_movie(movie.id, limit=limit)


# ============================================
# Movie Details (MUST be last - dynamic route)
# ============================================

@router.get("/{movie_id}")
def get_movie_details(
    movie_id: int = Path(..., description="TMDB movie ID", gt=0),
    tmdb: TMDBService = Depends(get_tmdb_service)
) -> Dict[str, Any]:
    """Live TMDB details with director, top billed cast and image URLs"""
    details = tmdb.get_movie_details(movie_id)
    payload = details.model_dump(exclude={"credits"})
    payload.update({
        "director": tmdb.get_director(details),
        "cast": [
            {**member.model_dump(), "profile_url": tmdb.get_image_url(member.profile_path, "w185")}
            for member in tmdb.get_cast(details)
        ],
        "poster_url": tmdb.get_image_url(details.poster_path),
        "backdrop_url": tmdb.get_image_url(details.backdrop_path, "original"),
    })
    return payload
