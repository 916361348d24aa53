from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from moviecritic.config import get_settings
from moviecritic.database import get_db
from moviecritic.models.user import User
from moviecritic.services.movie_store import MovieStore
from moviecritic.services.sync_service import MovieSyncService
from moviecritic.services.tmdb_service import TMDBService
from moviecritic.utils.security import decode_token

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def _user_from_token(token: str, db: Session) -> User:
    payload = decode_token(token)
    if payload is None or payload.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user_id = payload.get("user_id")
    user = db.query(User).filter(User.id == user_id).first()

    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")

    return user


# Dependency to get the current authenticated user
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    return _user_from_token(credentials.credentials, db)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Current user when a bearer token is sent, None for anonymous requests"""
    if credentials is None:
        return None
    return _user_from_token(credentials.credentials, db)


@lru_cache(maxsize=1)
def get_tmdb_service() -> TMDBService:
    """One TMDB client per process so its list cache is shared"""
    return TMDBService.from_settings(get_settings())


def get_movie_store(db: Session = Depends(get_db)) -> MovieStore:
    return MovieStore(db)


def get_sync_service(
    tmdb: TMDBService = Depends(get_tmdb_service),
    store: MovieStore = Depends(get_movie_store),
) -> MovieSyncService:
    return MovieSyncService(tmdb, store, max_attempts=get_settings().sync_max_attempts)
