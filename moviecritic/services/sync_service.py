"""
Movie Sync Service - keeps local movies in step with TMDB

Cache-aside with a fixed time-to-live:

    lookup by tmdb_id
      - missing            -> fetch from TMDB, insert movie, write cast
      - present and fresh  -> return it untouched
      - present and stale  -> fetch from TMDB, update movie, replace cast

Every TMDB fetch happens before the first write, so a TMDB failure never
leaves anything half written. The cast rows of a movie are always replaced
as a whole, inside one transaction.
"""
import random
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from moviecritic.exceptions import (
    MovieNotFoundInStore,
    NetworkError,
    PartialSyncFailure,
    UpstreamError,
)
from moviecritic.models.cast_member import CastMember as CastMemberRecord
from moviecritic.models.movie import Movie
from moviecritic.schemas.tmdb import CastMember, MovieDetails
from moviecritic.services.movie_store import MovieStore
from moviecritic.services.tmdb_service import TMDBService
import logging

logger = logging.getLogger(__name__)

# A movie older than this is re-fetched on the next sync
STALE_AFTER = timedelta(days=7)
# Cast rows kept per movie (the UI shows fewer)
PERSISTED_CAST_LIMIT = 50
DEFAULT_MAX_ATTEMPTS = 3
RETRY_BASE_DELAY_SECONDS = 0.5

CREATED = "created"
UPDATED = "updated"
UNCHANGED = "unchanged"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class SyncOutcome:
    movie: Movie
    action: str

    @property
    def created(self) -> bool:
        return self.action == CREATED


@dataclass
class RefreshReport:
    checked: int = 0
    updated: int = 0
    cast_retried: int = 0
    failed: int = 0
    errors: Dict[int, str] = field(default_factory=dict)

    def as_dict(self) -> Dict:
        return {
            "checked": self.checked,
            "updated": self.updated,
            "cast_retried": self.cast_retried,
            "failed": self.failed,
            "errors": {str(k): v for k, v in self.errors.items()},
        }


class KeyedLocks:
    """One lock per key, dropped again once nobody holds or waits for it"""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}
        self._holders: Dict[int, int] = {}

    @contextmanager
    def hold(self, key: int):
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._holders[key] = self._holders.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._holders[key] -= 1
                if not self._holders[key]:
                    del self._holders[key]
                    del self._locks[key]


# Shared by every MovieSyncService in this process
sync_locks = KeyedLocks()


def is_transient(error: Exception) -> bool:
    """Errors worth another attempt: transport failures, 429 and 5xx"""
    if isinstance(error, NetworkError):
        return True
    return isinstance(error, UpstreamError) and error.is_transient


class MovieSyncService:
    """Reconciles one TMDB movie (and its cast) into the local store"""

    def __init__(
        self,
        tmdb: TMDBService,
        store: MovieStore,
        stale_after: timedelta = STALE_AFTER,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Callable[[float], None] = time.sleep,
        locks: Optional[KeyedLocks] = None,
    ):
        self.tmdb = tmdb
        self.store = store
        self.stale_after = stale_after
        self.max_attempts = max(1, max_attempts)
        self._clock = clock
        self._sleep = sleep
        self._locks = locks or sync_locks

    # ============================================
    # Public API
    # ============================================

    def sync_movie(self, tmdb_id: int) -> Movie:
        """Make sure a current local copy of the movie exists and return it"""
        return self.sync(tmdb_id).movie

    def sync(self, tmdb_id: int) -> SyncOutcome:
        """
        Same as sync_movie, but also reports which path was taken.

        Raises:
            UpstreamError: TMDB rejected the request (after retries for 429/5xx)
            NetworkError: TMDB unreachable after retries
            PartialSyncFailure: movie written, cast replacement failed
        """
        with self._locks.hold(tmdb_id):
            try:
                existing = self.store.find_one_by_external_id(tmdb_id)
            except MovieNotFoundInStore:
                logger.info(f"Movie {tmdb_id} not in store, creating it from TMDB")
                return self._create(tmdb_id)

            if not self.is_stale(existing):
                logger.debug(f"Movie {tmdb_id} is fresh (last synced {existing.last_synced})")
                return SyncOutcome(existing, UNCHANGED)

            logger.info(f"Movie {tmdb_id} is stale (last synced {existing.last_synced}), refreshing")
            return self._update(existing)

    def is_stale(self, movie: Movie) -> bool:
        if movie.last_synced is None:
            return True
        return self._clock() - _as_utc(movie.last_synced) > self.stale_after

    def reconcile_cast(self, movie_id: int, cast: List[CastMember]) -> List[CastMemberRecord]:
        """
        Replace the cast rows of a stored movie.

        Used directly to retry after a PartialSyncFailure.
        """
        rows = [self._cast_fields(member) for member in cast]
        try:
            return self.store.replace_cast(movie_id, rows)
        except SQLAlchemyError as e:
            logger.error(f"Cast replacement failed for movie {movie_id}: {str(e)}")
            raise PartialSyncFailure(movie_id, cast, e) from e

    def refresh_stale(self, limit: int = 50) -> RefreshReport:
        """
        Re-sync up to `limit` stale movies, oldest first.

        A failing movie is recorded in the report and does not stop the batch.
        A failed cast step is retried once.
        """
        report = RefreshReport()
        cutoff = self._clock() - self.stale_after

        for movie in self.store.list_stale(cutoff, limit=limit):
            tmdb_id = movie.tmdb_id
            report.checked += 1
            try:
                outcome = self.sync(tmdb_id)
            except PartialSyncFailure as failure:
                report.cast_retried += 1
                try:
                    self.reconcile_cast(failure.movie_id, failure.cast)
                    report.updated += 1
                except PartialSyncFailure as retry_failure:
                    report.failed += 1
                    report.errors[tmdb_id] = str(retry_failure)
                continue
            except (UpstreamError, NetworkError) as e:
                logger.error(f"Refreshing movie {tmdb_id} failed: {str(e)}")
                report.failed += 1
                report.errors[tmdb_id] = str(e)
                continue

            if outcome.action == UPDATED:
                report.updated += 1

        return report

    # ============================================
    # Create / update paths
    # ============================================

    def _create(self, tmdb_id: int) -> SyncOutcome:
        details = self._fetch_details(tmdb_id)
        fields = self._movie_fields(details)
        fields["tmdb_id"] = tmdb_id

        try:
            movie = self.store.insert(fields)
        except IntegrityError:
            # Another process created it between our lookup and insert
            logger.warning(f"Movie {tmdb_id} was created concurrently, using the stored copy")
            return SyncOutcome(self.store.find_one_by_external_id(tmdb_id), UNCHANGED)

        logger.info(f"Created movie {tmdb_id} '{movie.title}' (id={movie.id})")
        self.reconcile_cast(movie.id, self.tmdb.get_cast(details, PERSISTED_CAST_LIMIT))
        return SyncOutcome(movie, CREATED)

    def _update(self, existing: Movie) -> SyncOutcome:
        details = self._fetch_details(existing.tmdb_id)
        movie = self.store.update_by_id(existing.id, self._movie_fields(details))

        logger.info(f"Updated movie {movie.tmdb_id} '{movie.title}' (id={movie.id})")
        self.reconcile_cast(movie.id, self.tmdb.get_cast(details, PERSISTED_CAST_LIMIT))
        return SyncOutcome(movie, UPDATED)

    def _fetch_details(self, tmdb_id: int) -> MovieDetails:
        """TMDB details with a bounded retry for transient failures"""
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self.tmdb.get_movie_details(tmdb_id)
            except (NetworkError, UpstreamError) as e:
                if not is_transient(e) or attempt == self.max_attempts:
                    raise
                delay = RETRY_BASE_DELAY_SECONDS * (2 ** (attempt - 1))
                delay += random.uniform(0.0, delay * 0.25)
                logger.warning(
                    f"TMDB fetch for movie {tmdb_id} failed (attempt {attempt}/{self.max_attempts}): "
                    f"{str(e)}; retrying in {delay:.2f}s"
                )
                self._sleep(delay)

    def _movie_fields(self, details: MovieDetails) -> Dict:
        return {
            "title": details.title,
            "original_title": details.original_title,
            "poster_path": details.poster_path,
            "backdrop_path": details.backdrop_path,
            "release_date": details.release_date,
            "runtime": details.runtime,
            "overview": details.overview,
            "tmdb_rating": details.vote_average or 0.0,
            "director": self.tmdb.get_director(details),
            "genres": [genre.model_dump() for genre in details.genres or []],
            "last_synced": self._clock(),
        }

    @staticmethod
    def _cast_fields(member: CastMember) -> Dict:
        return {
            "tmdb_id": member.id,
            "name": member.name,
            "character": member.character,
            "profile_path": member.profile_path,
            "order": member.order,
        }
