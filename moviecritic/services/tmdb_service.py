import requests
from datetime import date
from typing import Dict, List, Optional
from moviecritic.config import Settings
from moviecritic.exceptions import NetworkError, UpstreamError
from moviecritic.schemas.tmdb import (
    CastMember,
    GenreList,
    MovieCredit,
    MovieDetails,
    PersonCredits,
    PersonDetails,
    SearchResult,
)
from moviecritic.utils.cache import CacheStore, cached_method
import logging

logger = logging.getLogger(__name__)

DIRECTOR_JOB = "Director"
UNKNOWN_DIRECTOR = "Unknown"
DEFAULT_IMAGE_SIZE = "w500"
DEFAULT_CAST_LIMIT = 10
FILMOGRAPHY_LIMIT = 20


# TMDB Service to interact with The Movie Database API
class TMDBService:
    """
    Read-only client for the TMDB v3 API.

    Holds no per-user state: base URLs and the bearer token are fixed at
    construction. Failed requests are never retried here; retry policy
    belongs to the caller (see MovieSyncService).
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        image_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.image_url = image_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.cache_store = CacheStore(max_size=500)

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[requests.Session] = None) -> "TMDBService":
        return cls(
            api_url=settings.tmdb_api_url,
            api_key=settings.tmdb_api_key,
            image_url=settings.tmdb_image_url,
            session=session,
            timeout=settings.tmdb_timeout_seconds,
        )

    # Internal method to make GET requests to TMDB API
    def _make_request(self, endpoint: str, params: Dict = None) -> Dict:
        """
        Make HTTP request to TMDB API.

        Args:
            endpoint: API endpoint (e.g., "/movie/popular")
            params: Query parameters

        Returns:
            JSON response from TMDB

        Raises:
            UpstreamError: TMDB answered with a non-2xx status
            NetworkError: the request never got an answer
        """
        url = f"{self.api_url}{endpoint}"
        headers = {
            "accept": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        try:
            response = self.session.get(url, params=params or {}, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"TMDB network error for {endpoint}: {str(e)}")
            raise NetworkError(f"TMDB request failed: {str(e)}") from e

        if not response.ok:
            error = UpstreamError(response.status_code, response.reason or "", endpoint=endpoint)
            logger.error(f"{error} ({endpoint})")
            raise error

        logger.debug(f"TMDB API request successful: {endpoint}")
        return response.json()

    # ============================================
    # Single-entity fetches (never cached)
    # ============================================

    def get_movie_details(self, movie_id: int) -> MovieDetails:
        """Movie details with cast and crew, in one round trip"""
        payload = self._make_request(f"/movie/{int(movie_id)}", {'append_to_response': 'credits'})
        return MovieDetails.model_validate(payload)

    def get_person_details(self, person_id: int) -> PersonDetails:
        payload = self._make_request(f"/person/{int(person_id)}")
        return PersonDetails.model_validate(payload)

    def get_person_credits(self, person_id: int) -> PersonCredits:
        """Movie credits of a person (acting roles)"""
        payload = self._make_request(f"/person/{int(person_id)}/movie_credits")
        return PersonCredits.model_validate(payload)

    # ============================================
    # Lists and search (cached per client)
    # ============================================

    @cached_method(ttl=300)  # Cache search results for 5 minutes
    def search_movies(self, query: str, page: int = 1) -> SearchResult:
        """
        Search movies by title.
        Callers must not pass an empty query.
        """
        payload = self._make_request(
            "/search/movie",
            {'query': query, 'page': str(page), 'include_adult': 'false'},
        )
        return SearchResult.model_validate(payload)

    @cached_method(ttl=3600)  # Cache popular for 1 hour
    def get_popular_movies(self, page: int = 1) -> SearchResult:
        return SearchResult.model_validate(self._make_request("/movie/popular", {'page': str(page)}))

    @cached_method(ttl=3600)
    def get_now_playing_movies(self, page: int = 1) -> SearchResult:
        return SearchResult.model_validate(self._make_request("/movie/now_playing", {'page': str(page)}))

    @cached_method(ttl=3600)
    def get_top_rated_movies(self, page: int = 1) -> SearchResult:
        return SearchResult.model_validate(self._make_request("/movie/top_rated", {'page': str(page)}))

    @cached_method(ttl=86400)  # Cache genres for 24 hours (rarely changes)
    def get_genres(self) -> GenreList:
        return GenreList.model_validate(self._make_request("/genre/movie/list"))

    # ============================================
    # Pure helpers (no network)
    # ============================================

    def get_image_url(self, path: Optional[str], size: str = DEFAULT_IMAGE_SIZE) -> Optional[str]:
        """Full image URL for a TMDB image path, or None when there is no path"""
        if not path:
            return None
        return f"{self.image_url}/{size}{path}"

    @staticmethod
    def get_director(details: MovieDetails) -> str:
        """Name of the first crew member whose job is Director, in crew list order"""
        for member in details.credits.crew:
            if member.job == DIRECTOR_JOB:
                return member.name
        return UNKNOWN_DIRECTOR

    @staticmethod
    def get_cast(details: MovieDetails, limit: Optional[int] = DEFAULT_CAST_LIMIT) -> List[CastMember]:
        """
        Cast sorted by billing order, truncated to `limit` (None keeps all).
        The sort is stable: equal `order` values keep their TMDB order.
        """
        cast = sorted(details.credits.cast, key=lambda member: member.order)
        return cast if limit is None else cast[:limit]

    @staticmethod
    def get_filmography(credits: PersonCredits, limit: int = FILMOGRAPHY_LIMIT) -> List[MovieCredit]:
        """Released movies of a person, newest first"""
        dated = []
        for credit in credits.cast:
            released = _parse_release_date(credit.release_date)
            if released:
                dated.append((released, credit))
        dated.sort(key=lambda pair: pair[0], reverse=True)
        return [credit for _, credit in dated[:limit]]


def _parse_release_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None
