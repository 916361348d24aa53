"""
Domain errors for MovieCritic

Metadata (TMDB) failures, store lookups and partially applied syncs each
have their own type.
"""
from typing import List, Optional


class MovieCriticError(Exception):
    """Base class for every MovieCritic domain error"""


class ConfigurationError(MovieCriticError):
    """Required configuration is missing or malformed"""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(
            "Missing required configuration: " + ", ".join(self.missing)
            + ". Set them in the environment or in a .env file."
        )


class UpstreamError(MovieCriticError):
    """
    TMDB answered with a non-success HTTP status.

    The message keeps the status code and reason verbatim
    (e.g. "TMDB API error: 404 Not Found").
    """

    def __init__(self, status_code: int, status_text: str, endpoint: Optional[str] = None):
        self.status_code = status_code
        self.status_text = status_text
        self.endpoint = endpoint
        super().__init__(f"TMDB API error: {status_code} {status_text}".rstrip())

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_transient(self) -> bool:
        return self.status_code == 429 or 500 <= self.status_code < 600


class NetworkError(MovieCriticError):
    """The transport itself failed (DNS, connection reset, timeout...)"""


class MovieNotFoundInStore(MovieCriticError):
    """No movie row for this TMDB id. Used by the sync engine to pick the create path."""

    def __init__(self, tmdb_id: int):
        self.tmdb_id = tmdb_id
        super().__init__(f"Movie with TMDB id {tmdb_id} is not in the store")


class PartialSyncFailure(MovieCriticError):
    """
    The movie row was written but replacing its cast rows failed.

    The cast rows are left exactly as they were before the attempt.
    `cast` holds the freshly fetched cast so the caller can retry only
    the cast step through MovieSyncService.reconcile_cast().
    """

    def __init__(self, movie_id: int, cast: list, cause: Exception):
        self.movie_id = movie_id
        self.cast = cast
        self.cause = cause
        super().__init__(f"Movie {movie_id} was synced but its cast could not be replaced: {cause}")
