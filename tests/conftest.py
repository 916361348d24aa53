import os

# Settings are read when moviecritic.database is imported
os.environ["TMDB_API_URL"] = "https://api.themoviedb.org/3"
os.environ["TMDB_API_KEY"] = "test-read-token"
os.environ["TMDB_IMAGE_URL"] = "https://image.tmdb.org/t/p"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENABLE_BACKGROUND_JOBS"] = "false"

from datetime import datetime, timedelta, timezone
from urllib.parse import urlparse

import pytest
import requests
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from moviecritic.database import Base, get_db
from moviecritic.main import app
from moviecritic.services.movie_store import MovieStore
from moviecritic.services.sync_service import KeyedLocks, MovieSyncService
from moviecritic.services.tmdb_service import TMDBService
from moviecritic.utils.dependencies import get_tmdb_service

TMDB_API_URL = os.environ["TMDB_API_URL"]
TMDB_IMAGE_URL = os.environ["TMDB_IMAGE_URL"]

SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# ============================================
# TMDB payloads
# ============================================

def person(person_id, name, order, character=None):
    return {
        "id": person_id,
        "name": name,
        "character": character or f"Role {order}",
        "profile_path": f"/p{person_id}.jpg",
        "order": order,
    }


def movie_payload(movie_id=603, title="The Matrix", cast=None, crew=None, **overrides):
    payload = {
        "id": movie_id,
        "title": title,
        "original_title": title,
        "poster_path": "/poster.jpg",
        "backdrop_path": "/backdrop.jpg",
        "release_date": "1999-03-30",
        "runtime": 136,
        "overview": "A hacker learns the truth about reality.",
        "vote_average": 8.2,
        "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
        "credits": {
            "cast": cast if cast is not None else [],
            "crew": crew if crew is not None else [],
        },
    }
    payload.update(overrides)
    return payload


MATRIX_CAST = [
    person(6384, "Keanu Reeves", 0, "Neo"),
    person(2975, "Laurence Fishburne", 1, "Morpheus"),
    person(530, "Carrie-Anne Moss", 2, "Trinity"),
    person(1331, "Hugo Weaving", 3, "Agent Smith"),
    person(9364, "Gloria Foster", 4, "Oracle"),
]

MATRIX_CREW = [
    {"id": 9340, "name": "Lana Wachowski", "job": "Director", "department": "Directing"},
    {"id": 9339, "name": "Lilly Wachowski", "job": "Director", "department": "Directing"},
    {"id": 1091, "name": "Joel Silver", "job": "Producer", "department": "Production"},
]


# ============================================
# Fake HTTP layer for TMDB
# ============================================

class _FakeResponse:
    def __init__(self, status_code=200, payload=None, reason="OK"):
        self.status_code = status_code
        self._payload = payload
        self.reason = reason

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        return self._payload


class FakeTMDBSession:
    """
    Stands in for requests.Session. Routes are keyed by path below the API
    root ("/movie/603"). A route value is a payload dict, a
    (status_code, reason) tuple, an exception instance, or a list of those
    consumed one per call.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        path = urlparse(url).path
        root = urlparse(TMDB_API_URL).path
        endpoint = path[len(root):] if path.startswith(root) else path
        self.calls.append({"endpoint": endpoint, "params": params, "headers": headers, "timeout": timeout})

        route = self.routes.get(endpoint, (404, "Not Found"))
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]

        if isinstance(route, Exception):
            raise route
        if isinstance(route, tuple):
            return _FakeResponse(status_code=route[0], reason=route[1])
        return _FakeResponse(payload=route)

    def calls_to(self, endpoint):
        return [call for call in self.calls if call["endpoint"] == endpoint]


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def db_session():
    """Provide a clean database session for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def tmdb_http():
    http = FakeTMDBSession()
    http.routes["/movie/603"] = movie_payload(cast=list(MATRIX_CAST), crew=list(MATRIX_CREW))
    return http


@pytest.fixture
def tmdb(tmdb_http):
    return TMDBService(
        api_url=TMDB_API_URL,
        api_key="test-read-token",
        image_url=TMDB_IMAGE_URL,
        session=tmdb_http,
    )


@pytest.fixture
def store(db_session):
    return MovieStore(db_session)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def sync_service(tmdb, store, clock, sleeps):
    return MovieSyncService(tmdb, store, clock=clock, sleep=sleeps.append, locks=KeyedLocks())


@pytest.fixture
def client(db_session, tmdb, monkeypatch):
    """FastAPI test client with the database and TMDB dependencies overridden."""

    def override_get_db():
        test_db = TestingSessionLocal()
        try:
            yield test_db
        finally:
            test_db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_tmdb_service] = lambda: tmdb

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_tmdb_service, None)


@pytest.fixture
def register_user(client):
    """Register and log in a user, returning auth headers"""

    def _register(email="critic@example.com", name="Film Critic", password="Sup3rSecret"):
        client.post("/api/auth/register", json={"email": email, "password": password, "name": name})
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _register


@pytest.fixture
def auth_headers(register_user):
    return register_user()


@pytest.fixture
def network_down():
    return requests.exceptions.ConnectionError("connection refused")
