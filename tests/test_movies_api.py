from moviecritic.main import app
from moviecritic.models.movie import Movie
from moviecritic.services.movie_store import MovieStore
from moviecritic.services.sync_service import KeyedLocks, MovieSyncService
from moviecritic.utils.dependencies import get_sync_service

from conftest import TestingSessionLocal, movie_payload, person


def test_sync_endpoint_creates_then_reuses(client, tmdb_http):
    first = client.post("/api/movies/sync", json={"tmdb_id": 603})
    assert first.status_code == 201
    body = first.json()
    assert body["tmdb_id"] == 603
    assert body["director"] == "Lana Wachowski"
    assert body["genres"][0] == {"id": 28, "name": "Action"}

    second = client.post("/api/movies/sync", json={"tmdb_id": 603})
    assert second.status_code == 200
    assert second.json()["id"] == body["id"]
    assert len(tmdb_http.calls_to("/movie/603")) == 1


def test_sync_endpoint_passes_through_tmdb_404(client, db_session):
    response = client.post("/api/movies/sync", json={"tmdb_id": 999999})

    assert response.status_code == 404
    assert "404" in response.json()["detail"]
    assert db_session.query(Movie).count() == 0


def test_sync_endpoint_rejects_invalid_id(client):
    assert client.post("/api/movies/sync", json={"tmdb_id": 0}).status_code == 422
    assert client.post("/api/movies/sync", json={}).status_code == 422


def test_sync_endpoint_maps_upstream_outage_to_502(client, tmdb, tmdb_http):
    tmdb_http.routes["/movie/77"] = (500, "Internal Server Error")

    def fast_sync_service():
        session = TestingSessionLocal()
        try:
            yield MovieSyncService(tmdb, MovieStore(session), sleep=lambda _: None, locks=KeyedLocks())
        finally:
            session.close()

    app.dependency_overrides[get_sync_service] = fast_sync_service
    try:
        response = client.post("/api/movies/sync", json={"tmdb_id": 77})
    finally:
        app.dependency_overrides.pop(get_sync_service, None)

    assert response.status_code == 502
    assert response.json()["detail"] == "TMDB API error: 500 Internal Server Error"
    assert len(tmdb_http.calls_to("/movie/77")) == 3


def test_sync_endpoint_maps_network_failure_to_503(client, tmdb, tmdb_http, network_down):
    tmdb_http.routes["/movie/78"] = network_down

    def fast_sync_service():
        session = TestingSessionLocal()
        try:
            yield MovieSyncService(tmdb, MovieStore(session), sleep=lambda _: None, locks=KeyedLocks())
        finally:
            session.close()

    app.dependency_overrides[get_sync_service] = fast_sync_service
    try:
        response = client.post("/api/movies/sync", json={"tmdb_id": 78})
    finally:
        app.dependency_overrides.pop(get_sync_service, None)

    assert response.status_code == 503


def test_blank_search_does_not_call_tmdb(client, tmdb_http):
    response = client.get("/api/movies/search", params={"query": "   "})

    assert response.status_code == 200
    assert response.json()["results"] == []
    assert tmdb_http.calls_to("/search/movie") == []


def test_search_proxies_tmdb(client, tmdb_http):
    tmdb_http.routes["/search/movie"] = {
        "page": 1,
        "results": [{"id": 603, "title": "The Matrix", "vote_average": 8.2}],
        "total_pages": 1,
        "total_results": 1,
    }

    response = client.get("/api/movies/search", params={"query": "matrix"})

    assert response.status_code == 200
    assert response.json()["results"][0]["title"] == "The Matrix"


def test_live_details_include_director_cast_and_images(client):
    response = client.get("/api/movies/603")

    assert response.status_code == 200
    body = response.json()
    assert body["director"] == "Lana Wachowski"
    assert [member["name"] for member in body["cast"]][:2] == ["Keanu Reeves", "Laurence Fishburne"]
    assert body["poster_url"] == "https://image.tmdb.org/t/p/w500/poster.jpg"
    assert body["cast"][0]["profile_url"] == "https://image.tmdb.org/t/p/w185/p6384.jpg"
    assert "credits" not in body


def test_local_queries_after_sync(client, tmdb_http):
    tmdb_http.routes["/movie/604"] = movie_payload(
        movie_id=604, title="The Matrix Reloaded", cast=[person(6384, "Keanu Reeves", 0)]
    )
    tmdb_http.routes["/movie/680"] = movie_payload(movie_id=680, title="Pulp Fiction")
    local_id = client.post("/api/movies/sync", json={"tmdb_id": 603}).json()["id"]
    client.post("/api/movies/sync", json={"tmdb_id": 604})
    client.post("/api/movies/sync", json={"tmdb_id": 680})

    search = client.get("/api/movies/local/search", params={"q": "matrix"}).json()
    assert search["total_items"] == 2
    assert [m["title"] for m in search["items"]] == ["The Matrix", "The Matrix Reloaded"]

    recent = client.get("/api/movies/local/recent", params={"limit": 2}).json()
    assert len(recent) == 2

    assert client.get(f"/api/movies/local/{local_id}").json()["tmdb_id"] == 603
    assert client.get("/api/movies/tmdb/603").json()["id"] == local_id

    cast = client.get("/api/movies/tmdb/603/cast").json()
    assert [member["order"] for member in cast] == [0, 1, 2, 3, 4]
    assert cast[0]["tmdb_id"] == 6384

    assert len(client.get("/api/movies/tmdb/603/cast", params={"limit": 2}).json()) == 2


def test_local_lookups_404_when_not_stored(client):
    assert client.get("/api/movies/local/12345").status_code == 404
    assert client.get("/api/movies/tmdb/603").status_code == 404
    assert client.get("/api/movies/tmdb/603/cast").status_code == 404


def test_person_with_filmography(client, tmdb_http):
    tmdb_http.routes["/person/6384"] = {"id": 6384, "name": "Keanu Reeves", "profile_path": "/k.jpg"}
    tmdb_http.routes["/person/6384/movie_credits"] = {
        "id": 6384,
        "cast": [
            {"id": 603, "title": "The Matrix", "release_date": "1999-03-30", "poster_path": "/m.jpg"},
            {"id": 1, "title": "Announced", "release_date": ""},
            {"id": 245891, "title": "John Wick", "release_date": "2014-10-22"},
        ],
    }

    response = client.get("/api/people/6384")

    assert response.status_code == 200
    body = response.json()
    assert body["profile_url"] == "https://image.tmdb.org/t/p/w500/k.jpg"
    assert [film["title"] for film in body["filmography"]] == ["John Wick", "The Matrix"]
    assert body["filmography"][1]["poster_url"] == "https://image.tmdb.org/t/p/w342/m.jpg"


def test_health_reports_database(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["database"] == "ok"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_error_responses_carry_cors_headers(client):
    response = client.get("/api/movies/tmdb/603", headers={"Origin": "http://localhost:3000"})

    assert response.status_code == 404
    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
