import random

import pytest
import requests

from moviecritic.exceptions import NetworkError, UpstreamError
from moviecritic.schemas.tmdb import Credits, MovieCredit, MovieDetails, PersonCredits
from moviecritic.services.tmdb_service import TMDBService

from conftest import movie_payload, person


def _details(cast=None, crew=None):
    return MovieDetails.model_validate(movie_payload(cast=cast, crew=crew))


# ============================================
# Pure helpers
# ============================================

def test_image_url_contains_size_and_path(tmdb):
    url = tmdb.get_image_url("/abc123.jpg", "w200")

    assert "w200" in url
    assert "/abc123.jpg" in url
    assert url == "https://image.tmdb.org/t/p/w200/abc123.jpg"


def test_image_url_defaults_to_w500(tmdb):
    assert tmdb.get_image_url("/abc123.jpg") == "https://image.tmdb.org/t/p/w500/abc123.jpg"


@pytest.mark.parametrize("path", [None, ""])
def test_image_url_without_path_is_none(tmdb, path):
    assert tmdb.get_image_url(path) is None
    assert tmdb.get_image_url(path, "w200") is None


def test_director_is_first_match_in_crew_order():
    details = _details(crew=[
        {"id": 1, "name": "Director One", "job": "Director"},
        {"id": 2, "name": "Director Two", "job": "Director"},
        {"id": 3, "name": "Some Producer", "job": "Producer"},
    ])

    assert TMDBService.get_director(details) == "Director One"


def test_director_unknown_when_no_director():
    details = _details(crew=[{"id": 3, "name": "Some Producer", "job": "Producer"}])

    assert TMDBService.get_director(details) == "Unknown"
    assert TMDBService.get_director(_details()) == "Unknown"


def test_cast_sorted_by_order_and_limited():
    cast = [person(100 + i, f"Actor {i}", i) for i in range(20)]
    random.Random(7).shuffle(cast)

    top = TMDBService.get_cast(_details(cast=cast), 5)

    assert [member.order for member in top] == [0, 1, 2, 3, 4]
    assert [member.id for member in top] == [100, 101, 102, 103, 104]


def test_cast_default_limit_is_ten():
    cast = [person(i, f"Actor {i}", i) for i in range(15)]

    assert len(TMDBService.get_cast(_details(cast=cast))) == 10


def test_cast_without_limit_keeps_everything_and_ties_stay_stable():
    cast = [person(1, "B", 1), person(2, "A tie", 0), person(3, "B tie", 0)]

    ordered = TMDBService.get_cast(_details(cast=cast), None)

    assert [member.id for member in ordered] == [2, 3, 1]


def test_cast_of_movie_without_credits_is_empty():
    details = MovieDetails.model_validate({"id": 1, "title": "No Credits"})

    assert details.credits == Credits()
    assert TMDBService.get_cast(details) == []


def test_filmography_skips_undated_and_sorts_newest_first():
    credits = PersonCredits(cast=[
        MovieCredit(id=1, title="Old", release_date="1999-03-30"),
        MovieCredit(id=2, title="Unreleased", release_date=""),
        MovieCredit(id=3, title="New", release_date="2021-12-22"),
        MovieCredit(id=4, title="Middle", release_date="2003-05-15"),
        MovieCredit(id=5, title="No date"),
    ])

    films = TMDBService.get_filmography(credits)

    assert [film.title for film in films] == ["New", "Middle", "Old"]


def test_filmography_limit():
    credits = PersonCredits(cast=[
        MovieCredit(id=i, title=f"Film {i}", release_date=f"{2000 + i}-01-01") for i in range(30)
    ])

    films = TMDBService.get_filmography(credits)

    assert len(films) == 20
    assert films[0].title == "Film 29"


# ============================================
# HTTP behaviour
# ============================================

def test_details_request_sends_bearer_token_and_appends_credits(tmdb, tmdb_http):
    details = tmdb.get_movie_details(603)

    assert details.title == "The Matrix"
    assert len(details.credits.cast) == 5

    call = tmdb_http.calls_to("/movie/603")[0]
    assert call["headers"]["Authorization"] == "Bearer test-read-token"
    assert call["headers"]["accept"] == "application/json"
    assert call["params"] == {"append_to_response": "credits"}
    assert call["timeout"] == 10


def test_non_success_status_raises_upstream_error(tmdb):
    with pytest.raises(UpstreamError) as excinfo:
        tmdb.get_movie_details(999999)

    assert "404" in str(excinfo.value)
    assert str(excinfo.value) == "TMDB API error: 404 Not Found"
    assert excinfo.value.status_code == 404
    assert excinfo.value.is_not_found
    assert not excinfo.value.is_transient


def test_server_error_is_transient(tmdb, tmdb_http):
    tmdb_http.routes["/movie/1"] = (503, "Service Unavailable")

    with pytest.raises(UpstreamError) as excinfo:
        tmdb.get_movie_details(1)

    assert excinfo.value.is_transient
    assert len(tmdb_http.calls_to("/movie/1")) == 1


def test_transport_failure_raises_network_error(tmdb, tmdb_http):
    tmdb_http.routes["/movie/1"] = requests.exceptions.Timeout("read timed out")

    with pytest.raises(NetworkError) as excinfo:
        tmdb.get_movie_details(1)

    assert isinstance(excinfo.value.__cause__, requests.exceptions.Timeout)


def test_search_excludes_adult_titles(tmdb, tmdb_http):
    tmdb_http.routes["/search/movie"] = {
        "page": 1,
        "results": [{"id": 603, "title": "The Matrix", "genre_ids": [28]}],
        "total_pages": 1,
        "total_results": 1,
    }

    result = tmdb.search_movies("matrix")

    assert result.results[0].id == 603
    assert tmdb_http.calls[-1]["params"] == {"query": "matrix", "page": "1", "include_adult": "false"}


def test_search_results_are_cached_per_client(tmdb, tmdb_http):
    tmdb_http.routes["/search/movie"] = {"page": 1, "results": []}

    tmdb.search_movies("matrix")
    tmdb.search_movies("matrix")
    tmdb.search_movies("matrix", 2)

    assert len(tmdb_http.calls_to("/search/movie")) == 2
    assert tmdb.cache_store.get_stats()["hits"] == 1


def test_details_are_never_cached(tmdb, tmdb_http):
    tmdb.get_movie_details(603)
    tmdb.get_movie_details(603)

    assert len(tmdb_http.calls_to("/movie/603")) == 2


def test_lists_and_genres(tmdb, tmdb_http):
    listing = {"page": 1, "results": [{"id": 1, "title": "One"}], "total_pages": 1, "total_results": 1}
    tmdb_http.routes["/movie/popular"] = listing
    tmdb_http.routes["/movie/now_playing"] = listing
    tmdb_http.routes["/movie/top_rated"] = listing
    tmdb_http.routes["/genre/movie/list"] = {"genres": [{"id": 28, "name": "Action"}]}

    assert tmdb.get_popular_movies().results[0].title == "One"
    assert tmdb.get_now_playing_movies().total_results == 1
    assert tmdb.get_top_rated_movies(page=1).page == 1
    assert tmdb.get_genres().genres[0].name == "Action"


def test_person_endpoints(tmdb, tmdb_http):
    tmdb_http.routes["/person/6384"] = {"id": 6384, "name": "Keanu Reeves", "profile_path": "/k.jpg"}
    tmdb_http.routes["/person/6384/movie_credits"] = {
        "id": 6384,
        "cast": [{"id": 603, "title": "The Matrix", "character": "Neo", "release_date": "1999-03-30"}],
    }

    assert tmdb.get_person_details(6384).name == "Keanu Reeves"
    assert tmdb.get_person_credits(6384).cast[0].character == "Neo"
