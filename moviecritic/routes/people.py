from fastapi import APIRouter, Depends, Path, Query
from typing import Any, Dict

from moviecritic.services.tmdb_service import FILMOGRAPHY_LIMIT, TMDBService
from moviecritic.utils.dependencies import get_tmdb_service

router = APIRouter(prefix="/api/people", tags=["People"])


@router.get("/{person_id}")
def get_person(
    person_id: int = Path(..., description="TMDB person ID", gt=0),
    filmography_limit: int = Query(FILMOGRAPHY_LIMIT, ge=1, le=100),
    tmdb: TMDBService = Depends(get_tmdb_service)
) -> Dict[str, Any]:
    """
    Person details with their filmography

    Filmography lists released movies only, newest first.
    """
    person = tmdb.get_person_details(person_id)
    credits = tmdb.get_person_credits(person_id)

    payload = person.model_dump()
    payload["profile_url"] = tmdb.get_image_url(person.profile_path)
    payload["filmography"] = [
        {**credit.model_dump(), "poster_url": tmdb.get_image_url(credit.poster_path, "w342")}
        for credit in tmdb.get_filmography(credits, filmography_limit)
    ]
    return payload
