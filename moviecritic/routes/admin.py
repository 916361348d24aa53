"""
Admin Routes for Background Jobs Management
Provides endpoints to monitor and control the stale-movie refresh job

Features:
- Manual job trigger
- Job status monitoring
- Pause/resume jobs
- TMDB list cache statistics

All endpoints require authentication via get_current_user dependency
"""

from apscheduler.jobstores.base import JobLookupError
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from datetime import datetime, timezone

from moviecritic.database import get_db
from moviecritic.models.user import User
from moviecritic.services.background_jobs import REFRESH_JOB_ID, background_jobs
from moviecritic.services.tmdb_service import TMDBService
from moviecritic.utils.dependencies import get_current_user, get_tmdb_service

router = APIRouter(prefix="/api/admin", tags=["Admin - Background Jobs"])

VALID_JOBS = [REFRESH_JOB_ID]


def _check_job_id(job_id: str) -> None:
    if job_id not in VALID_JOBS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid job_id. Must be one of: {', '.join(VALID_JOBS)}"
        )


@router.post("/jobs/trigger/refresh", status_code=status.HTTP_200_OK)
def trigger_stale_refresh(
    current_user: User = Depends(get_current_user),
    tmdb: TMDBService = Depends(get_tmdb_service),
    db: Session = Depends(get_db)
):
    """
    Manually run the stale movie refresh

    - Re-syncs the oldest movies not synced for more than 7 days
    - Returns the refresh report

    **Requires authentication**
    """
    report = background_jobs.refresh_stale_movies(tmdb=tmdb, db=db)
    return {
        "message": "Stale movie refresh completed",
        "job": REFRESH_JOB_ID,
        "report": report,
        "triggered_at": datetime.now(timezone.utc).isoformat(),
        "triggered_by": current_user.email
    }


@router.get("/jobs/status", status_code=status.HTTP_200_OK)
def get_jobs_status(
    current_user: User = Depends(get_current_user)
):
    """
    Get status of all scheduled background jobs

    Returns:
    - Job IDs and names
    - Next run times
    - Last execution times and status (idle/running/success/failed)
    - The last refresh report

    **Requires authentication**
    """
    stats = background_jobs.get_job_stats()
    stats["checked_at"] = datetime.now(timezone.utc).isoformat()
    return stats


@router.post("/jobs/pause/{job_id}", status_code=status.HTTP_200_OK)
def pause_job(
    job_id: str,
    current_user: User = Depends(get_current_user)
):
    """Pause a scheduled job. 404 when the scheduler is not running it."""
    _check_job_id(job_id)
    try:
        background_jobs.pause_job(job_id)
    except JobLookupError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Job '{job_id}' is not scheduled")

    return {
        "message": f"Job '{job_id}' paused successfully",
        "job_id": job_id,
        "paused_at": datetime.now(timezone.utc).isoformat(),
        "paused_by": current_user.email
    }


@router.post("/jobs/resume/{job_id}", status_code=status.HTTP_200_OK)
def resume_job(
    job_id: str,
    current_user: User = Depends(get_current_user)
):
    """Resume a paused job. 404 when the scheduler is not running it."""
    _check_job_id(job_id)
    try:
        background_jobs.resume_job(job_id)
    except JobLookupError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Job '{job_id}' is not scheduled")

    return {
        "message": f"Job '{job_id}' resumed successfully",
        "job_id": job_id,
        "resumed_at": datetime.now(timezone.utc).isoformat(),
        "resumed_by": current_user.email
    }


@router.get("/cache/stats", status_code=status.HTTP_200_OK)
def get_cache_statistics(
    current_user: User = Depends(get_current_user),
    tmdb: TMDBService = Depends(get_tmdb_service)
):
    """Hit rate and size of the TMDB search/list cache"""
    return tmdb.cache_store.get_stats()


@router.delete("/cache/clear", status_code=status.HTTP_200_OK)
def clear_cache(
    current_user: User = Depends(get_current_user),
    tmdb: TMDBService = Depends(get_tmdb_service)
):
    tmdb.cache_store.clear()
    return {"message": "TMDB cache cleared", "cleared_by": current_user.email}
