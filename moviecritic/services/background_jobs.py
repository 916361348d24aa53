"""
Background Jobs Service
Periodically re-syncs movies whose local copy has gone stale

Features:
- Scheduled jobs using APScheduler
- Configurable timezone
- Job monitoring and statistics
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session
from datetime import datetime
import logging
from typing import Dict, Optional
from pytz import timezone

from moviecritic.config import get_settings
from moviecritic.database import get_db_session
from moviecritic.services.movie_store import MovieStore
from moviecritic.services.sync_service import MovieSyncService
from moviecritic.services.tmdb_service import TMDBService

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = 'refresh_stale_movies'


class BackgroundJobService:
    """
    Manages scheduled background jobs

    Jobs:
    - Refresh stale movies (daily at 4 AM)

    Usage:
        jobs = BackgroundJobService()
        jobs.start()  # Start all scheduled jobs
        jobs.shutdown()  # Stop all jobs gracefully
    """

    def __init__(self):
        settings = get_settings()
        self.timezone = timezone(settings.timezone)
        self.scheduler = BackgroundScheduler(timezone=self.timezone)
        self.batch_size = settings.stale_refresh_batch_size
        self.max_attempts = settings.sync_max_attempts

        # Track job execution statistics
        self.job_stats = {
            REFRESH_JOB_ID: {'last_run': None, 'status': 'idle', 'error': None, 'report': None},
        }

    def start(self):
        """
        Start all scheduled background jobs

        Jobs are only started if ENABLE_BACKGROUND_JOBS is true
        """
        if not get_settings().enable_background_jobs:
            logger.info("Background jobs disabled via ENABLE_BACKGROUND_JOBS environment variable")
            return

        self.scheduler.add_job(
            func=self.refresh_stale_movies,
            trigger=CronTrigger(hour=4, minute=0, timezone=self.timezone),
            id=REFRESH_JOB_ID,
            name='Refresh stale movies from TMDB',
            replace_existing=True,
            max_instances=1  # Prevent concurrent runs
        )
        logger.info("Scheduled: Refresh stale movies (daily 4:00 AM)")

        self.scheduler.start()
        logger.info(f"Background jobs started (timezone: {self.timezone}, jobs: {len(self.scheduler.get_jobs())})")

    def shutdown(self):
        """Shutdown scheduler gracefully"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            logger.info("Background jobs stopped gracefully")

    def get_job_stats(self) -> Dict:
        """
        Get statistics for all jobs including next run times

        Returns:
            Dict with job information and execution history
        """
        jobs_info = []
        for job in self.scheduler.get_jobs():
            stats = self.job_stats.get(job.id, {})
            next_run = getattr(job, 'next_run_time', None)
            jobs_info.append({
                'id': job.id,
                'name': job.name,
                'next_run': next_run.isoformat() if next_run else None,
                'last_run': stats.get('last_run'),
                'status': stats.get('status', 'idle'),
                'error': stats.get('error'),
            })

        return {
            'scheduler_running': self.scheduler.running,
            'timezone': str(self.timezone),
            'jobs': jobs_info,
            'last_refresh': self.job_stats[REFRESH_JOB_ID],
        }

    # ============================================
    # Job Methods
    # ============================================

    def refresh_stale_movies(self, tmdb: Optional[TMDBService] = None, db: Optional[Session] = None) -> Dict:
        """
        Re-sync the oldest stale movies through the sync engine

        Runs with its own session unless one is passed in. One movie failing
        does not stop the batch; failures are listed in the report.
        """
        job_id = REFRESH_JOB_ID
        logger.info("Starting job: Refresh stale movies")
        self.job_stats[job_id]['status'] = 'running'
        self.job_stats[job_id]['error'] = None

        owns_session = db is None
        db = db or get_db_session()
        try:
            tmdb = tmdb or TMDBService.from_settings(get_settings())
            sync_service = MovieSyncService(tmdb, MovieStore(db), max_attempts=self.max_attempts)
            report = sync_service.refresh_stale(limit=self.batch_size).as_dict()

            self.job_stats[job_id]['status'] = 'success'
            self.job_stats[job_id]['report'] = report
            logger.info(
                f"Refreshed stale movies: checked {report['checked']}, "
                f"updated {report['updated']}, failed {report['failed']}"
            )
            return report

        except Exception as e:
            error_msg = f"Failed to refresh stale movies: {str(e)}"
            logger.error(error_msg, exc_info=True)
            self.job_stats[job_id]['status'] = 'failed'
            self.job_stats[job_id]['error'] = error_msg
            raise

        finally:
            self.job_stats[job_id]['last_run'] = datetime.now(self.timezone).isoformat()
            if owns_session:
                db.close()

    def pause_job(self, job_id: str):
        """Pause a scheduled job; JobLookupError when it does not exist"""
        self.scheduler.pause_job(job_id)
        logger.info(f"Paused job: {job_id}")

    def resume_job(self, job_id: str):
        """Resume a paused job; JobLookupError when it does not exist"""
        self.scheduler.resume_job(job_id)
        logger.info(f"Resumed job: {job_id}")


# Global singleton instance
background_jobs = BackgroundJobService()
