"""Run the scheduled jobs standalone: weekly rating catalog refresh."""
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import settings
from utils.logging import setup_logging, get_logger
from jobs.ratings_refresh import REFRESH_INTERVAL_DAYS, run_ratings_refresh

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


def job_ratings_refresh():
    try:
        run_ratings_refresh()
    except Exception as e:
        logger.exception("Ratings refresh job failed: %s", e)


def main():
    scheduler = BlockingScheduler()
    scheduler.add_job(job_ratings_refresh, IntervalTrigger(days=REFRESH_INTERVAL_DAYS), id="ratings_refresh")
    logger.info("Scheduler started: ratings refresh every %d days", REFRESH_INTERVAL_DAYS)
    job_ratings_refresh()
    scheduler.start()


if __name__ == "__main__":
    main()
