import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from config import Settings
from tasks.audit_tasks import run_audit_cleanup

logger = logging.getLogger(__name__)


def build_scheduler(settings: Settings, session_factory) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone=settings.display_timezone)

    # Every day at 02:00 shop time
    scheduler.add_job(
        run_audit_cleanup,
        CronTrigger(hour=2, minute=0, timezone=settings.display_timezone),
        args=[session_factory, settings.audit_retention_days],
        id='audit_cleanup_job',
        replace_existing=True,
    )
    logger.info(f"Audit cleanup job scheduled daily at 02:00 {settings.display_timezone}")
    return scheduler
