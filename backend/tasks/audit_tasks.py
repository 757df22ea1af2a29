import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from crud.audit_log import cleanup_old_logs
from utils.audit import log_audit_event

logger = logging.getLogger(__name__)


def run_audit_cleanup(session_factory, retention_days: int) -> int:
    """
    Nightly retention job: delete audit rows older than ``retention_days``.

    Runs outside any request, so it opens and closes its own session. The
    cleanup itself is recorded as an audit event by the "system" user.
    """
    logger.info(f"Starting scheduled audit cleanup (retention {retention_days} days)")
    db: Session = session_factory()
    try:
        deleted = cleanup_old_logs(db, retention_days)
        log_audit_event(
            db, None, "audit", None, "DELETE",
            f"Scheduled Audit Cleanup: {deleted} entries older than {retention_days} days removed",
            emp_id="system",
        )
        return deleted
    except SQLAlchemyError as e:
        logger.error(f"Scheduled audit cleanup failed: {e}")
        return 0
    finally:
        db.close()
