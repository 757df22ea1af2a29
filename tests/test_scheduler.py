from datetime import timedelta

from models.audit_log import AuditLog
from scheduler import build_scheduler
from tasks.audit_tasks import run_audit_cleanup
from utils.formatting import utcnow


def test_cleanup_task_uses_its_own_session(app, client, db):
    db.add_all([
        AuditLog(emp_id="old", status="Ancient", date=utcnow() - timedelta(days=100)),
        AuditLog(emp_id="new", status="Recent", date=utcnow()),
    ])
    db.commit()

    assert run_audit_cleanup(app.state.session_factory, 30) == 1

    db.expire_all()
    remaining = {row.emp_id for row in db.query(AuditLog).all()}
    # The cleanup itself is recorded by the system user
    assert remaining == {"new", "system"}


def test_scheduler_registers_nightly_cleanup(app, settings):
    scheduler = build_scheduler(settings, app.state.session_factory)
    job = scheduler.get_job("audit_cleanup_job")
    assert job is not None
    assert job.args == (app.state.session_factory, settings.audit_retention_days)
