from fastapi import APIRouter, Depends, HTTPException, Request, Query, status
from fastapi.responses import Response, StreamingResponse
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime
import logging

from crud import audit_log as crud_audit
from database import get_db
from schemas.audit_log import AuditCleanupRequest, AuditLogCreate, AuditLogManualCreate, AuditLogQuery
from utils.audit import get_audit_user, log_audit_event
from utils.auth_utils import get_current_user, require_role
from utils.formatting import utcnow

router = APIRouter(prefix="/api/audit", tags=["Audit"], dependencies=[Depends(get_current_user)])
logger = logging.getLogger("audit")


def _tz(request: Request) -> str:
    return request.app.state.settings.display_timezone


def audit_query(
    table_name: Optional[str] = None,
    action_type: Optional[str] = None,
    emp_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    sort_by: str = "date",
    sort_order: str = "DESC",
) -> AuditLogQuery:
    return AuditLogQuery(
        table_name=table_name,
        action_type=action_type,
        emp_id=emp_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
        limit=limit,
        offset=offset,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/")
def read_audit_logs(request: Request, options: AuditLogQuery = Depends(audit_query), db: Session = Depends(get_db)):
    return crud_audit.get_audit_logs(db, options, _tz(request))


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_audit_entry(
    body: AuditLogManualCreate,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    entry = AuditLogCreate(**body.model_dump(exclude={"emp_id"}), emp_id=body.emp_id or audit_user)
    try:
        audit_id = crud_audit.create_audit_log(db, entry)
    except crud_audit.AuditLogError as e:
        logger.error(f"Manual audit entry by {audit_user} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to create audit log")
    return {"message": "Audit log created successfully", "audit_id": audit_id}


@router.get("/stats")
def audit_stats(request: Request, db: Session = Depends(get_db)):
    return crud_audit.get_audit_stats(db, _tz(request))


@router.get("/record/{table_name}/{record_id}")
def record_history(table_name: str, record_id: str, request: Request, db: Session = Depends(get_db)):
    history = crud_audit.get_record_audit_history(db, table_name, record_id, _tz(request))
    return {"table_name": table_name, "record_id": record_id, "history": history}


@router.get("/user/{username}")
def user_activity(
    username: str,
    request: Request,
    limit: int = Query(50, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return crud_audit.get_user_activity(db, username, limit, offset, _tz(request))


@router.get("/date-range")
def audit_date_range(
    start_date: datetime,
    end_date: datetime,
    request: Request,
    group_by: str = Query("day", pattern="^(hour|day|week|month)$"),
    db: Session = Depends(get_db),
):
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
    periods = crud_audit.get_audit_logs_by_date_range(db, start_date, end_date, group_by, _tz(request))
    return {"group_by": group_by, "periods": periods}


@router.get("/export")
def export_audit(
    request: Request,
    options: AuditLogQuery = Depends(audit_query),
    export_format: str = Query("csv", alias="format", pattern="^(csv|xlsx)$"),
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    stamp = utcnow().strftime("%Y%m%d_%H%M%S")
    logger.info(f"Audit export ({export_format}) requested by {user.get('username')}")
    if export_format == "xlsx":
        excel_file = crud_audit.export_audit_logs_excel(db, options, _tz(request))
        headers = {'Content-Disposition': f'attachment; filename="audit_logs_{stamp}.xlsx"'}
        return StreamingResponse(excel_file, media_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet', headers=headers)

    csv_text = crud_audit.export_audit_logs(db, options, _tz(request))
    headers = {'Content-Disposition': f'attachment; filename="audit_logs_{stamp}.csv"'}
    return Response(content=csv_text, media_type="text/csv", headers=headers)


@router.post("/cleanup", dependencies=[Depends(require_role(["admin"]))])
def cleanup_audit(
    body: AuditCleanupRequest,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    deleted = crud_audit.cleanup_old_logs(db, body.retention_days)
    log_audit_event(
        db, request, "audit", None, "DELETE",
        f"Audit Cleanup: {deleted} entries older than {body.retention_days} days removed",
    )
    logger.info(f"Audit cleanup by {audit_user} removed {deleted} rows")
    return {"message": f"Cleaned up {deleted} old audit log entries", "deleted_count": deleted}
