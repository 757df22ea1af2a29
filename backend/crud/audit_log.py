import csv
import logging
from collections import OrderedDict
from datetime import timedelta
from io import BytesIO, StringIO
from typing import Any, Dict, List

import pandas as pd
import pytz
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.audit_log import AuditLog
from schemas.audit_log import AuditLogCreate, AuditLogQuery
from utils.formatting import utcnow, ensure_utc, format_audit_date

logger = logging.getLogger("audit_log")

SORTABLE_COLUMNS = {
    "date": AuditLog.date,
    "emp_id": AuditLog.emp_id,
    "table_name": AuditLog.table_name,
    "action_type": AuditLog.action_type,
    "audit_id": AuditLog.audit_id,
}

EXPORT_LIMIT = 10000
EXPORT_HEADERS = ['Audit ID', 'Employee ID', 'Date', 'Status', 'Table Name', 'Record ID', 'Action Type', 'IP Address']


class AuditLogError(Exception):
    """Raised when an audit row cannot be written."""


def audit_log_to_dict(entry: AuditLog, timezone_name: str = "UTC") -> Dict[str, Any]:
    when = ensure_utc(entry.date)
    return {
        "audit_id": entry.audit_id,
        "emp_id": entry.emp_id,
        "date": when.isoformat() if when else None,
        "formatted_date": format_audit_date(when, timezone_name) if when else None,
        "status": entry.status,
        "table_name": entry.table_name,
        "record_id": entry.record_id,
        "action_type": entry.action_type,
        "old_values": entry.old_values,
        "new_values": entry.new_values,
        "ip_address": entry.ip_address,
        "user_agent": entry.user_agent,
        "session_id": entry.session_id,
    }


def add_audit_log(db: Session, log_entry: AuditLogCreate) -> AuditLog:
    """Stage an audit row in ``db`` without committing."""
    data = log_entry.model_dump()
    if data.get("action_type") is not None:
        data["action_type"] = log_entry.action_type.value
    db_log_entry = AuditLog(**data)
    db.add(db_log_entry)
    db.flush()
    return db_log_entry


def create_audit_log(db: Session, log_entry: AuditLogCreate) -> int:
    try:
        db_log_entry = add_audit_log(db, log_entry)
        db.commit()
        db.refresh(db_log_entry)
        return db_log_entry.audit_id
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating audit log: {e}")
        raise AuditLogError("Failed to create audit log") from e


def _filtered_query(db: Session, options: AuditLogQuery):
    query = db.query(AuditLog)
    if options.table_name:
        query = query.filter(AuditLog.table_name == options.table_name)
    if options.action_type:
        query = query.filter(AuditLog.action_type == options.action_type)
    if options.emp_id:
        query = query.filter(AuditLog.emp_id == options.emp_id)
    if options.start_date:
        query = query.filter(AuditLog.date >= ensure_utc(options.start_date))
    if options.end_date:
        query = query.filter(AuditLog.date <= ensure_utc(options.end_date))
    if options.search:
        term = f"%{options.search}%"
        query = query.filter(or_(
            AuditLog.emp_id.like(term),
            AuditLog.status.like(term),
            AuditLog.table_name.like(term),
        ))
    return query


def get_audit_logs(db: Session, options: AuditLogQuery, timezone_name: str = "UTC") -> Dict[str, Any]:
    """
    Filtered, sorted, paginated audit rows.

    Unknown sort columns fall back to ``date``; equal sort keys are ordered by
    ``audit_id`` in the same direction so consecutive pages never overlap.
    """
    sort_column = SORTABLE_COLUMNS.get(options.sort_by, AuditLog.date)
    descending = str(options.sort_order).upper() != "ASC"

    query = _filtered_query(db, options)
    total = query.order_by(None).count()
    if descending:
        query = query.order_by(sort_column.desc(), AuditLog.audit_id.desc())
    else:
        query = query.order_by(sort_column.asc(), AuditLog.audit_id.asc())
    rows = query.offset(options.offset).limit(options.limit).all()

    return {
        "audit_logs": [audit_log_to_dict(r, timezone_name) for r in rows],
        "total": total,
        "limit": options.limit,
        "offset": options.offset,
    }


def _count_since(db: Session, since) -> int:
    return db.query(func.count(AuditLog.audit_id)).filter(AuditLog.date >= since).scalar() or 0


def get_audit_stats(db: Session, timezone_name: str = "UTC") -> Dict[str, Any]:
    tz = pytz.timezone(timezone_name)
    now = utcnow()
    local_now = now.astimezone(tz)
    start_of_today = tz.localize(local_now.replace(hour=0, minute=0, second=0, microsecond=0, tzinfo=None)).astimezone(pytz.utc)
    week_ago = now - timedelta(days=7)

    total = db.query(func.count(AuditLog.audit_id)).scalar() or 0

    count_col = func.count(AuditLog.audit_id).label("count")
    action_stats = (
        db.query(AuditLog.action_type, count_col)
        .group_by(AuditLog.action_type)
        .order_by(count_col.desc())
        .all()
    )
    table_stats = (
        db.query(AuditLog.table_name, count_col)
        .group_by(AuditLog.table_name)
        .order_by(count_col.desc())
        .all()
    )
    user_stats = (
        db.query(AuditLog.emp_id, count_col)
        .group_by(AuditLog.emp_id)
        .order_by(count_col.desc())
        .limit(10)
        .all()
    )

    # Hour and day buckets are computed here rather than in SQL so they follow
    # the display time zone on every database backend.
    recent_dates = [ensure_utc(d) for (d,) in db.query(AuditLog.date).filter(AuditLog.date >= min(week_ago, start_of_today)).all()]
    hourly: Dict[int, int] = {}
    daily: Dict[str, int] = OrderedDict()
    for when in sorted(recent_dates):
        local = when.astimezone(tz)
        if when >= start_of_today:
            hourly[local.hour] = hourly.get(local.hour, 0) + 1
        if when >= week_ago:
            key = local.date().isoformat()
            daily[key] = daily.get(key, 0) + 1

    return {
        "totalLogs": total,
        "todayLogs": _count_since(db, start_of_today),
        "weekLogs": _count_since(db, week_ago),
        "monthLogs": _count_since(db, now - timedelta(days=30)),
        "actionStats": [{"action_type": a, "count": c} for a, c in action_stats],
        "tableStats": [{"table_name": t, "count": c} for t, c in table_stats],
        "userStats": [{"emp_id": u, "count": c} for u, c in user_stats],
        "hourlyStats": [{"hour": h, "count": hourly[h]} for h in sorted(hourly)],
        "dailyStats": [{"date": d, "count": c} for d, c in daily.items()],
    }


def get_record_audit_history(db: Session, table_name: str, record_id: str, timezone_name: str = "UTC") -> List[Dict[str, Any]]:
    rows = (
        db.query(AuditLog)
        .filter(AuditLog.table_name == table_name, AuditLog.record_id == str(record_id))
        .order_by(AuditLog.date.desc(), AuditLog.audit_id.desc())
        .all()
    )
    return [audit_log_to_dict(r, timezone_name) for r in rows]


def get_user_activity(db: Session, username: str, limit: int = 50, offset: int = 0, timezone_name: str = "UTC") -> Dict[str, Any]:
    query = db.query(AuditLog).filter(AuditLog.emp_id == username)
    total = query.count()
    rows = query.order_by(AuditLog.date.desc(), AuditLog.audit_id.desc()).offset(offset).limit(limit).all()
    return {
        "user_logs": [audit_log_to_dict(r, timezone_name) for r in rows],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


def _period_key(when, group_by: str) -> str:
    if group_by == "hour":
        return when.strftime("%Y-%m-%d %H:00:00")
    if group_by == "week":
        iso_year, iso_week, _ = when.isocalendar()
        return f"{iso_year}-{iso_week:02d}"
    if group_by == "month":
        return when.strftime("%Y-%m")
    return when.strftime("%Y-%m-%d")


def get_audit_logs_by_date_range(db: Session, start_date, end_date, group_by: str = "day", timezone_name: str = "UTC") -> List[Dict[str, Any]]:
    if group_by not in ("hour", "day", "week", "month"):
        raise ValueError("group_by must be one of hour, day, week, month")
    tz = pytz.timezone(timezone_name)
    rows = (
        db.query(AuditLog)
        .filter(AuditLog.date >= ensure_utc(start_date), AuditLog.date <= ensure_utc(end_date))
        .order_by(AuditLog.date.asc(), AuditLog.audit_id.asc())
        .all()
    )
    buckets: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
    for row in rows:
        key = _period_key(ensure_utc(row.date).astimezone(tz), group_by)
        bucket = buckets.setdefault(key, {"period": key, "count": 0, "actions": []})
        bucket["count"] += 1
        bucket["actions"].append({
            "action_type": row.action_type,
            "table_name": row.table_name,
            "emp_id": row.emp_id,
        })
    return list(buckets.values())


def _export_frame(db: Session, options: AuditLogQuery, timezone_name: str) -> pd.DataFrame:
    options = options.model_copy(update={"limit": EXPORT_LIMIT, "offset": 0})
    result = get_audit_logs(db, options, timezone_name)
    records = [
        [
            log["audit_id"],
            log["emp_id"],
            log["formatted_date"],
            log["status"],
            log["table_name"],
            log["record_id"],
            log["action_type"],
            log["ip_address"],
        ]
        for log in result["audit_logs"]
    ]
    return pd.DataFrame(records, columns=EXPORT_HEADERS)


def export_audit_logs(db: Session, options: AuditLogQuery, timezone_name: str = "UTC") -> str:
    """CSV text of up to EXPORT_LIMIT matching rows, every field quoted."""
    df = _export_frame(db, options, timezone_name)
    buffer = StringIO()
    df.to_csv(buffer, index=False, quoting=csv.QUOTE_ALL)
    return buffer.getvalue()


def export_audit_logs_excel(db: Session, options: AuditLogQuery, timezone_name: str = "UTC") -> BytesIO:
    df = _export_frame(db, options, timezone_name)
    excel_file = BytesIO()
    df.to_excel(excel_file, index=False, sheet_name='Audit Logs')
    excel_file.seek(0)
    return excel_file


def cleanup_old_logs(db: Session, retention_days: int = 365) -> int:
    cutoff = utcnow() - timedelta(days=retention_days)
    try:
        deleted = (
            db.query(AuditLog)
            .filter(AuditLog.date < cutoff)
            .delete(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info(f"Removed {deleted} audit rows older than {retention_days} days")
    return deleted

