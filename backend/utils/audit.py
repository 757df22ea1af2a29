"""
Audit helpers shared by every router.

``get_audit_user`` works out who is acting on a request, the
``add_audit_fields_*`` helpers stamp created/updated/deleted columns, and
``record_audit`` / ``log_audit_event`` write rows to the ``audit`` table.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from crud.audit_log import add_audit_log, AuditLogError
from models.audit_log import AuditAction
from schemas.audit_log import AuditLogCreate
from utils.auth_utils import get_optional_user
from utils.formatting import utcnow

logger = logging.getLogger("audit")

ANONYMOUS = "anonymous"


def resolve_audit_user(user: Optional[Dict[str, Any]], request: Optional[Request] = None) -> str:
    if user:
        for key in ("username", "fname", "id"):
            if user.get(key):
                return str(user[key])
    if request is not None:
        header_user = request.headers.get("x-user-id")
        if header_user:
            return header_user
    return ANONYMOUS


def get_audit_user(request: Request) -> str:
    """Dependency returning the acting user's identifier; never raises."""
    user = getattr(request.state, "user", None) or get_optional_user(request)
    audit_user = resolve_audit_user(user, request)
    request.state.audit_user = audit_user
    return audit_user


def add_audit_fields_for_insert(data: Dict[str, Any], user: str) -> Dict[str, Any]:
    now = utcnow()
    return {**data, "created_at": now, "created_by": user, "updated_at": now, "updated_by": user}


def add_audit_fields_for_update(data: Dict[str, Any], user: str) -> Dict[str, Any]:
    return {**data, "updated_at": utcnow(), "updated_by": user}


def add_audit_fields_for_delete(user: str) -> Dict[str, Any]:
    return {"deleted_at": utcnow(), "deleted_by": user}


def _request_context(request: Optional[Request]) -> Dict[str, Optional[str]]:
    if request is None:
        return {"ip_address": None, "user_agent": None, "session_id": None}
    forwarded = request.headers.get("x-forwarded-for")
    ip_address = forwarded.split(",")[0].strip() if forwarded else (request.client.host if request.client else None)
    user_agent = request.headers.get("user-agent")
    return {
        "ip_address": ip_address,
        "user_agent": user_agent[:255] if user_agent else None,
        "session_id": request.headers.get("x-session-id"),
    }


def _build_entry(request, table_name, record_id, action_type, status, old_values, new_values, emp_id=None):
    if emp_id is None:
        emp_id = getattr(request.state, "audit_user", None) if request is not None else None
        if emp_id is None:
            emp_id = get_audit_user(request) if request is not None else ANONYMOUS
    return AuditLogCreate(
        emp_id=emp_id,
        status=status,
        table_name=table_name,
        record_id=str(record_id) if record_id is not None else None,
        action_type=AuditAction(action_type) if action_type else None,
        old_values=old_values,
        new_values=new_values,
        **_request_context(request),
    )


def record_audit(
    db: Session,
    request: Optional[Request],
    table_name: str,
    record_id,
    action_type: str,
    status: str,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None,
    emp_id: Optional[str] = None,
):
    """
    Add an audit row to the caller's session.

    Nothing is committed here: the row is written by the caller's commit,
    together with the mutation it describes, or discarded with it on rollback.
    """
    entry = _build_entry(request, table_name, record_id, action_type, status, old_values, new_values, emp_id)
    return add_audit_log(db, entry)


def log_audit_event(
    db: Session,
    request: Optional[Request],
    table_name: str,
    record_id,
    action_type: str,
    status: str,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None,
    emp_id: Optional[str] = None,
) -> Optional[int]:
    """Best-effort audit write in its own commit. Failures are logged, never raised."""
    try:
        entry = _build_entry(request, table_name, record_id, action_type, status, old_values, new_values, emp_id)
        db_entry = add_audit_log(db, entry)
        db.commit()
        return db_entry.audit_id
    except (SQLAlchemyError, AuditLogError) as e:
        db.rollback()
        logger.error(f"Failed to write audit event '{status}' for {table_name}/{record_id}: {e}")
        return None
