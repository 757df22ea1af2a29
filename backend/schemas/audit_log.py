from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime
from models.audit_log import AuditAction

class AuditLogCreate(BaseModel):
    emp_id: str
    status: str
    table_name: Optional[str] = None
    record_id: Optional[str] = None
    action_type: Optional[AuditAction] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    session_id: Optional[str] = None

class AuditLogManualCreate(BaseModel):
    """Body of POST /api/audit. emp_id defaults to the acting user."""
    emp_id: Optional[str] = None
    status: str = Field(..., min_length=1)
    table_name: Optional[str] = None
    record_id: Optional[str] = None
    action_type: Optional[AuditAction] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None

class AuditLogQuery(BaseModel):
    table_name: Optional[str] = None
    action_type: Optional[str] = None
    emp_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    search: Optional[str] = None
    limit: int = Field(100, ge=1, le=10000)
    offset: int = Field(0, ge=0)
    sort_by: str = "date"
    sort_order: str = "DESC"

class AuditCleanupRequest(BaseModel):
    retention_days: int = Field(365, ge=1)
