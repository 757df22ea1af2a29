import enum

from sqlalchemy import Column, Integer, String, DateTime, JSON, Text, Index

from database import Base
from utils.formatting import utcnow


class AuditAction(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"


class AuditLog(Base):
    __tablename__ = "audit"
    __table_args__ = (
        Index("ix_audit_table_record", "table_name", "record_id"),
    )

    audit_id = Column(Integer, primary_key=True, index=True)
    emp_id = Column(String(100), nullable=False, index=True)
    date = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    status = Column(Text, nullable=False)  # human readable description, e.g. "Customer Created: Ali Hassan"
    table_name = Column(String(64), nullable=True)
    record_id = Column(String(64), nullable=True)
    action_type = Column(String(16), nullable=True)  # one of AuditAction
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(255), nullable=True)
    session_id = Column(String(128), nullable=True)
