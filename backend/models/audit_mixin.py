from sqlalchemy import Column, DateTime, String

from utils.formatting import utcnow


class TimestampMixin:
    """Mixin that provides created/updated timestamps and user info.

    All timestamps are stored as UTC instants. Converting to the shop's local
    time is a presentation concern (see utils.formatting).
    """
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    created_by = Column(String(100), nullable=True)
    updated_by = Column(String(100), nullable=True)


class SoftDeleteMixin:
    """Mixin for soft-delete columns (deleted_at, deleted_by).

    Rows carrying these columns are hidden from ORM queries by the session
    filter in ``database.add_soft_delete_filter`` once ``deleted_at`` is set.
    """
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String(100), nullable=True)


class AuditMixin(TimestampMixin, SoftDeleteMixin):
    """Timestamps + soft-delete, used by every tracked business table."""
    pass
