"""
Database Configuration Module

This module handles the database configuration and connection setup for the
Laundry Management backend. It uses SQLAlchemy for ORM (Object-Relational
Mapping) with MySQL/MariaDB as the production database.

The module includes:
- Engine and session factory construction from a Settings object
- Base model class definition
- Soft delete filter implementation
- The per-request session dependency
"""

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session, declarative_base, with_loader_criteria
from sqlalchemy.pool import StaticPool

from config import Settings

# Create Base class
# Base is the declarative base class that our ORM models will inherit from
Base = declarative_base()


def build_engine(settings: Settings):
    """
    Create the SQLAlchemy engine described by the settings.

    The pool is bounded by ``db_pool_size``; when it is exhausted requests
    wait up to ``db_pool_timeout`` seconds for a connection.
    """
    url = settings.database_url
    if url.startswith("sqlite"):
        # In-memory SQLite has to share one connection across threads
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)

    return create_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=0,
        pool_timeout=settings.db_pool_timeout,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def build_session_factory(engine):
    # autocommit=False means we need to explicitly commit transactions
    # autoflush=False means we need to explicitly flush changes to the database
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@event.listens_for(Session, "do_orm_execute")
def add_soft_delete_filter(execute_state):
    """
    Event listener that automatically filters out "soft-deleted" records.

    This function adds a filter to all SELECT queries to exclude records
    where the 'deleted_at' field is not NULL. This implements a "soft delete"
    pattern where records are marked as deleted rather than actually removed
    from the database.

    Queries can opt out with ``.execution_options(include_deleted=True)``.

    Args:
        execute_state: The current execution state of the query
    """
    if (
        execute_state.is_select
        and not execute_state.is_column_load
        and not execute_state.is_relationship_load
        and not execute_state.execution_options.get("include_deleted", False)
    ):
        for entity in execute_state.statement.column_descriptions:
            mapped = entity.get("entity")
            if mapped is not None and hasattr(mapped, "deleted_at"):
                execute_state.statement = execute_state.statement.options(
                    with_loader_criteria(
                        mapped,
                        lambda cls: cls.deleted_at.is_(None),
                        include_aliases=True
                    )
                )


# Dependency to get database session
def get_db(request: Request):
    """
    Dependency function that provides a database session.

    The session factory is created by ``create_app`` and stored on
    ``app.state``; a new session is opened for each request and closed after
    the request is completed.

    Yields:
        Session: A SQLAlchemy database session
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
