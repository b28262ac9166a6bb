"""
SQLAlchemy base configuration for the Contact Consolidation Service
This module sets up the declarative base, the shared timestamp columns
and the async engine factory
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from config import settings


def create_database_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create database engine with appropriate settings for environment"""
    database_url = database_url or settings.get_active_database_url()

    if settings.is_sqlite(database_url):
        # One shared connection so an in-memory database survives across sessions
        return create_async_engine(
            database_url,
            echo=settings.DEBUG,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    if settings.is_lambda_environment():
        # Lambda-optimized settings for RDS Proxy
        return create_async_engine(
            database_url,
            echo=settings.DEBUG,
            isolation_level=settings.DB_ISOLATION_LEVEL,
            pool_pre_ping=True,
            pool_size=1,
            max_overflow=0,
            pool_recycle=3600,
            pool_timeout=10,
            connect_args={
                "command_timeout": 10,
                "server_settings": {
                    "application_name": "contact-consolidation-lambda",
                }
            }
        )

    return create_async_engine(
        database_url,
        echo=settings.DEBUG,
        isolation_level=settings.DB_ISOLATION_LEVEL,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        connect_args={
            "server_settings": {
                "application_name": "contact-consolidation",
            }
        }
    )


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models"""
    pass


class BaseModel(Base):
    """
    Abstract model carrying the surrogate key and lifecycle timestamps

    Timestamps come from the database clock so seniority does not depend on
    which application host inserted the row. deleted_at is a tombstone: rows
    are never physically removed
    """
    __abstract__ = True

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

