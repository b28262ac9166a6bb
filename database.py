"""
Database connection and session management for the Contact Consolidation Service
This module owns the async SQLAlchemy engine, hands out transactional sessions
and manages the connection lifecycle. Supports local PostgreSQL and AWS RDS
deployments with connection pooling.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import make_url, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config import settings
from models import Base, create_database_engine

logger = logging.getLogger(__name__)


def _hide_credentials(database_url: str) -> str:
    return make_url(database_url).render_as_string(hide_password=True)


class DatabaseManager:
    """
    Database connection manager that handles the SQLAlchemy async engine,
    session creation, and connection lifecycle management
    """

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.get_active_database_url()
        self.engine = None
        self.SessionLocal = None
        self._initialize_database()

    def _initialize_database(self):
        """Initialize database engine and session factory"""
        try:
            logger.info(f"Initializing database connection to: {_hide_credentials(self.database_url)}")

            self.engine = create_database_engine(self.database_url)

            self.SessionLocal = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False
            )

            logger.info("Database connection initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database connection: {e}")
            raise

    async def create_tables(self):
        """Create all database tables defined in models"""
        try:
            logger.info("Creating database tables...")
            async with self.engine.begin() as connection:
                await connection.run_sync(Base.metadata.create_all)
            logger.info("Database tables created successfully")
        except Exception as e:
            logger.error(f"Failed to create database tables: {e}")
            raise

    async def drop_tables(self):
        """Drop all database tables defined in models"""
        async with self.engine.begin() as connection:
            await connection.run_sync(Base.metadata.drop_all)

    async def test_connection(self) -> bool:
        """Test database connection"""
        try:
            async with self.engine.connect() as connection:
                await connection.execute(text("SELECT 1"))
            logger.info("Database connection test successful")
            return True
        except Exception as e:
            logger.error(f"Database connection test failed: {e}")
            return False

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        One atomic unit of work: commit on success, roll back on any error
        Usage:
            async with db_manager.transaction() as session:
                # database operations
        """
        session = self.SessionLocal()
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Transaction rolled back: {e}")
            raise
        finally:
            await session.close()

    async def dispose(self):
        """Close every pooled connection"""
        await self.engine.dispose()


# Global database manager instance
db_manager = DatabaseManager()
