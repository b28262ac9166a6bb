"""
Database table creation script for the Contact Consolidation Service
Creates all tables and checks that the contacts table is reachable.
Run this script after setting up your database to initialize the schema.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy import func, select

from database import DatabaseManager, db_manager
from models import Contact

logger = logging.getLogger(__name__)


async def create_tables(manager: Optional[DatabaseManager] = None) -> bool:
    """
    Create all database tables defined in the models
    Returns False instead of raising so the script can report a clean failure
    """
    manager = manager or db_manager
    try:
        logger.info("Starting database table creation...")

        if not await manager.test_connection():
            logger.error("Database connection failed - cannot create tables")
            return False

        await manager.create_tables()

        async with manager.transaction() as session:
            count = await session.scalar(select(func.count()).select_from(Contact))
            logger.info(f"Contacts table accessible - current count: {count}")

        return True

    except Exception as e:
        logger.error(f"Failed to create database tables: {e}")
        return False


def main():
    logging.basicConfig(level=logging.INFO)
    logger.info("Contact Consolidation API - Database Setup")

    success = asyncio.run(create_tables())

    if success:
        logger.info("Database setup completed successfully!")
    else:
        logger.error("Database setup failed! Check your database configuration and try again")

    return success


if __name__ == "__main__":
    raise SystemExit(0 if main() else 1)
