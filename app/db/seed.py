"""
@file seed.py
@brief Database initialization on application startup

@details
Manages the hazard store lifecycle:
- Connection health checking with retry logic
- Schema creation (idempotent via SQLAlchemy metadata)
- Sweep of reports whose time-to-live elapsed while the service was down

Safe to call multiple times.

@author RainSafe Project
@date 2026-10-19
@version 2.0
@license AGPL-3.0

@see db.database for engine configuration
@see models.hazard for table schema
"""

import time
import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.db.base import Base
import app.models.hazard  # noqa: F401  registers the table on Base.metadata

## @brief Module logger for startup diagnostics
logger = logging.getLogger(__name__)


def wait_for_database(engine: Engine, max_retries: int = 30, retry_delay: float = 2) -> bool:
    """
    @brief Wait for database to become available

    @details
    Useful for containerized deployments where the database may start after
    the app. Attempts `SELECT 1` up to max_retries times, sleeping
    retry_delay seconds between attempts.

    @param engine SQLAlchemy engine to probe
    @param max_retries (int) Maximum connection attempts [default: 30]
    @param retry_delay (float) Delay between retries in seconds [default: 2]

    @return True if database available, False if max retries exceeded
    """
    retries = 0
    while retries < max_retries:
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("✓ Database connection established successfully")
            return True
        except OperationalError as e:
            retries += 1
            logger.warning(
                f"Database not ready (attempt {retries}/{max_retries}): {str(e)[:100]}"
            )
            if retries < max_retries:
                logger.info(f"Retrying in {retry_delay} seconds...")
                time.sleep(retry_delay)

    logger.error(f"Failed to connect to database after {max_retries} attempts")
    return False


def sweep_expired_reports(engine: Engine) -> int:
    """
    @brief Mark every live report past its expiry as expired

    @return Number of rows updated
    """
    from app.services.hazard_store import HazardStore

    store = HazardStore(sessionmaker(bind=engine, expire_on_commit=False))
    return store.expire_stale()


def initialize_database(engine: Optional[Engine] = None, max_retries: int = 1) -> bool:
    """
    @brief Main entry point for database initialization on app startup

    @details
    1. Wait for the database to be available
    2. Create table schema
    3. Expire reports that outlived their TTL

    Errors are logged and reported through the return value; the app keeps
    running so route evaluation stays available without the hazard store.

    @return True if all steps successful, False if any step fails
    """
    if engine is None:
        from app.db.database import engine

    logger.info("Starting database initialization...")

    if not wait_for_database(engine, max_retries=max_retries, retry_delay=1):
        logger.error("Could not establish database connection - proceeding anyway")
        return False

    try:
        logger.info("Creating tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("✓ Tables created/verified")
    except Exception as e:
        logger.error(f"Error creating tables: {e}", exc_info=True)
        return False

    try:
        expired = sweep_expired_reports(engine)
        if expired:
            logger.info(f"✓ Marked {expired} stale hazard reports as expired")
    except Exception as e:
        logger.warning(f"⚠ Could not sweep expired reports: {e}")

    logger.info("✓ Database initialization completed successfully")
    return True
