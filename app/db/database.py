"""
@file database.py
@brief SQLAlchemy database engine and session configuration

@details
Centralized connection management for the hazard store. Configures the
engine from DATABASE_URL and the session factory used by the hazard
store.

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0

@see models.hazard for ORM models
@see db.seed for startup initialization
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings


def build_engine(database_url: str):
    """
    @brief Create an engine, allowing SQLite to be shared across threads
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


## @brief SQLAlchemy engine instance
engine = build_engine(settings.database_url)

## @brief Session factory with explicit transaction control
## expire_on_commit=False keeps returned reports readable after the session closes
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

