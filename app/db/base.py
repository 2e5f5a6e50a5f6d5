"""
Database Base Configuration Module

Declarative base shared by every ORM model of the hazard store. Importing a
model module registers its table on Base.metadata, which startup
initialization uses to create the schema.

Author: RainSafe Project
License: AGPL-3.0
"""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
