"""
Database models package for the Contact Consolidation Service
Contains SQLAlchemy models for contact fragments and their linkage
"""

from .base import Base, BaseModel, create_database_engine
from .contact import Contact, LinkPrecedence

__all__ = ['Base', 'BaseModel', 'Contact', 'LinkPrecedence', 'create_database_engine']
