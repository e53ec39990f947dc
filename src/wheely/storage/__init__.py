"""
Persistence gateway package.

- Database: engine, pool and per-call session scope
- AccountRepository / ReportRepository: storage primitives per entity
"""

from .database import Database, build_engine
from .repositories import AccountRepository, ReportRepository
from .tables import AccountRecord, Base, ReportRecord

__all__ = [
    "Database",
    "build_engine",
    "AccountRepository",
    "ReportRepository",
    "AccountRecord",
    "ReportRecord",
    "Base",
]
