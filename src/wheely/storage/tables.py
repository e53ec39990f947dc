"""
SQLAlchemy ORM tables for accounts and route status reports.
"""

from typing import Any

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import declarative_base

Base: Any = declarative_base()


class AccountRecord(Base):
    """
    A registered account.

    Attributes:
        id: Primary key assigned by the store
        name: Display name
        email: Login email, unique
        password: bcrypt hash of the account secret
    """

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)


class ReportRecord(Base):
    """
    A route status report.

    Attributes:
        id: Primary key assigned by the store
        route_id: Route the report refers to (not managed here)
        category_id: 1 incident, 2 suggestion, 3 complaint
        author_id: Account that wrote the report
        title: Short summary
        description: Report body
        created_at: UTC creation time, naive
    """

    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    route_id = Column(Integer, nullable=False)
    category_id = Column(Integer, nullable=False)
    author_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=False)
    created_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_reports_created_at", "created_at"),
    )
