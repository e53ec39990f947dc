"""
Persistence gateway for accounts and reports.

Every public method is one unit of work on the injected Database. Rows
are mapped to detached domain dataclasses before the session closes.
"""

from typing import List, Optional

import structlog
from sqlalchemy.exc import IntegrityError

from ..core.entities import Account, Report
from ..core.exceptions import DuplicateKeyError
from .database import Database
from .tables import AccountRecord, ReportRecord

logger = structlog.get_logger(__name__)


def _to_account(record: AccountRecord) -> Account:
    return Account(
        id=record.id,
        name=record.name,
        email=record.email,
        password=record.password,
    )


def _to_report(record: ReportRecord) -> Report:
    return Report(
        id=record.id,
        route_id=record.route_id,
        category_id=record.category_id,
        author_id=record.author_id,
        title=record.title,
        description=record.description,
        created_at=record.created_at,
    )


class AccountRepository:
    """Account storage primitives."""

    def __init__(self, database: Database) -> None:
        self.database = database

    def find_all(self) -> List[Account]:
        with self.database.session_scope() as session:
            records = session.query(AccountRecord).order_by(AccountRecord.id).all()
            return [_to_account(record) for record in records]

    def find_by_id(self, account_id: int) -> Optional[Account]:
        with self.database.session_scope() as session:
            record = session.get(AccountRecord, account_id)
            return _to_account(record) if record else None

    def find_by_email(self, email: str) -> Optional[Account]:
        with self.database.session_scope() as session:
            record = session.query(AccountRecord).filter(AccountRecord.email == email).first()
            return _to_account(record) if record else None

    def save(self, account: Account) -> int:
        """Insert a new account and return its generated id."""
        with self.database.session_scope() as session:
            record = AccountRecord(
                name=account.name,
                email=account.email,
                password=account.password,
            )
            session.add(record)
            try:
                session.flush()
            except IntegrityError as e:
                raise DuplicateKeyError("Email already registered", details={"field": "email"}) from e

            logger.debug("Account row inserted", account_id=record.id)
            return record.id

    def update(self, account: Account) -> bool:
        """Overwrite name, email and password. False when the row is gone."""
        with self.database.session_scope() as session:
            record = session.get(AccountRecord, account.id)
            if record is None:
                return False

            record.name = account.name
            record.email = account.email
            record.password = account.password
            try:
                session.flush()
            except IntegrityError as e:
                raise DuplicateKeyError("Email already registered", details={"field": "email"}) from e
            return True

    def delete(self, account_id: int) -> bool:
        with self.database.session_scope() as session:
            deleted = session.query(AccountRecord).filter(AccountRecord.id == account_id).delete()
            return deleted > 0

    def delete_with_reports(self, account_id: int) -> Optional[int]:
        """
        Remove an account and every report it wrote in one unit of work.

        Returns the number of reports removed, or None when the account row
        is gone. A failure on either table leaves both untouched.
        """
        with self.database.session_scope() as session:
            reports_removed = (
                session.query(ReportRecord)
                .filter(ReportRecord.author_id == account_id)
                .delete(synchronize_session=False)
            )
            deleted = session.query(AccountRecord).filter(AccountRecord.id == account_id).delete()
            if deleted == 0:
                session.rollback()
                return None
            return reports_removed

    def count(self) -> int:
        with self.database.session_scope() as session:
            return session.query(AccountRecord).count()


class ReportRepository:
    """Report storage primitives. Listings are newest first."""

    def __init__(self, database: Database) -> None:
        self.database = database

    def find_all(self) -> List[Report]:
        with self.database.session_scope() as session:
            records = (
                session.query(ReportRecord)
                .order_by(ReportRecord.created_at.desc(), ReportRecord.id.desc())
                .all()
            )
            return [_to_report(record) for record in records]

    def find_by_id(self, report_id: int) -> Optional[Report]:
        with self.database.session_scope() as session:
            record = session.get(ReportRecord, report_id)
            return _to_report(record) if record else None

    def find_by_author(self, author_id: int) -> List[Report]:
        with self.database.session_scope() as session:
            records = (
                session.query(ReportRecord)
                .filter(ReportRecord.author_id == author_id)
                .order_by(ReportRecord.created_at.desc(), ReportRecord.id.desc())
                .all()
            )
            return [_to_report(record) for record in records]

    def exists_for_author(self, author_id: int) -> bool:
        with self.database.session_scope() as session:
            return (
                session.query(ReportRecord.id)
                .filter(ReportRecord.author_id == author_id)
                .first()
                is not None
            )

    def save(self, report: Report) -> int:
        """Insert a new report and return its generated id."""
        with self.database.session_scope() as session:
            record = ReportRecord(
                route_id=report.route_id,
                category_id=report.category_id,
                author_id=report.author_id,
                title=report.title,
                description=report.description,
                created_at=report.created_at,
            )
            session.add(record)
            session.flush()

            logger.debug("Report row inserted", report_id=record.id, author_id=report.author_id)
            return record.id

    def update(self, report: Report) -> bool:
        """
        Overwrite route, category, title and description.

        Author and creation time are never written after insert.
        """
        with self.database.session_scope() as session:
            record = session.get(ReportRecord, report.id)
            if record is None:
                return False

            record.route_id = report.route_id
            record.category_id = report.category_id
            record.title = report.title
            record.description = report.description
            return True

    def delete(self, report_id: int) -> bool:
        with self.database.session_scope() as session:
            deleted = session.query(ReportRecord).filter(ReportRecord.id == report_id).delete()
            return deleted > 0

    def delete_by_author(self, author_id: int) -> int:
        with self.database.session_scope() as session:
            return session.query(ReportRecord).filter(ReportRecord.author_id == author_id).delete()

    def count(self) -> int:
        with self.database.session_scope() as session:
            return session.query(ReportRecord).count()
