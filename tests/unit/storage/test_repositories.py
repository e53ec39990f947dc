"""
Tests for the SQLAlchemy persistence gateway.
"""

import logging
from datetime import datetime

import pytest
from sqlalchemy import event

from wheely.config import DatabaseSettings
from wheely.core.entities import Account, Report
from wheely.core.exceptions import DuplicateKeyError, StorageError
from wheely.storage import AccountRecord, AccountRepository, Database, ReportRepository


def make_account(email: str = "ana@x.com", name: str = "Ana") -> Account:
    return Account(id=0, name=name, email=email, password="$2b$04$hash")


def make_report(author_id: int, title: str = "Bus late", created_at: datetime = datetime(2024, 3, 1)) -> Report:
    return Report(
        id=0,
        route_id=5,
        category_id=1,
        author_id=author_id,
        title=title,
        description="30 min",
        created_at=created_at,
    )


class TestDatabase:
    """Engine and session handling."""

    def test_ping_healthy(self, database: Database) -> None:
        assert database.ping() is None

    def test_ping_reports_failure(self) -> None:
        db = Database.from_settings(DatabaseSettings(url="sqlite:////nonexistent-dir/wheely.db"))
        assert db.ping() is not None
        db.dispose()

    def test_create_schema_is_idempotent(self, database: Database) -> None:
        database.create_schema()
        assert AccountRepository(database).count() == 0

    def test_session_scope_rolls_back_on_error(self, database: Database, account_repository: AccountRepository) -> None:
        account_repository.save(make_account())

        with pytest.raises(RuntimeError):
            with database.session_scope() as session:
                session.add(AccountRecord(name="Bob", email="bob@x.com", password="h"))
                session.flush()
                raise RuntimeError("boom")

        assert account_repository.count() == 1

    def test_storage_fault_keeps_bound_values_out_of_logs(
        self,
        database: Database,
        account_repository: AccountRepository,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        account_repository.save(make_account())
        AccountRecord.__table__.drop(database.engine)

        with caplog.at_level(logging.ERROR):
            with pytest.raises(StorageError) as exc_info:
                account_repository.find_by_email("ana@x.com")

        assert exc_info.value.details == {"error_type": "OperationalError"}
        assert "ana@x.com" not in str(exc_info.value.__cause__)
        assert "Database operation failed" in caplog.text
        assert "ana@x.com" not in caplog.text

    def test_safe_url_hides_credentials(self) -> None:
        settings = DatabaseSettings(url="postgresql://wheely:hunter2@db:5432/wheely")
        assert settings.safe_url == "postgresql://***@db:5432/wheely"
        assert not settings.is_sqlite


class TestAccountRepository:
    """Account storage primitives."""

    def test_save_assigns_ids(self, account_repository: AccountRepository) -> None:
        first = account_repository.save(make_account("ana@x.com"))
        second = account_repository.save(make_account("bob@x.com", "Bob"))

        assert first > 0
        assert second > first
        assert account_repository.count() == 2

    def test_find_by_email_and_id(self, account_repository: AccountRepository) -> None:
        account_id = account_repository.save(make_account())

        by_email = account_repository.find_by_email("ana@x.com")
        assert by_email is not None
        assert by_email.id == account_id
        assert account_repository.find_by_id(account_id).password == "$2b$04$hash"
        assert account_repository.find_by_email("nobody@x.com") is None
        assert account_repository.find_by_id(999) is None

    def test_duplicate_email_raises(self, account_repository: AccountRepository) -> None:
        account_repository.save(make_account())
        with pytest.raises(DuplicateKeyError):
            account_repository.save(make_account(name="Other Ana"))
        assert account_repository.count() == 1

    def test_update_to_taken_email_raises(self, account_repository: AccountRepository) -> None:
        account_repository.save(make_account("ana@x.com"))
        bob_id = account_repository.save(make_account("bob@x.com", "Bob"))

        with pytest.raises(DuplicateKeyError):
            account_repository.update(Account(id=bob_id, name="Bob", email="ana@x.com", password="h"))
        assert account_repository.find_by_id(bob_id).email == "bob@x.com"

    def test_update_and_delete_missing_row(self, account_repository: AccountRepository) -> None:
        assert account_repository.update(Account(id=42, name="Ghost", email="g@x.com", password="h")) is False
        assert account_repository.delete(42) is False

    def test_find_all_ordered_by_id(self, account_repository: AccountRepository) -> None:
        account_repository.save(make_account("b@x.com", "B"))
        account_repository.save(make_account("a@x.com", "A"))
        assert [a.name for a in account_repository.find_all()] == ["B", "A"]

    def test_delete_with_reports(
        self,
        account_repository: AccountRepository,
        report_repository: ReportRepository,
    ) -> None:
        ana_id = account_repository.save(make_account())
        bob_id = account_repository.save(make_account("bob@x.com", "Bob"))
        report_repository.save(make_report(ana_id))
        report_repository.save(make_report(ana_id))
        report_repository.save(make_report(bob_id))

        assert account_repository.delete_with_reports(ana_id) == 2
        assert account_repository.find_by_id(ana_id) is None
        assert [r.author_id for r in report_repository.find_all()] == [bob_id]

    def test_delete_with_reports_missing_account(self, account_repository: AccountRepository) -> None:
        assert account_repository.delete_with_reports(42) is None

    def test_delete_with_reports_is_all_or_nothing(
        self,
        database: Database,
        account_repository: AccountRepository,
        report_repository: ReportRepository,
    ) -> None:
        ana_id = account_repository.save(make_account())
        report_repository.save(make_report(ana_id))

        def fail_account_delete(conn, cursor, statement, parameters, context, executemany):
            if statement.startswith("DELETE FROM accounts"):
                raise RuntimeError("disk detached")

        event.listen(database.engine, "before_cursor_execute", fail_account_delete)
        try:
            with pytest.raises(RuntimeError):
                account_repository.delete_with_reports(ana_id)
        finally:
            event.remove(database.engine, "before_cursor_execute", fail_account_delete)

        assert account_repository.find_by_id(ana_id) is not None
        assert len(report_repository.find_by_author(ana_id)) == 1


class TestReportRepository:
    """Report storage primitives."""

    def test_listing_is_newest_first(
        self,
        account_repository: AccountRepository,
        report_repository: ReportRepository,
    ) -> None:
        author_id = account_repository.save(make_account())
        report_repository.save(make_report(author_id, "old", datetime(2024, 1, 1)))
        report_repository.save(make_report(author_id, "new", datetime(2024, 2, 1)))
        report_repository.save(make_report(author_id, "newer same time", datetime(2024, 2, 1)))

        titles = [r.title for r in report_repository.find_all()]
        assert titles == ["newer same time", "new", "old"]

    def test_find_by_author(self, account_repository: AccountRepository, report_repository: ReportRepository) -> None:
        ana_id = account_repository.save(make_account())
        bob_id = account_repository.save(make_account("bob@x.com", "Bob"))
        report_repository.save(make_report(ana_id))
        report_repository.save(make_report(bob_id))

        assert [r.author_id for r in report_repository.find_by_author(ana_id)] == [ana_id]
        assert report_repository.exists_for_author(bob_id) is True
        assert report_repository.find_by_author(999) == []
        assert report_repository.exists_for_author(999) is False

    def test_update_keeps_author_and_timestamp(
        self,
        account_repository: AccountRepository,
        report_repository: ReportRepository,
    ) -> None:
        ana_id = account_repository.save(make_account())
        bob_id = account_repository.save(make_account("bob@x.com", "Bob"))
        report_id = report_repository.save(make_report(ana_id))

        changed = Report(
            id=report_id,
            route_id=9,
            category_id=3,
            author_id=bob_id,
            title="Rude driver",
            description="Line 9",
            created_at=datetime(2030, 1, 1),
        )
        assert report_repository.update(changed) is True

        stored = report_repository.find_by_id(report_id)
        assert stored.title == "Rude driver"
        assert stored.route_id == 9
        assert stored.author_id == ana_id
        assert stored.created_at == datetime(2024, 3, 1)

    def test_delete_by_author_counts_rows(
        self,
        account_repository: AccountRepository,
        report_repository: ReportRepository,
    ) -> None:
        ana_id = account_repository.save(make_account())
        report_repository.save(make_report(ana_id))
        report_repository.save(make_report(ana_id))

        assert report_repository.delete_by_author(ana_id) == 2
        assert report_repository.count() == 0

    def test_report_for_unknown_author_is_a_storage_error(self, report_repository: ReportRepository) -> None:
        """The foreign key is enforced by the store."""
        with pytest.raises(StorageError):
            report_repository.save(make_report(author_id=999))

    def test_account_with_reports_cannot_be_dropped_underneath(
        self,
        account_repository: AccountRepository,
        report_repository: ReportRepository,
    ) -> None:
        ana_id = account_repository.save(make_account())
        report_repository.save(make_report(ana_id))

        with pytest.raises(StorageError):
            account_repository.delete(ana_id)
        assert account_repository.find_by_id(ana_id) is not None
