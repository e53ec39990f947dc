"""
Pytest configuration and shared fixtures.

Contains common test fixtures and setup for all test modules.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Generator

import pytest
from fastapi.testclient import TestClient

from wheely.config import DatabaseSettings, SecuritySettings, Settings
from wheely.core.accounts import AccountService
from wheely.core.entities import AccountPayload, ReportPayload
from wheely.core.reports import ReportService
from wheely.core.security import CredentialCodec
from wheely.main import create_app
from wheely.storage import AccountRepository, Database, ReportRepository


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def test_settings() -> Settings:
    """Settings for an isolated in-memory deployment."""
    return Settings(
        log_level="DEBUG",
        database=DatabaseSettings(url="sqlite://", create_schema=True),
        # Cheapest bcrypt cost; generous login bucket so only throttling tests hit it
        security=SecuritySettings(bcrypt_rounds=4, login_rate_limit_rps=1, login_rate_limit_burst=100),
    )


@pytest.fixture
def database(test_settings: Settings) -> Generator[Database, None, None]:
    """Fresh in-memory database with the schema created."""
    db = Database.from_settings(test_settings.database)
    db.create_schema()
    yield db
    db.dispose()


@pytest.fixture
def codec() -> CredentialCodec:
    return CredentialCodec(rounds=4, min_length=6)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 3, 1, 8, 30, 0))


@pytest.fixture
def account_repository(database: Database) -> AccountRepository:
    return AccountRepository(database)


@pytest.fixture
def report_repository(database: Database) -> ReportRepository:
    return ReportRepository(database)


@pytest.fixture
def account_service(
    account_repository: AccountRepository,
    report_repository: ReportRepository,
    codec: CredentialCodec,
) -> AccountService:
    return AccountService(account_repository, report_repository, codec)


@pytest.fixture
def report_service(
    report_repository: ReportRepository,
    account_repository: AccountRepository,
    clock: FixedClock,
) -> ReportService:
    return ReportService(report_repository, account_repository, recent_window_days=30, clock=clock)


@pytest.fixture
def ana_payload() -> AccountPayload:
    return AccountPayload(name="Ana", email="ana@x.com", password="secret1")


@pytest.fixture
def ana_id(account_service: AccountService, ana_payload: AccountPayload) -> int:
    """Id of a registered account."""
    return account_service.create(ana_payload).unwrap()


@pytest.fixture
def bus_late_payload(ana_id: int) -> ReportPayload:
    return ReportPayload(
        route_id=5,
        category_id=1,
        author_id=ana_id,
        title="Bus late",
        description="30 min",
    )


@pytest.fixture
def test_client(test_settings: Settings, database: Database) -> Generator[TestClient, None, None]:
    """FastAPI test client bound to the in-memory database."""
    app = create_app(test_settings, database)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def ana_body() -> Dict[str, Any]:
    return {"name": "Ana", "email": "ana@x.com", "password": "secret1"}


@pytest.fixture
def registered_account(test_client: TestClient, ana_body: Dict[str, Any]) -> Dict[str, Any]:
    """Account created through the API."""
    response = test_client.post("/accounts", json=ana_body)
    assert response.status_code == 201
    return response.json()["data"]
