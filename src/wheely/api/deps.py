"""
FastAPI dependencies: wire the rules engines to the application's
Database handle, codec and throttling state.
"""

from typing import Optional, TypeVar

from fastapi import Request

from ..core.accounts import AccountService
from ..core.exceptions import RateLimitError
from ..core.metrics import MetricsCollector
from ..core.outcome import Outcome
from ..core.reports import ReportService
from ..storage import AccountRepository, Database, ReportRepository

T = TypeVar("T")


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_metrics(request: Request) -> Optional[MetricsCollector]:
    return getattr(request.app.state, "metrics", None)


def get_account_service(request: Request) -> AccountService:
    """Dependency to build the account rules engine for this request."""
    database = get_database(request)
    settings = request.app.state.settings

    return AccountService(
        accounts=AccountRepository(database),
        reports=ReportRepository(database),
        codec=request.app.state.codec,
        delete_policy=settings.accounts.delete_policy,
    )


def get_report_service(request: Request) -> ReportService:
    """Dependency to build the report rules engine for this request."""
    database = get_database(request)
    settings = request.app.state.settings

    return ReportService(
        reports=ReportRepository(database),
        accounts=AccountRepository(database),
        recent_window_days=settings.reports.recent_window_days,
    )


async def throttle_login(request: Request) -> None:
    """Draw one token from the caller's login bucket."""
    limiter = request.app.state.login_limiter
    client_key = request.client.host if request.client else "unknown"

    try:
        await limiter.check_rate_limit(client_key)
    except RateLimitError:
        metrics = get_metrics(request)
        if metrics:
            metrics.record_rate_limited()
        raise


def resolve(outcome: Outcome[T], entity: str, metrics: Optional[MetricsCollector] = None) -> T:
    """Return the outcome's value or raise the boundary exception for its failure."""
    if not outcome.ok and metrics:
        metrics.record_rule_failure(entity, outcome.error.value)
    return outcome.unwrap()
