"""
Report rules: field validation, authorship enforcement and statistics.
"""

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable, List, Optional

import structlog

from .entities import Report, ReportCategory, ReportPayload, ReportStats
from .outcome import ErrorKind, Outcome

if TYPE_CHECKING:
    from ..storage.repositories import AccountRepository, ReportRepository

logger = structlog.get_logger(__name__)

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000


def utc_now() -> datetime:
    """Naive UTC timestamp, the form the store keeps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ReportService:
    """
    Report rules engine.

    Only the author of a report may change or delete it. Creation
    timestamps come from `clock` and are never rewritten.
    """

    def __init__(
        self,
        reports: "ReportRepository",
        accounts: "AccountRepository",
        recent_window_days: int = 30,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.reports = reports
        self.accounts = accounts
        self.recent_window = timedelta(days=recent_window_days)
        self.clock = clock

    def list_all(self) -> List[Report]:
        return self.reports.find_all()

    def get_by_id(self, report_id: int) -> Outcome[Report]:
        report = self.reports.find_by_id(report_id)
        if report is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Report not found")
        return Outcome.success(report)

    def list_by_author(self, author_id: int) -> Outcome[List[Report]]:
        if self.accounts.find_by_id(author_id) is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Account not found")
        return Outcome.success(self.reports.find_by_author(author_id))

    def create(self, payload: ReportPayload) -> Outcome[int]:
        """Store a new report. Succeeds with the generated id."""
        error = self._check(payload)
        if error:
            return Outcome.failure(ErrorKind.INVALID_INPUT, error)

        report = Report(
            id=0,
            route_id=payload.route_id,
            category_id=payload.category_id,
            author_id=payload.author_id,
            title=payload.title.strip(),
            description=payload.description.strip(),
            created_at=self.clock(),
        )
        report_id = self.reports.save(report)

        logger.info(
            "Report created",
            report_id=report_id,
            author_id=report.author_id,
            category=ReportCategory(report.category_id).label,
        )
        return Outcome.success(report_id)

    def update(self, report_id: int, payload: ReportPayload) -> Outcome[Report]:
        """
        Update a report on behalf of its author.

        The payload's author id must equal the stored one; the stored author
        and creation time are carried forward.
        """
        existing = self.reports.find_by_id(report_id)
        if existing is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Report not found")

        error = self._check(payload)
        if error:
            return Outcome.failure(ErrorKind.INVALID_INPUT, error)

        if payload.author_id != existing.author_id:
            logger.warning(
                "Report update rejected: not the author",
                report_id=report_id,
                author_id=existing.author_id,
                requester_id=payload.author_id,
            )
            return Outcome.failure(ErrorKind.UNAUTHORIZED, "Only the author can modify this report")

        updated = Report(
            id=report_id,
            route_id=payload.route_id,
            category_id=payload.category_id,
            author_id=existing.author_id,
            title=payload.title.strip(),
            description=payload.description.strip(),
            created_at=existing.created_at,
        )
        if not self.reports.update(updated):
            return Outcome.failure(ErrorKind.NOT_FOUND, "Report not found")

        logger.info("Report updated", report_id=report_id, author_id=existing.author_id)
        return Outcome.success(updated)

    def delete(self, report_id: int, requester_id: int) -> Outcome[None]:
        report = self.reports.find_by_id(report_id)
        if report is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Report not found")

        if report.author_id != requester_id:
            logger.warning(
                "Report delete rejected: not the author",
                report_id=report_id,
                author_id=report.author_id,
                requester_id=requester_id,
            )
            return Outcome.failure(ErrorKind.UNAUTHORIZED, "Only the author can delete this report")

        if not self.reports.delete(report_id):
            return Outcome.failure(ErrorKind.NOT_FOUND, "Report not found")

        logger.info("Report deleted", report_id=report_id, author_id=requester_id)
        return Outcome.success()

    def stats(self) -> ReportStats:
        """
        Count reports per category and within the trailing window.

        The window is evaluated by scanning every report against the clock
        at call time.
        """
        total = self.reports.count()
        reports = self.reports.find_all()
        cutoff = self.clock() - self.recent_window

        by_category = {category: 0 for category in ReportCategory}
        recent = 0
        for report in reports:
            if ReportCategory.is_valid(report.category_id):
                by_category[ReportCategory(report.category_id)] += 1
            if report.created_at is not None and report.created_at > cutoff:
                recent += 1

        return ReportStats(
            total=total,
            incidents=by_category[ReportCategory.INCIDENT],
            suggestions=by_category[ReportCategory.SUGGESTION],
            complaints=by_category[ReportCategory.COMPLAINT],
            recent=recent,
        )

    @staticmethod
    def categories() -> List[ReportCategory]:
        return list(ReportCategory)

    def _check(self, payload: Optional[ReportPayload]) -> Optional[str]:
        """Field rules first, then the references. Returns the first violation."""
        error = self._validate_fields(payload)
        if error:
            return error

        if self.accounts.find_by_id(payload.author_id) is None:
            return "Author account not found"

        if payload.category_id is None or not ReportCategory.is_valid(payload.category_id):
            return "Report category is not valid"

        if payload.route_id is None or payload.route_id <= 0:
            return "Route id is not valid"

        return None

    @staticmethod
    def _validate_fields(payload: Optional[ReportPayload]) -> Optional[str]:
        if payload is None:
            return "Report data is required"

        if payload.title is None or not payload.title.strip():
            return "Title is required"

        if payload.description is None or not payload.description.strip():
            return "Description is required"

        if len(payload.title.strip()) > TITLE_MAX_LENGTH:
            return f"Title cannot exceed {TITLE_MAX_LENGTH} characters"

        if len(payload.description.strip()) > DESCRIPTION_MAX_LENGTH:
            return f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"

        if payload.author_id is None or payload.author_id <= 0:
            return "Author id is not valid"

        return None
