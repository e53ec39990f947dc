"""
Report API endpoints.

CRUD over /reports plus per-author listing, statistics and the category
catalogue. Only a report's author may update or delete it.
"""

from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, Query, status

from ..core.entities import ReportCategory
from ..core.exceptions import InvalidInputError
from ..core.metrics import MetricsCollector
from ..core.reports import ReportService
from ..models import (
    ERROR_RESPONSES,
    ApiResponse,
    ErrorResponse,
    ReportCategoryResponse,
    ReportRequest,
    ReportResponse,
    ReportStatsResponse,
)
from .deps import get_metrics, get_report_service, resolve

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/reports")

_NOT_AUTHOR = {401: {"model": ErrorResponse, "description": "Requester is not the author"}}


@router.get(
    "",
    response_model=ApiResponse[List[ReportResponse]],
    summary="List reports",
)
def list_reports(
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[List[ReportResponse]]:
    """All reports, newest first."""
    reports = service.list_all()
    return ApiResponse(
        message="Reports retrieved successfully",
        data=[ReportResponse.from_report(report) for report in reports],
    )


@router.get(
    "/stats",
    response_model=ApiResponse[ReportStatsResponse],
    summary="Report statistics",
    description="""
    Totals per category and the number of reports created in the last
    30 days, computed over the whole data set at call time.
    """,
)
def report_stats(
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[ReportStatsResponse]:
    stats = service.stats()
    return ApiResponse(message="Statistics retrieved successfully", data=ReportStatsResponse.from_stats(stats))


@router.get(
    "/categories",
    response_model=ApiResponse[List[ReportCategoryResponse]],
    summary="Report categories",
)
def report_categories(
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[List[ReportCategoryResponse]]:
    return ApiResponse(
        message="Report categories retrieved successfully",
        data=[ReportCategoryResponse.from_category(category) for category in service.categories()],
    )


@router.get(
    "/author/{author_id}",
    response_model=ApiResponse[List[ReportResponse]],
    responses=ERROR_RESPONSES,
    summary="List reports by author",
)
def list_reports_by_author(
    author_id: int,
    service: ReportService = Depends(get_report_service),
    metrics: Optional[MetricsCollector] = Depends(get_metrics),
) -> ApiResponse[List[ReportResponse]]:
    reports = resolve(service.list_by_author(author_id), "report", metrics)
    return ApiResponse(
        message="Author reports retrieved successfully",
        data=[ReportResponse.from_report(report) for report in reports],
    )


@router.get(
    "/{report_id}",
    response_model=ApiResponse[ReportResponse],
    responses=ERROR_RESPONSES,
    summary="Get report",
)
def get_report(
    report_id: int,
    service: ReportService = Depends(get_report_service),
    metrics: Optional[MetricsCollector] = Depends(get_metrics),
) -> ApiResponse[ReportResponse]:
    report = resolve(service.get_by_id(report_id), "report", metrics)
    return ApiResponse(message="Report found", data=ReportResponse.from_report(report))


@router.post(
    "",
    response_model=ApiResponse[ReportResponse],
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Submit report",
    description="""
    Submit a route status report.

    **Rules:**
    - title: required, up to 100 characters
    - description: required, up to 1000 characters
    - author_id: an existing account
    - category_id: 1 incident, 2 suggestion, 3 complaint
    - route_id: positive
    """,
)
def create_report(
    body: ReportRequest,
    service: ReportService = Depends(get_report_service),
    metrics: Optional[MetricsCollector] = Depends(get_metrics),
) -> ApiResponse[ReportResponse]:
    report_id = resolve(service.create(body.to_payload()), "report", metrics)
    report = resolve(service.get_by_id(report_id), "report", metrics)
    if metrics:
        metrics.record_report_created(ReportCategory(report.category_id).label.lower())

    return ApiResponse(message="Report created successfully", data=ReportResponse.from_report(report))


@router.put(
    "/{report_id}",
    response_model=ApiResponse[ReportResponse],
    responses={**ERROR_RESPONSES, **_NOT_AUTHOR},
    summary="Update report",
)
def update_report(
    report_id: int,
    body: ReportRequest,
    service: ReportService = Depends(get_report_service),
    metrics: Optional[MetricsCollector] = Depends(get_metrics),
) -> ApiResponse[ReportResponse]:
    """The body's author_id must be the report's author."""
    report = resolve(service.update(report_id, body.to_payload()), "report", metrics)
    return ApiResponse(message="Report updated successfully", data=ReportResponse.from_report(report))


@router.delete(
    "/{report_id}",
    response_model=ApiResponse[None],
    responses={**ERROR_RESPONSES, **_NOT_AUTHOR},
    summary="Delete report",
)
def delete_report(
    report_id: int,
    author_id: Optional[int] = Query(default=None, description="Id of the account asking for the delete"),
    service: ReportService = Depends(get_report_service),
    metrics: Optional[MetricsCollector] = Depends(get_metrics),
) -> ApiResponse[None]:
    if author_id is None:
        raise InvalidInputError("author_id query parameter is required to delete a report")

    resolve(service.delete(report_id, author_id), "report", metrics)
    logger.info("Report removed via API", report_id=report_id, author_id=author_id)
    return ApiResponse(message="Report deleted successfully")
