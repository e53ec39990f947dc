"""
Report request and response models.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.entities import Report, ReportCategory, ReportPayload, ReportStats


class ReportRequest(BaseModel):
    """Body for report creation and update."""

    route_id: Optional[int] = Field(default=None, description="Route the report refers to")
    category_id: Optional[int] = Field(
        default=None,
        description="1 incident, 2 suggestion, 3 complaint",
    )
    author_id: Optional[int] = Field(default=None, description="Account writing the report")
    title: Optional[str] = Field(default=None, description="Up to 100 characters")
    description: Optional[str] = Field(default=None, description="Up to 1000 characters")

    def to_payload(self) -> ReportPayload:
        return ReportPayload(
            route_id=self.route_id,
            category_id=self.category_id,
            author_id=self.author_id,
            title=self.title,
            description=self.description,
        )


class ReportResponse(BaseModel):
    """Report as returned to callers."""

    id: int
    route_id: int
    category_id: int
    author_id: int
    title: str
    description: str
    created_at: Optional[datetime] = Field(default=None, description="UTC creation time")

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_report(cls, report: Report) -> "ReportResponse":
        return cls.model_validate(report)


class ReportStatsResponse(BaseModel):
    """Aggregate report counts."""

    total: int = Field(description="All reports")
    incidents: int
    suggestions: int
    complaints: int
    last_30_days: int = Field(description="Reports created within the trailing window")

    @classmethod
    def from_stats(cls, stats: ReportStats) -> "ReportStatsResponse":
        return cls(
            total=stats.total,
            incidents=stats.incidents,
            suggestions=stats.suggestions,
            complaints=stats.complaints,
            last_30_days=stats.recent,
        )


class ReportCategoryResponse(BaseModel):
    """One entry of the category catalogue."""

    id: int
    name: str
    description: str

    @classmethod
    def from_category(cls, category: ReportCategory) -> "ReportCategoryResponse":
        return cls(id=int(category), name=category.label, description=category.description)
