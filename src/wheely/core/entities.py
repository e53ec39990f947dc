"""
Domain entities and payloads shared by the rules engines and the gateway.

These are plain dataclasses: the request boundary decodes JSON into the
payload types, the persistence gateway maps rows into the entity types.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import IntEnum
from typing import Dict, Optional


class ReportCategory(IntEnum):
    """Fixed report categories."""

    INCIDENT = 1
    SUGGESTION = 2
    COMPLAINT = 3

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self][0]

    @property
    def description(self) -> str:
        return _CATEGORY_LABELS[self][1]

    @classmethod
    def is_valid(cls, value: int) -> bool:
        return value in cls._value2member_map_


_CATEGORY_LABELS: Dict[ReportCategory, tuple] = {
    ReportCategory.INCIDENT: ("Incident", "Problems related to the transport service"),
    ReportCategory.SUGGESTION: ("Suggestion", "Proposals to improve the transport system"),
    ReportCategory.COMPLAINT: ("Complaint", "Dissatisfaction with the service or behaviour"),
}


@dataclass
class Account:
    """A registered user. `password` holds a bcrypt hash, or "" once scrubbed."""

    id: int
    name: str
    email: str
    password: str = ""

    def scrubbed(self) -> "Account":
        """Copy of the account safe to hand to a caller."""
        return replace(self, password="")


@dataclass
class Report:
    """A route status report."""

    id: int
    route_id: int
    category_id: int
    author_id: int
    title: str
    description: str
    created_at: Optional[datetime] = None


@dataclass
class AccountPayload:
    """Decoded account body. Fields may be missing; the rules engine decides."""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


@dataclass
class ReportPayload:
    """Decoded report body."""

    route_id: Optional[int] = None
    category_id: Optional[int] = None
    author_id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class ReportStats:
    """Aggregate report counts."""

    total: int
    incidents: int
    suggestions: int
    complaints: int
    recent: int
