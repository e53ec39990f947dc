"""
Pydantic data models package.

Contains all request and response models for:
- Accounts
- Reports
- Shared response envelopes
"""

from .account import AccountRequest, AccountResponse, ChangePasswordRequest, LoginRequest
from .common import ERROR_RESPONSES, ApiResponse, ErrorResponse
from .report import (
    ReportCategoryResponse,
    ReportRequest,
    ReportResponse,
    ReportStatsResponse,
)

__all__ = [
    # Envelopes
    "ApiResponse",
    "ErrorResponse",
    "ERROR_RESPONSES",

    # Account models
    "AccountRequest",
    "AccountResponse",
    "ChangePasswordRequest",
    "LoginRequest",

    # Report models
    "ReportRequest",
    "ReportResponse",
    "ReportStatsResponse",
    "ReportCategoryResponse",
]
