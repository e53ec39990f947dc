"""
Account API endpoints.

CRUD over /accounts plus login and password rotation. Handlers are plain
functions so bcrypt and database work runs in the threadpool.
"""

from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, status

from ..core.accounts import AccountService
from ..core.exceptions import UnauthorizedError
from ..core.metrics import MetricsCollector
from ..models import (
    ERROR_RESPONSES,
    AccountRequest,
    AccountResponse,
    ApiResponse,
    ChangePasswordRequest,
    ErrorResponse,
    LoginRequest,
)
from .deps import get_account_service, get_metrics, resolve, throttle_login

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/accounts")

_CONFLICT = {409: {"model": ErrorResponse, "description": "Email already registered"}}
_UNAUTHORIZED = {401: {"model": ErrorResponse, "description": "Invalid credentials"}}
_THROTTLED = {429: {"model": ErrorResponse, "description": "Too many attempts"}}


@router.get(
    "",
    response_model=ApiResponse[List[AccountResponse]],
    summary="List accounts",
)
def list_accounts(
    service: AccountService = Depends(get_account_service),
) -> ApiResponse[List[AccountResponse]]:
    """All accounts. Password fields are always empty."""
    accounts = service.list_all()
    return ApiResponse(
        message="Accounts retrieved successfully",
        data=[AccountResponse.from_account(account) for account in accounts],
    )


@router.get(
    "/{account_id}",
    response_model=ApiResponse[AccountResponse],
    responses=ERROR_RESPONSES,
    summary="Get account",
)
def get_account(
    account_id: int,
    service: AccountService = Depends(get_account_service),
    metrics: Optional[MetricsCollector] = Depends(get_metrics),
) -> ApiResponse[AccountResponse]:
    account = resolve(service.get_by_id(account_id), "account", metrics)
    return ApiResponse(message="Account found", data=AccountResponse.from_account(account))


@router.post(
    "",
    response_model=ApiResponse[AccountResponse],
    status_code=status.HTTP_201_CREATED,
    responses={**ERROR_RESPONSES, **_CONFLICT},
    summary="Register account",
    description="""
    Register a new account.

    **Rules:**
    - name: required, up to 100 characters
    - email: required, valid format, up to 100 characters, unique
    - password: at least 6 characters, stored only as a bcrypt hash
    """,
)
def create_account(
    body: AccountRequest,
    service: AccountService = Depends(get_account_service),
    metrics: Optional[MetricsCollector] = Depends(get_metrics),
) -> ApiResponse[AccountResponse]:
    account_id = resolve(service.create(body.to_payload()), "account", metrics)
    if metrics:
        metrics.record_account_created()

    account = resolve(service.get_by_id(account_id), "account", metrics)
    return ApiResponse(message="Account created successfully", data=AccountResponse.from_account(account))


@router.post(
    "/login",
    response_model=ApiResponse[AccountResponse],
    responses={**_UNAUTHORIZED, **_THROTTLED},
    dependencies=[Depends(throttle_login)],
    summary="Log in",
)
def login(
    body: LoginRequest,
    service: AccountService = Depends(get_account_service),
    metrics: Optional[MetricsCollector] = Depends(get_metrics),
) -> ApiResponse[AccountResponse]:
    """Check email and password; returns the account on success."""
    account = service.authenticate(body.email, body.password)
    if metrics:
        metrics.record_login(account is not None)

    if account is None:
        raise UnauthorizedError("Invalid email or password")

    return ApiResponse(message="Login successful", data=AccountResponse.from_account(account))


@router.put(
    "/{account_id}",
    response_model=ApiResponse[AccountResponse],
    responses={**ERROR_RESPONSES, **_CONFLICT},
    summary="Update account",
)
def update_account(
    account_id: int,
    body: AccountRequest,
    service: AccountService = Depends(get_account_service),
    metrics: Optional[MetricsCollector] = Depends(get_metrics),
) -> ApiResponse[AccountResponse]:
    """Update name and email; a non-empty password also rotates the credential."""
    account = resolve(service.update(account_id, body.to_payload()), "account", metrics)
    return ApiResponse(message="Account updated successfully", data=AccountResponse.from_account(account))


@router.put(
    "/{account_id}/password",
    response_model=ApiResponse[None],
    responses={**ERROR_RESPONSES, **_UNAUTHORIZED, **_THROTTLED},
    dependencies=[Depends(throttle_login)],
    summary="Change password",
)
def change_password(
    account_id: int,
    body: ChangePasswordRequest,
    service: AccountService = Depends(get_account_service),
    metrics: Optional[MetricsCollector] = Depends(get_metrics),
) -> ApiResponse[None]:
    resolve(
        service.change_credential(account_id, body.current_password, body.new_password),
        "account",
        metrics,
    )
    return ApiResponse(message="Password changed successfully")


@router.delete(
    "/{account_id}",
    response_model=ApiResponse[None],
    responses={**ERROR_RESPONSES, 409: {"model": ErrorResponse, "description": "Account still has reports"}},
    summary="Delete account",
)
def delete_account(
    account_id: int,
    service: AccountService = Depends(get_account_service),
    metrics: Optional[MetricsCollector] = Depends(get_metrics),
) -> ApiResponse[None]:
    resolve(service.delete(account_id), "account", metrics)
    logger.info("Account removed via API", account_id=account_id)
    return ApiResponse(message="Account deleted successfully")
