"""
Response envelope models shared by every endpoint.
"""

from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Standard success envelope.
    """

    success: bool = Field(default=True, description="Always true for this envelope")
    message: str = Field(description="Human-readable message")
    data: Optional[T] = Field(default=None, description="Operation result")


class ErrorResponse(BaseModel):
    """
    Standard error response model.
    """

    success: bool = Field(default=False, description="Always false for errors")
    error: str = Field(description="Error code")
    message: str = Field(description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional error details"
    )


ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    404: {"model": ErrorResponse, "description": "Not found"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}
