"""
Account request and response models.

Request models only check shape (types, presence of JSON keys is
optional); the account rules engine owns every business constraint.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.entities import Account, AccountPayload


class AccountRequest(BaseModel):
    """Body for account registration and profile update."""

    name: Optional[str] = Field(default=None, description="Display name, up to 100 characters")
    email: Optional[str] = Field(default=None, description="Login email, unique")
    password: Optional[str] = Field(
        default=None,
        description="Plain password; required on registration, optional on update",
    )

    def to_payload(self) -> AccountPayload:
        return AccountPayload(name=self.name, email=self.email, password=self.password)


class LoginRequest(BaseModel):
    """Body for login."""

    email: Optional[str] = Field(default=None, description="Login email")
    password: Optional[str] = Field(default=None, description="Plain password")


class ChangePasswordRequest(BaseModel):
    """Body for password rotation."""

    current_password: Optional[str] = Field(default=None, description="Password in use today")
    new_password: Optional[str] = Field(default=None, description="Replacement password")


class AccountResponse(BaseModel):
    """
    Account as returned to callers.

    `password` is kept in the shape for compatibility and is always empty.
    """

    id: int = Field(description="Account id")
    name: str = Field(description="Display name")
    email: str = Field(description="Login email")
    password: str = Field(default="", description="Always empty")

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(id=account.id, name=account.name, email=account.email, password="")
