"""
Account rules: field validation, email uniqueness, credential handling
and authentication.

Every operation re-reads current state from the repository; nothing is
cached between calls. Plain secrets are hashed before any write and no
returned Account ever carries a hash.
"""

import re
from typing import TYPE_CHECKING, List, Optional

import structlog

from .entities import Account, AccountPayload
from .exceptions import DuplicateKeyError, InvalidInputError
from .outcome import ErrorKind, Outcome
from .security import CredentialCodec

if TYPE_CHECKING:
    from ..storage.repositories import AccountRepository, ReportRepository

logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 100

DELETE_POLICIES = ("restrict", "cascade")


def is_valid_email(email: Optional[str]) -> bool:
    if email is None or not email.strip():
        return False
    return EMAIL_PATTERN.fullmatch(email) is not None


class AccountService:
    """
    Account rules engine.

    `accounts` and `reports` are the persistence gateways; `reports` is
    only consulted when deleting an account, to apply `delete_policy`.
    """

    def __init__(
        self,
        accounts: "AccountRepository",
        reports: "ReportRepository",
        codec: CredentialCodec,
        delete_policy: str = "restrict",
    ) -> None:
        if delete_policy not in DELETE_POLICIES:
            raise ValueError(f"Unknown delete policy: {delete_policy}")
        self.accounts = accounts
        self.reports = reports
        self.codec = codec
        self.delete_policy = delete_policy

    def list_all(self) -> List[Account]:
        return [account.scrubbed() for account in self.accounts.find_all()]

    def get_by_id(self, account_id: int) -> Outcome[Account]:
        account = self.accounts.find_by_id(account_id)
        if account is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Account not found")
        return Outcome.success(account.scrubbed())

    def create(self, payload: AccountPayload) -> Outcome[int]:
        """Register an account. Succeeds with the generated id."""
        error = self._validate(payload)
        if error:
            return Outcome.failure(ErrorKind.INVALID_INPUT, error)

        if self.accounts.find_by_email(payload.email) is not None:
            return Outcome.failure(ErrorKind.CONFLICT, "Email is already registered", {"field": "email"})

        if not self.codec.meets_policy(payload.password):
            return Outcome.failure(
                ErrorKind.INVALID_INPUT,
                f"Password must be at least {self.codec.min_length} characters",
            )

        hashed = self._hash(payload.password)
        if not hashed.ok:
            return Outcome.failure(ErrorKind.INVALID_INPUT, hashed.message)

        account = Account(id=0, name=payload.name.strip(), email=payload.email, password=hashed.value)
        try:
            account_id = self.accounts.save(account)
        except DuplicateKeyError:
            # Lost a race with a concurrent registration
            return Outcome.failure(ErrorKind.CONFLICT, "Email is already registered", {"field": "email"})

        logger.info("Account created", account_id=account_id, email=payload.email)
        return Outcome.success(account_id)

    def update(self, account_id: int, payload: AccountPayload) -> Outcome[Account]:
        """
        Update name and email, and the password when one is supplied.

        A blank or missing password keeps the stored hash.
        """
        existing = self.accounts.find_by_id(account_id)
        if existing is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Account not found")

        error = self._validate(payload)
        if error:
            return Outcome.failure(ErrorKind.INVALID_INPUT, error)

        holder = self.accounts.find_by_email(payload.email)
        if holder is not None and holder.id != account_id:
            return Outcome.failure(
                ErrorKind.CONFLICT,
                "Email is already registered to another account",
                {"field": "email"},
            )

        password = existing.password
        if payload.password is not None and payload.password.strip():
            if not self.codec.meets_policy(payload.password):
                return Outcome.failure(
                    ErrorKind.INVALID_INPUT,
                    f"Password must be at least {self.codec.min_length} characters",
                )
            hashed = self._hash(payload.password)
            if not hashed.ok:
                return Outcome.failure(ErrorKind.INVALID_INPUT, hashed.message)
            password = hashed.value

        updated = Account(id=account_id, name=payload.name.strip(), email=payload.email, password=password)
        try:
            if not self.accounts.update(updated):
                return Outcome.failure(ErrorKind.NOT_FOUND, "Account not found")
        except DuplicateKeyError:
            return Outcome.failure(
                ErrorKind.CONFLICT,
                "Email is already registered to another account",
                {"field": "email"},
            )

        logger.info(
            "Account updated",
            account_id=account_id,
            login_changed=password != existing.password,
        )
        return Outcome.success(updated.scrubbed())

    def delete(self, account_id: int) -> Outcome[None]:
        """Remove an account, applying the delete policy to its reports."""
        if self.accounts.find_by_id(account_id) is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Account not found")

        if self.delete_policy == "restrict":
            if self.reports.exists_for_author(account_id):
                return Outcome.failure(
                    ErrorKind.CONFLICT,
                    "Account still has reports; delete them first",
                    {"policy": "restrict"},
                )
            if not self.accounts.delete(account_id):
                return Outcome.failure(ErrorKind.NOT_FOUND, "Account not found")
        else:
            removed = self.accounts.delete_with_reports(account_id)
            if removed is None:
                return Outcome.failure(ErrorKind.NOT_FOUND, "Account not found")
            logger.info("Reports removed with account", account_id=account_id, reports_removed=removed)

        logger.info("Account deleted", account_id=account_id, policy=self.delete_policy)
        return Outcome.success()

    def authenticate(self, email: Optional[str], password: Optional[str]) -> Optional[Account]:
        """Return the matching account, scrubbed, or None. Never an error."""
        if email is None or not email.strip() or password is None:
            return None

        account = self.accounts.find_by_email(email.strip())
        if account is None:
            logger.info("Login rejected: unknown email", email=email.strip())
            return None

        if not self.codec.verify(password, account.password):
            logger.info("Login rejected: wrong password", account_id=account.id)
            return None

        logger.info("Login succeeded", account_id=account.id)
        return account.scrubbed()

    def change_credential(
        self,
        account_id: int,
        current_password: Optional[str],
        new_password: Optional[str],
    ) -> Outcome[None]:
        account = self.accounts.find_by_id(account_id)
        if account is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Account not found")

        if not self.codec.verify(current_password, account.password):
            logger.warning("Password change rejected: wrong current password", account_id=account_id)
            return Outcome.failure(ErrorKind.UNAUTHORIZED, "Current password is incorrect")

        if not self.codec.meets_policy(new_password):
            return Outcome.failure(
                ErrorKind.INVALID_INPUT,
                f"New password must be at least {self.codec.min_length} characters",
            )

        hashed = self._hash(new_password)
        if not hashed.ok:
            return Outcome.failure(ErrorKind.INVALID_INPUT, hashed.message)

        account.password = hashed.value
        if not self.accounts.update(account):
            return Outcome.failure(ErrorKind.NOT_FOUND, "Account not found")

        logger.info("Password changed", account_id=account_id)
        return Outcome.success()

    def _hash(self, password: str) -> Outcome[str]:
        try:
            return Outcome.success(self.codec.hash(password))
        except InvalidInputError as e:
            return Outcome.failure(ErrorKind.INVALID_INPUT, str(e))

    @staticmethod
    def _validate(payload: Optional[AccountPayload]) -> Optional[str]:
        """Return the first violated constraint, or None."""
        if payload is None:
            return "Account data is required"

        if payload.name is None or not payload.name.strip():
            return "Name is required"

        if payload.email is None or not payload.email.strip():
            return "Email is required"

        if not is_valid_email(payload.email):
            return "Email format is not valid"

        if len(payload.name.strip()) > NAME_MAX_LENGTH:
            return f"Name cannot exceed {NAME_MAX_LENGTH} characters"

        if len(payload.email.strip()) > EMAIL_MAX_LENGTH:
            return f"Email cannot exceed {EMAIL_MAX_LENGTH} characters"

        return None
