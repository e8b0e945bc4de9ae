from __future__ import annotations

import logging
import re
from typing import Any, List, Mapping, Optional

from sqlalchemy.orm import Session

from account_ledger.core.config import Settings, get_settings
from account_ledger.core.errors import InvalidInputError, NotFoundError
from account_ledger.models.account import Account
from account_ledger.models.ledger_entry import LedgerEntry
from account_ledger.services.credentials import (
    generate_salt,
    hash_password,
    verify_password,
)
from account_ledger.services.repository import AccountRepository

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,32}$")


def validate_username(username: str) -> str:
    username = (username or "").strip()
    if not USERNAME_PATTERN.match(username):
        raise InvalidInputError(
            "Username must be 3-32 characters of letters, digits, '_', '.' or '-'"
        )
    return username


class AccountService:
    """
    Front of the account subsystem: registration, lookups, profile edits
    and credential checks. Holds no state of its own beyond the session
    it was built for.
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.repository = AccountRepository(db, self.settings)

    def _hash(self, password: str, salt: str) -> str:
        return hash_password(password, salt, self.settings.PASSWORD_HASH_ITERATIONS)

    def register(self, username: str, email: str, password: str) -> Account:
        username = validate_username(username)
        if "@" not in (email or ""):
            raise InvalidInputError("Email address is not valid")

        salt = generate_salt(self.settings.SALT_BYTES)
        password_hash = self._hash(password, salt)
        return self.repository.create(username, email, password_hash, salt)

    def get_account(self, account_id) -> Account:
        account = self.repository.find_by_id(account_id)
        if account is None:
            raise NotFoundError(f"Account {account_id} not found")
        return account

    def get_by_username(self, username: str) -> Account:
        account = self.repository.find_by_username(username)
        if account is None:
            raise NotFoundError(f"Account '{username}' not found")
        return account

    def authenticate(self, username: str, password: str) -> Optional[Account]:
        """Return the account when the credentials match, otherwise None."""
        account = self.repository.find_by_username(username)
        if account is None or not account.is_active:
            return None
        if not verify_password(
            password,
            account.password_salt,
            account.password_hash,
            self.settings.PASSWORD_HASH_ITERATIONS,
        ):
            logger.info(
                "Credential check failed", extra={"account_id": str(account.id)}
            )
            return None
        return account

    def update_profile(self, account_id, fields: Mapping[str, Any]) -> Account:
        return self.repository.update_profile(account_id, fields)

    def rename(self, account_id, new_username: str) -> Account:
        return self.repository.rename(account_id, validate_username(new_username))

    def change_password(
        self, account_id, current_password: str, new_password: str
    ) -> Account:
        account = self.get_account(account_id)
        if not verify_password(
            current_password,
            account.password_salt,
            account.password_hash,
            self.settings.PASSWORD_HASH_ITERATIONS,
        ):
            raise InvalidInputError("Current password is incorrect")

        # Fresh salt with every new password
        salt = generate_salt(self.settings.SALT_BYTES)
        return self.repository.set_password(
            account.id, self._hash(new_password, salt), salt
        )

    def deactivate(self, account_id) -> Account:
        return self.repository.deactivate(account_id)

    def leaderboard(self, limit: Optional[int] = None, offset: int = 0) -> List[Account]:
        if limit is None:
            limit = self.settings.LEADERBOARD_PAGE_SIZE
        if limit < 1 or offset < 0:
            raise InvalidInputError("limit must be positive and offset non-negative")
        return self.repository.leaderboard(limit, offset)

    def history(self, account_id, limit: Optional[int] = None) -> List[LedgerEntry]:
        if limit is None:
            limit = self.settings.LEADERBOARD_PAGE_SIZE
        if limit < 1:
            raise InvalidInputError("limit must be positive")
        return self.repository.ledger_entries(account_id, limit)
