from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from account_ledger.core.config import Settings, get_settings
from account_ledger.core.database import is_lock_timeout
from account_ledger.core.errors import (
    ConflictError,
    DuplicateEmailError,
    DuplicateUsernameError,
    InvalidInputError,
    NotFoundError,
    StorageTimeoutError,
)
from account_ledger.models.account import Account, Statistic
from account_ledger.models.ledger_entry import LedgerEntry

logger = logging.getLogger(__name__)

PROFILE_FIELDS = frozenset({"email", "avatar_url", "status", "social_links"})


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def parse_account_id(account_id) -> Optional[uuid.UUID]:
    if isinstance(account_id, uuid.UUID):
        return account_id
    try:
        return uuid.UUID(str(account_id))
    except (ValueError, AttributeError, TypeError):
        return None


class AccountRepository:
    """
    Durable CRUD over account records.

    Works on a session handed in by the caller. Every write commits before
    returning; any failure rolls the session back so nothing half-written
    is left behind. Username and email uniqueness is backed by unique
    indexes, so a concurrent duplicate insert surfaces as a duplicate
    error rather than a second row.
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None) -> None:
        self.db = db
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_id(self, account_id) -> Optional[Account]:
        key = parse_account_id(account_id)
        if key is None:
            return None
        with self._storage():
            return self.db.get(Account, key)

    def find_by_username(self, username: str) -> Optional[Account]:
        with self._storage():
            return self.db.query(Account).filter(Account.username == username).first()

    def find_by_email(self, email: str) -> Optional[Account]:
        with self._storage():
            return (
                self.db.query(Account)
                .filter(Account.email == normalize_email(email))
                .first()
            )

    def leaderboard(self, limit: int, offset: int = 0) -> List[Account]:
        with self._storage():
            return (
                self.db.query(Account)
                .filter(Account.is_active.is_(True))
                .order_by(Account.rating.desc(), Account.username.asc())
                .offset(offset)
                .limit(limit)
                .all()
            )

    def ledger_entries(self, account_id, limit: int) -> List[LedgerEntry]:
        account = self._require(account_id)
        with self._storage():
            return (
                self.db.query(LedgerEntry)
                .filter(LedgerEntry.account_id == account.id)
                .order_by(LedgerEntry.created_at.desc())
                .limit(limit)
                .all()
            )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(
        self,
        username: str,
        email: str,
        password_hash: str,
        password_salt: str,
    ) -> Account:
        if not password_salt:
            raise InvalidInputError("Password salt must not be empty")
        email = normalize_email(email)

        if self.find_by_username(username) is not None:
            raise DuplicateUsernameError(f"Username '{username}' is already taken")
        if self.find_by_email(email) is not None:
            raise DuplicateEmailError(f"Email '{email}' is already registered")

        now = _utc_now()
        account = Account(
            username=username,
            email=email,
            password_hash=password_hash,
            password_salt=password_salt,
            created_at=now,
            updated_at=now,
            rating=self.settings.INITIAL_RATING,
            coins=self.settings.INITIAL_COINS,
            statistic=Statistic(),
            is_active=True,
        )
        self.db.add(account)
        self._commit(account, username=username, email=email)

        logger.info(
            "Account created",
            extra={"account_id": str(account.id), "username": account.username},
        )
        return account

    def update_profile(self, account_id, fields: Mapping[str, Any]) -> Account:
        unknown = set(fields) - PROFILE_FIELDS
        if unknown:
            raise InvalidInputError(
                f"Fields cannot be updated: {', '.join(sorted(unknown))}"
            )

        account = self._require(account_id)
        changes: Dict[str, Any] = dict(fields)

        if "email" in changes:
            email = normalize_email(changes["email"])
            if "@" not in email:
                raise InvalidInputError("Email address is not valid")
            other = self.find_by_email(email)
            if other is not None and other.id != account.id:
                raise DuplicateEmailError(f"Email '{email}' is already registered")
            changes["email"] = email

        for name, value in changes.items():
            setattr(account, name, value)
        account.updated_at = _utc_now()
        self._commit(account, email=changes.get("email"))
        return account

    def rename(self, account_id, new_username: str) -> Account:
        account = self._require(account_id)
        if account.username == new_username:
            return account

        if self.find_by_username(new_username) is not None:
            raise DuplicateUsernameError(f"Username '{new_username}' is already taken")

        old_username = account.username
        account.username = new_username
        account.updated_at = _utc_now()
        self._commit(account, username=new_username)

        logger.info(
            f"Account renamed from {old_username}",
            extra={"account_id": str(account.id), "username": new_username},
        )
        return account

    def set_password(self, account_id, password_hash: str, password_salt: str) -> Account:
        if not password_salt:
            raise InvalidInputError("Password salt must not be empty")
        account = self._require(account_id)
        account.password_hash = password_hash
        account.password_salt = password_salt
        account.updated_at = _utc_now()
        self._commit(account)
        return account

    def deactivate(self, account_id) -> Account:
        account = self._require(account_id)
        if account.is_active:
            account.is_active = False
            account.updated_at = _utc_now()
            self._commit(account)
            logger.info("Account deactivated", extra={"account_id": str(account.id)})
        return account

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require(self, account_id) -> Account:
        account = self.find_by_id(account_id)
        if account is None:
            raise NotFoundError(f"Account {account_id} not found")
        return account

    @contextmanager
    def _storage(self) -> Iterator[None]:
        """Turn a storage lock or busy timeout into the retryable StorageTimeoutError."""
        try:
            yield
        except OperationalError as exc:
            self.db.rollback()
            if not is_lock_timeout(exc):
                raise
            logger.warning("Storage lock timeout in account repository")
            raise StorageTimeoutError(
                "Storage lock not obtained within the transaction timeout"
            ) from exc

    def _commit(
        self,
        account: Account,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> None:
        """
        Commit and reload `account`, translating a unique-index violation
        into the matching duplicate error. The row that won the race is
        committed by then, so looking it up tells which column collided.
        """
        with self._storage():
            try:
                self.db.commit()
            except IntegrityError as exc:
                self.db.rollback()
                if username is not None and self.find_by_username(username) is not None:
                    raise DuplicateUsernameError(
                        f"Username '{username}' is already taken"
                    ) from exc
                if email is not None and self.find_by_email(email) is not None:
                    raise DuplicateEmailError(
                        f"Email '{email}' is already registered"
                    ) from exc
                raise
            except StaleDataError as exc:
                self.db.rollback()
                raise ConflictError("Account was modified concurrently, retry") from exc
            except BaseException:
                self.db.rollback()
                raise
            self.db.refresh(account)
