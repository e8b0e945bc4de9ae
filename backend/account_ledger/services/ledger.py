from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from account_ledger.core.config import Settings, get_settings
from account_ledger.core.database import is_lock_timeout
from account_ledger.core.errors import (
    ConflictError,
    InsufficientCoinsError,
    InvalidInputError,
    NotFoundError,
    StorageTimeoutError,
)
from account_ledger.models.account import Account, MatchResult
from account_ledger.models.ledger_entry import LedgerEntry
from account_ledger.services.locks import AccountLockManager
from account_ledger.services.repository import parse_account_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    """One account's share of a resolved match."""

    account_id: str
    rating_delta: int
    coins_delta: int
    result: MatchResult


class RatingLedger:
    """
    Applies resolved match outcomes to accounts, all-or-nothing.

    Serialization of batches that share accounts happens at two levels:
    per-account locks inside this process (taken in sorted id order), and
    row locks plus the ORM version counter in the database for writers in
    other processes. A version mismatch is retried a few times before it
    surfaces as ``ConflictError``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        locks: Optional[AccountLockManager] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.locks = locks or AccountLockManager()

    def apply_match_result(
        self,
        db: Session,
        outcomes: Sequence[Outcome],
        match_id: Optional[str] = None,
    ) -> List[Account]:
        outcomes = self._validate(outcomes)
        account_ids = [o.account_id for o in outcomes]
        max_attempts = self.settings.LEDGER_MAX_RETRIES

        for attempt in range(1, max_attempts + 1):
            try:
                with self.locks.hold(account_ids, self.settings.LOCK_TIMEOUT_SECONDS):
                    accounts = self._apply_once(db, outcomes, match_id)
            except StaleDataError as exc:
                db.rollback()
                logger.warning(
                    "Concurrent update detected while applying match result",
                    extra={"match_id": match_id, "attempt": attempt},
                )
                if attempt == max_attempts:
                    raise ConflictError(
                        f"Accounts kept changing underneath after {attempt} attempts"
                    ) from exc
            except OperationalError as exc:
                db.rollback()
                if not is_lock_timeout(exc):
                    raise
                logger.warning(
                    "Storage lock timeout while applying match result",
                    extra={"match_id": match_id, "attempt": attempt},
                )
                if attempt == max_attempts:
                    raise StorageTimeoutError(
                        "Storage lock not obtained within the transaction timeout"
                    ) from exc
            except BaseException:
                db.rollback()
                raise
            else:
                logger.info(
                    f"Match result applied to {len(accounts)} accounts",
                    extra={"match_id": match_id, "attempt": attempt},
                )
                return accounts

            time.sleep(self.settings.LEDGER_RETRY_BACKOFF_SECONDS * attempt)

        # The loop either returns or raises on its last attempt
        raise ConflictError("Retry budget exhausted")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(outcomes: Sequence[Outcome]) -> List[Outcome]:
        if not outcomes:
            raise InvalidInputError("A match result needs at least one outcome")

        seen = set()
        checked: List[Outcome] = []
        for outcome in outcomes:
            key = parse_account_id(outcome.account_id)
            if key is None:
                raise NotFoundError(f"Account {outcome.account_id} not found")
            if key in seen:
                raise InvalidInputError(
                    f"Account {outcome.account_id} appears more than once in one match"
                )
            seen.add(key)
            try:
                result = MatchResult(outcome.result)
            except ValueError:
                raise InvalidInputError(f"Unknown match result '{outcome.result}'") from None
            for name in ("rating_delta", "coins_delta"):
                value = getattr(outcome, name)
                if not isinstance(value, int) or isinstance(value, bool):
                    raise InvalidInputError(f"{name} must be an integer")
            checked.append(
                Outcome(
                    account_id=str(key),
                    rating_delta=outcome.rating_delta,
                    coins_delta=outcome.coins_delta,
                    result=result,
                )
            )
        return checked

    def _apply_once(
        self,
        db: Session,
        outcomes: List[Outcome],
        match_id: Optional[str],
    ) -> List[Account]:
        keys = sorted(parse_account_id(o.account_id) for o in outcomes)

        # Row locks in id order; a no-op on SQLite, which locks the whole file
        rows = (
            db.query(Account)
            .filter(Account.id.in_(keys))
            .order_by(Account.id)
            .with_for_update()
            .populate_existing()
            .all()
        )
        by_id: Dict[str, Account] = {str(account.id): account for account in rows}

        now = datetime.now(timezone.utc)
        touched: List[Account] = []
        for outcome in outcomes:
            account = by_id.get(outcome.account_id)
            if account is None:
                raise NotFoundError(f"Account {outcome.account_id} not found")
            if not account.is_active:
                raise InvalidInputError(f"Account {outcome.account_id} is disabled")

            new_coins = account.coins + outcome.coins_delta
            if new_coins < 0:
                raise InsufficientCoinsError(
                    f"Account {outcome.account_id} has {account.coins} coins, "
                    f"cannot apply {outcome.coins_delta}"
                )

            account.rating = account.rating + outcome.rating_delta
            account.coins = new_coins
            account.statistic = account.statistic.record(outcome.result)
            account.updated_at = now

            db.add(
                LedgerEntry(
                    account_id=account.id,
                    match_id=match_id,
                    result=outcome.result.value,
                    rating_delta=outcome.rating_delta,
                    coins_delta=outcome.coins_delta,
                    rating_after=account.rating,
                    coins_after=account.coins,
                    created_at=now,
                )
            )
            touched.append(account)

        db.commit()
        for account in touched:
            db.refresh(account)
        return touched
