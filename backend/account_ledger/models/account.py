import enum
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    String,
    Uuid,
)
from sqlalchemy.orm import composite, relationship

from account_ledger.core.database import Base
from account_ledger.models.ledger_entry import LedgerEntry  # noqa: F401


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MatchResult(str, enum.Enum):
    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"


@dataclass(frozen=True)
class Statistic:
    """
    Win/loss/draw counters of an account.

    Immutable: recording an outcome returns a new value, which is then
    assigned back to ``Account.statistic``.
    """

    wins: int = 0
    losses: int = 0
    draws: int = 0

    def __post_init__(self):
        for name in ("wins", "losses", "draws"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"statistic.{name} must not be negative")

    def __composite_values__(self):
        return self.wins, self.losses, self.draws

    @property
    def total(self) -> int:
        return self.wins + self.losses + self.draws

    def record(self, result: MatchResult) -> "Statistic":
        result = MatchResult(result)
        if result is MatchResult.WIN:
            return Statistic(self.wins + 1, self.losses, self.draws)
        if result is MatchResult.LOSS:
            return Statistic(self.wins, self.losses + 1, self.draws)
        return Statistic(self.wins, self.losses, self.draws + 1)


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("coins >= 0", name="ck_accounts_coins_non_negative"),
        CheckConstraint(
            "wins >= 0 AND losses >= 0 AND draws >= 0",
            name="ck_accounts_statistic_non_negative",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(32), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(128), nullable=False)
    password_salt = Column(String(128), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    rating = Column(Integer, default=1500, nullable=False)
    coins = Column(Integer, default=100, nullable=False)
    wins = Column(Integer, default=0, nullable=False)
    losses = Column(Integer, default=0, nullable=False)
    draws = Column(Integer, default=0, nullable=False)
    statistic = composite(Statistic, wins, losses, draws)

    avatar_url = Column(String(512), nullable=True)
    status = Column(String(140), nullable=True)
    social_links = Column(JSON, nullable=True)

    # Soft-disable only; rows are kept for external match history
    is_active = Column(Boolean, default=True, nullable=False)

    # Optimistic lock counter, bumped by the ORM on every UPDATE
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    ledger_entries = relationship(
        "LedgerEntry", back_populates="account", order_by="LedgerEntry.created_at"
    )

    def __repr__(self):
        return f"Account(username={self.username!r}, rating={self.rating}, coins={self.coins})"
