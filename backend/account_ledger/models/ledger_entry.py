import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from account_ledger.core.database import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LedgerEntry(Base):
    """One applied outcome. Written in the same transaction as the account update."""

    __tablename__ = "ledger_entries"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_id = Column(
        Uuid(as_uuid=True), ForeignKey("accounts.id"), nullable=False, index=True
    )
    # Reference to the match record held by the match resolution service
    match_id = Column(String(64), nullable=True, index=True)
    result = Column(String(8), nullable=False)  # win, loss, draw
    rating_delta = Column(Integer, nullable=False)
    coins_delta = Column(Integer, nullable=False)
    rating_after = Column(Integer, nullable=False)
    coins_after = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="ledger_entries")
