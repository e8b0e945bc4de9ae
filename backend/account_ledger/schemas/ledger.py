from datetime import datetime
from typing import List, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field

from account_ledger.models.account import MatchResult
from account_ledger.schemas.account import AccountResponse


class OutcomeIn(BaseModel):
    account_id: uuid.UUID
    delta_rating: int
    delta_coins: int
    result: MatchResult


class MatchResultRequest(BaseModel):
    match_id: Optional[str] = Field(default=None, max_length=64)
    outcomes: List[OutcomeIn] = Field(min_length=1)


class MatchResultResponse(BaseModel):
    match_id: Optional[str] = None
    accounts: List[AccountResponse]


class LedgerEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    match_id: Optional[str]
    result: str
    rating_delta: int
    coins_delta: int
    rating_after: int
    coins_after: int
    created_at: datetime
