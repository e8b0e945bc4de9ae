from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from account_ledger.core.dependencies import get_account_service
from account_ledger.schemas.account import LeaderboardEntry
from account_ledger.services.accounts import AccountService

router = APIRouter()


@router.get("", response_model=List[LeaderboardEntry])
def get_leaderboard(
    limit: Optional[int] = Query(default=None, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    service: AccountService = Depends(get_account_service),
):
    """Active accounts by rating, highest first"""
    return service.leaderboard(limit, offset)
