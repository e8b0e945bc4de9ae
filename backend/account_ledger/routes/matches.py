from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from account_ledger.core.database import get_db
from account_ledger.core.dependencies import get_ledger
from account_ledger.schemas.account import AccountResponse
from account_ledger.schemas.ledger import MatchResultRequest, MatchResultResponse
from account_ledger.services.ledger import Outcome, RatingLedger

router = APIRouter()


@router.post("/results", response_model=MatchResultResponse)
def apply_match_result(
    payload: MatchResultRequest,
    db: Session = Depends(get_db),
    ledger: RatingLedger = Depends(get_ledger),
):
    """Apply one resolved match to every participating account at once."""
    outcomes = [
        Outcome(
            account_id=str(item.account_id),
            rating_delta=item.delta_rating,
            coins_delta=item.delta_coins,
            result=item.result,
        )
        for item in payload.outcomes
    ]
    accounts = ledger.apply_match_result(db, outcomes, match_id=payload.match_id)
    return MatchResultResponse(
        match_id=payload.match_id,
        accounts=[AccountResponse.model_validate(account) for account in accounts],
    )
