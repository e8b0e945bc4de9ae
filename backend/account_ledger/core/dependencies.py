from fastapi import Depends, Request
from sqlalchemy.orm import Session

from account_ledger.core.config import Settings
from account_ledger.core.database import get_db
from account_ledger.services.accounts import AccountService
from account_ledger.services.ledger import RatingLedger


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_ledger(request: Request) -> RatingLedger:
    # One ledger per process so every request shares the same account locks
    return request.app.state.ledger


def get_account_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> AccountService:
    return AccountService(db, settings)
