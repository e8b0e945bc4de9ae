from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from account_ledger.core.dependencies import get_account_service
from account_ledger.core.limiter import limiter, register_rate_limit
from account_ledger.schemas.account import (
    AccountRegister,
    AccountResponse,
    PasswordChange,
    ProfileUpdate,
    RenameRequest,
)
from account_ledger.schemas.ledger import LedgerEntryResponse
from account_ledger.services.accounts import AccountService

router = APIRouter()


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(register_rate_limit)
def register(
    request: Request,
    payload: AccountRegister,
    service: AccountService = Depends(get_account_service),
):
    return service.register(payload.username, payload.email, payload.password)


@router.get("/by-username/{username}", response_model=AccountResponse)
def get_account_by_username(
    username: str, service: AccountService = Depends(get_account_service)
):
    return service.get_by_username(username)


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(account_id: str, service: AccountService = Depends(get_account_service)):
    return service.get_account(account_id)


@router.patch("/{account_id}", response_model=AccountResponse)
def update_profile(
    account_id: str,
    payload: ProfileUpdate,
    service: AccountService = Depends(get_account_service),
):
    return service.update_profile(account_id, payload.model_dump(exclude_unset=True))


@router.post("/{account_id}/rename", response_model=AccountResponse)
def rename(
    account_id: str,
    payload: RenameRequest,
    service: AccountService = Depends(get_account_service),
):
    return service.rename(account_id, payload.username)


@router.post("/{account_id}/password", response_model=AccountResponse)
def change_password(
    account_id: str,
    payload: PasswordChange,
    service: AccountService = Depends(get_account_service),
):
    return service.change_password(
        account_id, payload.current_password, payload.new_password
    )


@router.post("/{account_id}/deactivate", response_model=AccountResponse)
def deactivate(account_id: str, service: AccountService = Depends(get_account_service)):
    return service.deactivate(account_id)


@router.get("/{account_id}/ledger", response_model=List[LedgerEntryResponse])
def ledger_history(
    account_id: str,
    limit: Optional[int] = Query(default=None, ge=1, le=200),
    service: AccountService = Depends(get_account_service),
):
    return service.history(account_id, limit)
