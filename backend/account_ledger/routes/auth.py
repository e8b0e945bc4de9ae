from fastapi import APIRouter, Depends, HTTPException, status

from account_ledger.core.dependencies import get_account_service
from account_ledger.schemas.account import AccountResponse, CredentialCheck
from account_ledger.services.accounts import AccountService

router = APIRouter()


@router.post("/verify", response_model=AccountResponse)
def verify_credentials(
    payload: CredentialCheck, service: AccountService = Depends(get_account_service)
):
    """
    Credential check for the session layer. Issues no token: the caller
    decides what a successful check means.
    """
    account = service.authenticate(payload.username, payload.password)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
        )
    return account
