"""/v1/accounts - bank account management"""

from typing import List

from fastapi import APIRouter, Depends, Response

from bank_tracker.api.dependencies import get_store
from bank_tracker.api.v1.schemas import AccountRequest, AccountResponse, AccountUpdateRequest
from bank_tracker.api.v1.serializers import account_response
from bank_tracker.domain.ledger import LedgerStore
from bank_tracker.infrastructure.observability.metrics import record_mutation

router = APIRouter()


@router.get("/accounts", response_model=List[AccountResponse])
def list_accounts(store: LedgerStore = Depends(get_store)):
    """List accounts, oldest first, each with its derived balance"""
    return [account_response(store, a) for a in store.accounts]


@router.post("/accounts", response_model=AccountResponse, status_code=201)
def create_account(request_body: AccountRequest, store: LedgerStore = Depends(get_store)):
    account = store.add_account(request_body.name, request_body.initial_balance)
    record_mutation("account", "create")
    return account_response(store, account)


@router.put("/accounts/{account_id}", response_model=AccountResponse)
def update_account(account_id: str, request_body: AccountUpdateRequest, store: LedgerStore = Depends(get_store)):
    account = store.update_account(account_id, request_body.name, request_body.initial_balance)
    record_mutation("account", "update")
    return account_response(store, account)


@router.delete("/accounts/{account_id}", status_code=204)
def delete_account(account_id: str, store: LedgerStore = Depends(get_store)):
    """Delete the account and all of its transactions"""
    store.remove_account(account_id)
    record_mutation("account", "delete")
    return Response(status_code=204)
