"""/v1/transactions - record, edit and list transactions"""

from typing import List

from fastapi import APIRouter, Depends, Query, Response

from bank_tracker.api.dependencies import get_store
from bank_tracker.api.v1.schemas import TransactionRequest, TransactionResponse
from bank_tracker.api.v1.serializers import transaction_response
from bank_tracker.domain.ledger import LedgerStore
from bank_tracker.domain.models import AccountFilter, TransactionDraft
from bank_tracker.infrastructure.observability.metrics import record_mutation, record_transaction

router = APIRouter()


def _draft(request_body: TransactionRequest) -> TransactionDraft:
    return TransactionDraft(
        description=request_body.description,
        amount=request_body.amount,
        kind=request_body.kind,
        category=request_body.category,
        date=request_body.date,
        account_id=request_body.account_id,
        card_id=request_body.card_id,
        installments=request_body.installments,
    )


@router.get("/transactions", response_model=List[TransactionResponse])
def list_transactions(
    account_filter: str = Query("all", alias="filter", description="all, cash, or an account id"),
    store: LedgerStore = Depends(get_store),
):
    """List transactions for the filter, most recent date first"""
    return [transaction_response(t) for t in store.transactions_for(AccountFilter.parse(account_filter))]


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
def create_transaction(request_body: TransactionRequest, store: LedgerStore = Depends(get_store)):
    """
    Record a transaction.

    Card expenses reserve the full amount against the card immediately;
    card purchases with more than one installment get a monthly schedule.
    """
    transaction = store.add_transaction(_draft(request_body))
    record_transaction(transaction.kind.value, float(transaction.amount), transaction.installments)
    return transaction_response(transaction)


@router.put("/transactions/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str, request_body: TransactionRequest, store: LedgerStore = Depends(get_store)
):
    transaction = store.update_transaction(transaction_id, _draft(request_body))
    record_mutation("transaction", "update")
    return transaction_response(transaction)


@router.delete("/transactions/{transaction_id}", status_code=204)
def delete_transaction(transaction_id: str, store: LedgerStore = Depends(get_store)):
    store.remove_transaction(transaction_id)
    record_mutation("transaction", "delete")
    return Response(status_code=204)
