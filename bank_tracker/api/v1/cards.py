"""/v1/cards - credit card management"""

from typing import List

from fastapi import APIRouter, Depends, Response

from bank_tracker.api.dependencies import get_store
from bank_tracker.api.v1.schemas import CardRequest, CardResponse, CardUpdateRequest
from bank_tracker.api.v1.serializers import card_response
from bank_tracker.domain.ledger import DEFAULT_CLOSING_DAY, LedgerStore
from bank_tracker.infrastructure.observability.metrics import record_mutation

router = APIRouter()


@router.get("/cards", response_model=List[CardResponse])
def list_cards(store: LedgerStore = Depends(get_store)):
    """List cards with available limit and usage"""
    return [card_response(c) for c in store.cards]


@router.post("/cards", response_model=CardResponse, status_code=201)
def create_card(request_body: CardRequest, store: LedgerStore = Depends(get_store)):
    card = store.add_card(
        request_body.name,
        credit_limit=request_body.credit_limit,
        due_day=request_body.due_day,
        closing_day=request_body.closing_day or DEFAULT_CLOSING_DAY,
    )
    record_mutation("card", "create")
    return card_response(card)


@router.put("/cards/{card_id}", response_model=CardResponse)
def update_card(card_id: str, request_body: CardUpdateRequest, store: LedgerStore = Depends(get_store)):
    card = store.update_card(
        card_id,
        request_body.name,
        credit_limit=request_body.credit_limit,
        due_day=request_body.due_day,
        closing_day=request_body.closing_day,
    )
    record_mutation("card", "update")
    return card_response(card)


@router.delete("/cards/{card_id}", status_code=204)
def delete_card(card_id: str, store: LedgerStore = Depends(get_store)):
    """Delete the card with its transactions and installments"""
    store.remove_card(card_id)
    record_mutation("card", "delete")
    return Response(status_code=204)
