"""/v1/installments - card installment schedules"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from bank_tracker.api.dependencies import get_store
from bank_tracker.api.v1.schemas import InstallmentPaidRequest, InstallmentResponse
from bank_tracker.api.v1.serializers import installment_response
from bank_tracker.domain.ledger import LedgerStore
from bank_tracker.infrastructure.observability.metrics import record_mutation

router = APIRouter()


@router.get("/installments", response_model=List[InstallmentResponse])
def list_installments(
    card_id: Optional[str] = Query(None, description="Only this card's installments"),
    store: LedgerStore = Depends(get_store),
):
    """List installments by due date, earliest first"""
    if card_id:
        store.get_card(card_id)
        installments = store.installments_for_card(card_id)
    else:
        installments = store.installments
    return [installment_response(i) for i in installments]


@router.post("/installments/{installment_id}/paid", response_model=InstallmentResponse)
def mark_installment_paid(
    installment_id: str,
    request_body: Optional[InstallmentPaidRequest] = None,
    store: LedgerStore = Depends(get_store),
):
    paid = request_body.paid if request_body else True
    installment = store.set_installment_paid(installment_id, paid)
    record_mutation("installment", "update")
    return installment_response(installment)
