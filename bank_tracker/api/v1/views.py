"""GET /v1/summary and /v1/views/* - balances and chart aggregates"""

from typing import Union

from fastapi import APIRouter, Depends, Query

from bank_tracker.api.dependencies import get_store
from bank_tracker.api.v1.schemas import (
    AccountViewResponse,
    CategoryViewResponse,
    EmptyViewResponse,
    SummaryResponse,
    TimelineViewResponse,
)
from bank_tracker.api.v1.serializers import (
    account_view_response,
    category_view_response,
    timeline_view_response,
)
from bank_tracker.domain.ledger import LedgerStore
from bank_tracker.domain.models import AccountFilter

router = APIRouter()

FILTER_DESCRIPTION = "all, cash, or an account id"


@router.get("/summary", response_model=SummaryResponse)
def get_summary(
    account_filter: str = Query("all", alias="filter", description=FILTER_DESCRIPTION),
    store: LedgerStore = Depends(get_store),
):
    """
    Income, expense and final balance for the filter.

    The final balance includes the initial balance of every account ("all")
    or of the selected account; cash has none.
    """
    summary = store.summary(AccountFilter.parse(account_filter))
    return SummaryResponse(
        total_income=summary.total_income,
        total_expense=summary.total_expense,
        final_balance=summary.final_balance,
    )


@router.get("/views/categories", response_model=Union[CategoryViewResponse, EmptyViewResponse])
def get_category_view(
    account_filter: str = Query("all", alias="filter", description=FILTER_DESCRIPTION),
    store: LedgerStore = Depends(get_store),
):
    return category_view_response(store.category_view(AccountFilter.parse(account_filter)))


@router.get("/views/accounts", response_model=Union[AccountViewResponse, EmptyViewResponse])
def get_account_view(store: LedgerStore = Depends(get_store)):
    return account_view_response(store.account_view())


@router.get("/views/timeline", response_model=Union[TimelineViewResponse, EmptyViewResponse])
def get_timeline_view(
    account_filter: str = Query("all", alias="filter", description=FILTER_DESCRIPTION),
    store: LedgerStore = Depends(get_store),
):
    return timeline_view_response(store.timeline_view(AccountFilter.parse(account_filter)))
