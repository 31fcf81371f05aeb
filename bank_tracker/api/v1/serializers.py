"""Domain object to response schema conversions"""

from typing import Union

from bank_tracker.api.v1.schemas import (
    AccountBalanceSchema,
    AccountResponse,
    AccountViewResponse,
    CardResponse,
    CategoryTotalSchema,
    CategoryViewResponse,
    EmptyViewResponse,
    InstallmentResponse,
    TimelineViewResponse,
    TransactionResponse,
)
from bank_tracker.domain.balances import card_usage
from bank_tracker.domain.ledger import LedgerStore
from bank_tracker.domain.models import (
    Account,
    AccountView,
    Card,
    CategoryView,
    EmptyView,
    Installment,
    TimelineView,
    Transaction,
)


def account_response(store: LedgerStore, account: Account) -> AccountResponse:
    return AccountResponse(
        id=account.id,
        name=account.name,
        initial_balance=account.initial_balance,
        balance=store.account_balance(account.id),
        transaction_count=sum(1 for t in store.transactions if t.account_id == account.id),
        created_at=account.created_at,
    )


def card_response(card: Card) -> CardResponse:
    usage = card_usage(card)
    return CardResponse(
        id=card.id,
        name=card.name,
        credit_limit=card.credit_limit,
        current_balance=card.current_balance,
        available_limit=usage.available_limit,
        usage_percent=usage.usage_percent,
        usage_level=usage.usage_level,
        closing_day=card.closing_day,
        due_day=card.due_day,
        created_at=card.created_at,
    )


def transaction_response(transaction: Transaction) -> TransactionResponse:
    return TransactionResponse(
        id=transaction.id,
        description=transaction.description,
        amount=transaction.amount,
        kind=transaction.kind,
        category=transaction.category,
        date=transaction.date,
        payment_method=transaction.payment_method,
        account_id=transaction.account_id,
        card_id=transaction.card_id,
        installments=transaction.installments,
        created_at=transaction.created_at,
    )


def installment_response(installment: Installment) -> InstallmentResponse:
    return InstallmentResponse(
        id=installment.id,
        transaction_id=installment.transaction_id,
        card_id=installment.card_id,
        number=installment.number,
        total=installment.total,
        amount=installment.amount,
        due_date=installment.due_date,
        paid=installment.paid,
    )


def empty_view_response(view: EmptyView) -> EmptyViewResponse:
    return EmptyViewResponse(title=view.title, message=view.message)


def category_view_response(
    view: Union[CategoryView, EmptyView]
) -> Union[CategoryViewResponse, EmptyViewResponse]:
    if isinstance(view, EmptyView):
        return empty_view_response(view)
    return CategoryViewResponse(
        categories=[CategoryTotalSchema(category=e.category, total=e.total) for e in view.entries]
    )


def account_view_response(
    view: Union[AccountView, EmptyView]
) -> Union[AccountViewResponse, EmptyViewResponse]:
    if isinstance(view, EmptyView):
        return empty_view_response(view)
    return AccountViewResponse(
        accounts=[
            AccountBalanceSchema(
                account_id=e.account_id,
                name=e.name,
                balance=e.balance,
                transaction_count=e.transaction_count,
            )
            for e in view.entries
        ]
    )


def timeline_view_response(
    view: Union[TimelineView, EmptyView]
) -> Union[TimelineViewResponse, EmptyViewResponse]:
    if isinstance(view, EmptyView):
        return empty_view_response(view)
    return TimelineViewResponse(
        months=view.months,
        labels=view.labels,
        income=view.income,
        expense=view.expense,
        net=view.net,
    )
