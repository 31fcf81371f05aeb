"""Chart-ready aggregates projected from the ledger"""

from collections import defaultdict
from decimal import Decimal
from typing import Dict, Sequence, Union

from bank_tracker.domain.balances import ZERO, account_balance, filter_transactions, is_cash
from bank_tracker.domain.models import (
    Account,
    AccountBalanceEntry,
    AccountFilter,
    AccountView,
    CategoryTotal,
    CategoryView,
    EmptyView,
    TimelineView,
    Transaction,
    TransactionKind,
)
from bank_tracker.utils.date_utils import month_key, month_label

CASH_ENTRY_NAME = "Cash"


def category_view(
    transactions: Sequence[Transaction], account_filter: AccountFilter
) -> Union[CategoryView, EmptyView]:
    """Expense totals per category, largest first. Income never contributes."""
    totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for t in filter_transactions(account_filter, transactions):
        if t.kind == TransactionKind.EXPENSE:
            totals[t.category] += t.amount

    if not totals:
        return EmptyView(title="Expenses by category", message="No expenses found")

    entries = [CategoryTotal(category=c, total=v) for c, v in totals.items()]
    entries.sort(key=lambda e: e.total, reverse=True)
    return CategoryView(entries=entries)


def account_view(
    accounts: Sequence[Account], transactions: Sequence[Transaction]
) -> Union[AccountView, EmptyView]:
    """
    Derived balance per account, plus a synthetic cash entry.

    The cash entry covers transactions with no account and no card, and is
    only included when its net balance is non-zero.
    """
    entries = [
        AccountBalanceEntry(
            account_id=account.id,
            name=account.name,
            balance=account_balance(account.id, accounts, transactions),
            transaction_count=sum(1 for t in transactions if t.account_id == account.id),
        )
        for account in accounts
    ]

    cash = [t for t in transactions if is_cash(t)]
    cash_balance = sum((t.amount if t.is_income else -t.amount for t in cash), ZERO)
    if cash_balance != 0:
        entries.append(
            AccountBalanceEntry(
                name=CASH_ENTRY_NAME,
                balance=cash_balance,
                transaction_count=len(cash),
            )
        )

    if not entries or all(e.balance == 0 for e in entries):
        return EmptyView(title="Balance by account", message="No balances found")

    return AccountView(entries=entries)


def timeline_view(
    transactions: Sequence[Transaction], account_filter: AccountFilter
) -> Union[TimelineView, EmptyView]:
    """Monthly income, expense and net over the months that have transactions"""
    selected = filter_transactions(account_filter, transactions)
    if not selected:
        return EmptyView(title="Monthly evolution", message="No transactions found")

    income: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    expense: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for t in selected:
        key = month_key(t.date)
        if t.is_income:
            income[key] += t.amount
        else:
            expense[key] += t.amount

    months = sorted(set(income) | set(expense))
    return TimelineView(
        months=months,
        labels=[month_label(m) for m in months],
        income=[income[m] for m in months],
        expense=[expense[m] for m in months],
        net=[income[m] - expense[m] for m in months],
    )
