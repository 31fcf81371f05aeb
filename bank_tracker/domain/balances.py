"""Balance derivation - pure functions over the current ledger contents"""

from decimal import Decimal
from typing import Iterable, List, Sequence

from bank_tracker.domain.models import (
    Account,
    AccountFilter,
    Card,
    CardUsage,
    FilterScope,
    Summary,
    Transaction,
    TransactionKind,
)

ZERO = Decimal("0.00")

# Usage thresholds (percent of limit) for the card usage level
USAGE_WARNING_PERCENT = 60
USAGE_CRITICAL_PERCENT = 80


def is_cash(transaction: Transaction) -> bool:
    """Cash transactions are tied to neither an account nor a card"""
    return not transaction.account_id and not transaction.card_id


def filter_transactions(
    account_filter: AccountFilter, transactions: Iterable[Transaction]
) -> List[Transaction]:
    """Select the transactions covered by a filter, preserving input order"""
    if account_filter.scope == FilterScope.ALL:
        return list(transactions)
    if account_filter.scope == FilterScope.CASH:
        return [t for t in transactions if is_cash(t)]
    return [t for t in transactions if t.account_id == account_filter.account_id]


def total_by_kind(transactions: Iterable[Transaction], kind: TransactionKind) -> Decimal:
    return sum((t.amount for t in transactions if t.kind == kind), ZERO)


def account_balance(
    account_id: str, accounts: Sequence[Account], transactions: Sequence[Transaction]
) -> Decimal:
    """
    Initial balance plus income minus expense on the account.

    Returns 0 for an unknown account.
    """
    account = next((a for a in accounts if a.id == account_id), None)
    if account is None:
        return ZERO

    on_account = [t for t in transactions if t.account_id == account_id]
    income = total_by_kind(on_account, TransactionKind.INCOME)
    expense = total_by_kind(on_account, TransactionKind.EXPENSE)
    return account.initial_balance + income - expense


def summary(
    account_filter: AccountFilter, accounts: Sequence[Account], transactions: Sequence[Transaction]
) -> Summary:
    """
    Income, expense and final balance for the active filter.

    The final balance adds the initial balance that applies to the filter:
    every account's for "all", the selected account's for one account, and
    nothing for cash.
    """
    selected = filter_transactions(account_filter, transactions)
    total_income = total_by_kind(selected, TransactionKind.INCOME)
    total_expense = total_by_kind(selected, TransactionKind.EXPENSE)

    if account_filter.scope == FilterScope.ALL:
        initial = sum((a.initial_balance for a in accounts), ZERO)
    elif account_filter.scope == FilterScope.ACCOUNT:
        account = next((a for a in accounts if a.id == account_filter.account_id), None)
        initial = account.initial_balance if account else ZERO
    else:
        initial = ZERO

    return Summary(
        total_income=total_income,
        total_expense=total_expense,
        final_balance=(total_income - total_expense) + initial,
    )


def card_usage(card: Card) -> CardUsage:
    """Available limit and how much of the limit is in use"""
    available = card.credit_limit - card.current_balance
    if card.credit_limit > 0:
        usage_percent = round(float(card.current_balance / card.credit_limit * 100), 2)
    else:
        usage_percent = 0.0

    if usage_percent > USAGE_CRITICAL_PERCENT:
        level = "critical"
    elif usage_percent > USAGE_WARNING_PERCENT:
        level = "warning"
    else:
        level = "ok"

    return CardUsage(
        card_id=card.id,
        available_limit=available,
        usage_percent=usage_percent,
        usage_level=level,
    )
