"""Domain models - pure Python dataclasses representing ledger entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class PaymentMethod(str, Enum):
    CASH = "cash"
    ACCOUNT = "account"
    CARD = "card"


class FilterScope(str, Enum):
    ALL = "all"
    CASH = "cash"
    ACCOUNT = "account"


@dataclass(frozen=True)
class Identity:
    """Signed-in user"""

    user_id: str
    email: str


@dataclass
class Account:
    """Money-holding entity ("bank"); its balance is always derived"""

    id: str
    user_id: str
    name: str
    initial_balance: Decimal
    created_at: datetime


@dataclass
class Card:
    """Credit card with a limit and an accumulating balance"""

    id: str
    user_id: str
    name: str
    credit_limit: Decimal
    current_balance: Decimal
    closing_day: int
    due_day: int
    created_at: datetime


@dataclass
class Transaction:
    """Single income or expense, settled via an account, a card, or cash"""

    id: str
    user_id: str
    description: str
    amount: Decimal
    kind: TransactionKind
    category: str
    date: date
    account_id: Optional[str] = None
    card_id: Optional[str] = None
    installments: int = 1
    created_at: Optional[datetime] = None

    @property
    def payment_method(self) -> PaymentMethod:
        if self.card_id:
            return PaymentMethod.CARD
        if self.account_id:
            return PaymentMethod.ACCOUNT
        return PaymentMethod.CASH

    @property
    def is_income(self) -> bool:
        return self.kind == TransactionKind.INCOME


@dataclass
class Installment:
    """One scheduled portion of a multi-part card purchase"""

    id: str
    user_id: str
    transaction_id: Optional[str]  # cleared when the parent transaction is deleted
    card_id: str
    number: int
    total: int
    amount: Decimal
    due_date: date
    paid: bool = False


@dataclass
class TransactionDraft:
    """Fields submitted by the transaction form, before validation"""

    description: str
    amount: Decimal
    kind: TransactionKind
    category: str
    date: Optional[date]
    account_id: Optional[str] = None
    card_id: Optional[str] = None
    installments: int = 1


@dataclass(frozen=True)
class AccountFilter:
    """Which transactions a summary or view covers"""

    scope: FilterScope = FilterScope.ALL
    account_id: Optional[str] = None

    @classmethod
    def all_accounts(cls) -> "AccountFilter":
        return cls(FilterScope.ALL)

    @classmethod
    def cash_only(cls) -> "AccountFilter":
        return cls(FilterScope.CASH)

    @classmethod
    def account(cls, account_id: str) -> "AccountFilter":
        return cls(FilterScope.ACCOUNT, account_id)

    @classmethod
    def parse(cls, value: Optional[str]) -> "AccountFilter":
        """Parse the query form: "all", "cash", or an account id"""
        if not value or value == FilterScope.ALL.value:
            return cls.all_accounts()
        if value == FilterScope.CASH.value:
            return cls.cash_only()
        return cls.account(value)


@dataclass
class Summary:
    """Totals for the active filter"""

    total_income: Decimal
    total_expense: Decimal
    final_balance: Decimal


@dataclass
class CardUsage:
    """Derived limit figures for one card"""

    card_id: str
    available_limit: Decimal
    usage_percent: float
    usage_level: str  # "ok", "warning" or "critical"


@dataclass
class EmptyView:
    """Explicit no-data marker returned instead of an empty aggregate"""

    title: str
    message: str


@dataclass
class CategoryTotal:
    category: str
    total: Decimal


@dataclass
class CategoryView:
    """Expense totals per category, largest first"""

    entries: List[CategoryTotal]

    def as_dict(self) -> dict:
        return {entry.category: entry.total for entry in self.entries}


@dataclass
class AccountBalanceEntry:
    name: str
    balance: Decimal
    transaction_count: int
    account_id: Optional[str] = None  # None for the synthetic cash entry


@dataclass
class AccountView:
    """Derived balance per account plus the cash bucket"""

    entries: List[AccountBalanceEntry]


@dataclass
class TimelineView:
    """Parallel monthly series over the months that have transactions"""

    months: List[str] = field(default_factory=list)  # "YYYY-MM", ascending
    labels: List[str] = field(default_factory=list)
    income: List[Decimal] = field(default_factory=list)
    expense: List[Decimal] = field(default_factory=list)
    net: List[Decimal] = field(default_factory=list)
