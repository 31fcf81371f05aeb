"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from bank_tracker.domain.models import PaymentMethod, TransactionKind


class LoginRequest(BaseModel):
    """Request body for POST /v1/session"""

    email: str
    password: str


class SessionResponse(BaseModel):
    token: Optional[str] = None
    user_id: str
    email: str


class AccountRequest(BaseModel):
    """Request body for POST /v1/accounts"""

    name: str
    initial_balance: Decimal = Decimal("0")


class AccountUpdateRequest(BaseModel):
    """Request body for PUT /v1/accounts/{id}; every field is replaced"""

    name: str
    initial_balance: Decimal


class AccountResponse(BaseModel):
    id: str
    name: str
    initial_balance: Decimal
    balance: Decimal
    transaction_count: int
    created_at: Optional[datetime] = None


class CardRequest(BaseModel):
    """Request body for POST /v1/cards"""

    name: str
    credit_limit: Decimal = Decimal("0")
    due_day: int = 15
    closing_day: Optional[int] = None


class CardUpdateRequest(BaseModel):
    """Request body for PUT /v1/cards/{id}; closing_day is kept when omitted"""

    name: str
    credit_limit: Decimal
    due_day: int
    closing_day: Optional[int] = None


class CardResponse(BaseModel):
    id: str
    name: str
    credit_limit: Decimal
    current_balance: Decimal
    available_limit: Decimal
    usage_percent: float
    usage_level: str
    closing_day: int
    due_day: int
    created_at: Optional[datetime] = None


class TransactionRequest(BaseModel):
    """Request body for POST/PUT /v1/transactions"""

    description: str
    amount: Decimal
    kind: TransactionKind
    category: str
    date: date
    account_id: Optional[str] = None
    card_id: Optional[str] = None
    installments: int = Field(default=1, description="Installment count, card purchases only")


class TransactionResponse(BaseModel):
    id: str
    description: str
    amount: Decimal
    kind: TransactionKind
    category: str
    date: date
    payment_method: PaymentMethod
    account_id: Optional[str] = None
    card_id: Optional[str] = None
    installments: int
    created_at: Optional[datetime] = None


class InstallmentResponse(BaseModel):
    id: str
    transaction_id: Optional[str] = None
    card_id: str
    number: int
    total: int
    amount: Decimal
    due_date: date
    paid: bool


class InstallmentPaidRequest(BaseModel):
    paid: bool = True


class SummaryResponse(BaseModel):
    """Response for GET /v1/summary"""

    total_income: Decimal
    total_expense: Decimal
    final_balance: Decimal


class EmptyViewResponse(BaseModel):
    """No-data marker for the chart views"""

    empty: Literal[True] = True
    title: str
    message: str


class CategoryTotalSchema(BaseModel):
    category: str
    total: Decimal


class CategoryViewResponse(BaseModel):
    empty: Literal[False] = False
    categories: List[CategoryTotalSchema]


class AccountBalanceSchema(BaseModel):
    account_id: Optional[str] = None
    name: str
    balance: Decimal
    transaction_count: int


class AccountViewResponse(BaseModel):
    empty: Literal[False] = False
    accounts: List[AccountBalanceSchema]


class TimelineViewResponse(BaseModel):
    empty: Literal[False] = False
    months: List[str]
    labels: List[str]
    income: List[Decimal]
    expense: List[Decimal]
    net: List[Decimal]
