"""Ledger store - the session's in-memory mirror of the user's entities"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional, Union

from bank_tracker.domain import balances, views
from bank_tracker.domain.exceptions import (
    AuthorizationError,
    NotFoundError,
    RemoteError,
    ValidationError,
)
from bank_tracker.domain.gateway import PersistenceGateway
from bank_tracker.domain.installments import generate_installments
from bank_tracker.domain.models import (
    Account,
    AccountFilter,
    AccountView,
    Card,
    CardUsage,
    CategoryView,
    EmptyView,
    Identity,
    Installment,
    Summary,
    TimelineView,
    Transaction,
    TransactionDraft,
    TransactionKind,
)
from bank_tracker.utils.money import MAX_AMOUNT, to_money

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAY = 15
DEFAULT_CLOSING_DAY = 1


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerStore:
    """
    Authoritative collections for the signed-in user.

    Every mutation goes through the gateway first; the local mirror is only
    changed once the gateway has confirmed the write, so a RemoteError leaves
    the store exactly as it was. One store serves one user session and
    expects its commands to run one at a time.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        id_factory: Callable[[], str] = _new_id,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._gateway = gateway
        self._id_factory = id_factory
        self._clock = clock
        self._identity: Optional[Identity] = None
        self._accounts: List[Account] = []
        self._cards: List[Card] = []
        self._transactions: List[Transaction] = []
        self._installments: List[Installment] = []

    # Session

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    def sign_in(self, email: str, password: str) -> Identity:
        """Authenticate against the gateway and load the user's data"""
        email = (email or "").strip()
        if not email or not password:
            raise ValidationError("Email and password are required")

        identity = self._gateway.sign_in(email, password)
        self._identity = identity
        self.load()
        logger.info("Signed in", extra={"user_id": identity.user_id})
        return identity

    def restore_session(self) -> Optional[Identity]:
        """Resume the gateway's current session, if any"""
        identity = self._gateway.get_session()
        if identity is None:
            return None
        self._identity = identity
        self.load()
        return identity

    def sign_out(self) -> None:
        self._gateway.sign_out()
        if self._identity:
            logger.info("Signed out", extra={"user_id": self._identity.user_id})
        self._identity = None
        self._clear()

    def load(self) -> None:
        """Replace the local mirror with the gateway's current contents"""
        identity = self._require_identity()
        try:
            accounts = self._gateway.list_accounts(identity.user_id)
            transactions = self._gateway.list_transactions(identity.user_id)
            cards = self._gateway.list_cards(identity.user_id)
            installments = self._gateway.list_installments(identity.user_id)
        except RemoteError:
            self._clear()
            raise

        self._accounts = accounts
        self._transactions = transactions
        self._cards = cards
        self._installments = installments
        logger.info(
            "Ledger loaded",
            extra={
                "user_id": identity.user_id,
                "accounts": len(accounts),
                "transactions": len(transactions),
                "cards": len(cards),
                "installments": len(installments),
            },
        )

    # Read access

    @property
    def accounts(self) -> List[Account]:
        return list(self._accounts)

    @property
    def cards(self) -> List[Card]:
        return list(self._cards)

    @property
    def transactions(self) -> List[Transaction]:
        return list(self._transactions)

    @property
    def installments(self) -> List[Installment]:
        return list(self._installments)

    def get_account(self, account_id: str) -> Account:
        return self._find(self._accounts, account_id, "Account")

    def get_card(self, card_id: str) -> Card:
        return self._find(self._cards, card_id, "Card")

    def get_transaction(self, transaction_id: str) -> Transaction:
        return self._find(self._transactions, transaction_id, "Transaction")

    def get_installment(self, installment_id: str) -> Installment:
        return self._find(self._installments, installment_id, "Installment")

    def transactions_for(self, account_filter: AccountFilter) -> List[Transaction]:
        """Filtered transactions, most recent date first"""
        selected = balances.filter_transactions(account_filter, self._transactions)
        return sorted(selected, key=lambda t: t.date, reverse=True)

    def installments_for_card(self, card_id: str) -> List[Installment]:
        return [i for i in self._installments if i.card_id == card_id]

    # Accounts

    def add_account(self, name: str, initial_balance: Union[Decimal, str, int] = 0) -> Account:
        identity = self._require_identity()
        account = Account(
            id=self._id_factory(),
            user_id=identity.user_id,
            name=self._require_name(name, "Account name is required"),
            initial_balance=self._money(initial_balance, allow_negative=True),
            created_at=self._clock(),
        )
        saved = self._gateway.insert_account(account)
        self._accounts.append(saved)
        logger.info("Account added", extra={"account_id": saved.id, "user_id": identity.user_id})
        return saved

    def update_account(
        self, account_id: str, name: str, initial_balance: Union[Decimal, str, int]
    ) -> Account:
        account = self._owned(self.get_account(account_id))
        updated = replace(
            account,
            name=self._require_name(name, "Account name is required"),
            initial_balance=self._money(initial_balance, allow_negative=True),
        )
        saved = self._gateway.update_account(updated)
        self._replace(self._accounts, saved)
        logger.info("Account updated", extra={"account_id": account_id})
        return saved

    def remove_account(self, account_id: str) -> None:
        """Delete the account together with its transactions"""
        account = self._owned(self.get_account(account_id))
        self._gateway.delete_account(account.user_id, account.id)
        self._accounts = [a for a in self._accounts if a.id != account_id]
        self._transactions = [t for t in self._transactions if t.account_id != account_id]
        logger.info("Account removed", extra={"account_id": account_id})

    # Cards

    def add_card(
        self,
        name: str,
        credit_limit: Union[Decimal, str, int] = 0,
        due_day: int = DEFAULT_DUE_DAY,
        closing_day: int = DEFAULT_CLOSING_DAY,
    ) -> Card:
        identity = self._require_identity()
        card = Card(
            id=self._id_factory(),
            user_id=identity.user_id,
            name=self._require_name(name, "Card name is required"),
            credit_limit=self._money(credit_limit),
            current_balance=Decimal("0.00"),
            closing_day=self._day(closing_day, "Closing day"),
            due_day=self._day(due_day, "Due day"),
            created_at=self._clock(),
        )
        saved = self._gateway.insert_card(card)
        self._cards.append(saved)
        logger.info("Card added", extra={"card_id": saved.id, "user_id": identity.user_id})
        return saved

    def update_card(
        self,
        card_id: str,
        name: str,
        credit_limit: Union[Decimal, str, int],
        due_day: int,
        closing_day: Optional[int] = None,
    ) -> Card:
        card = self._owned(self.get_card(card_id))
        updated = replace(
            card,
            name=self._require_name(name, "Card name is required"),
            credit_limit=self._money(credit_limit),
            due_day=self._day(due_day, "Due day"),
            closing_day=card.closing_day if closing_day is None else self._day(closing_day, "Closing day"),
        )
        saved = self._gateway.update_card(updated)
        self._replace(self._cards, saved)
        logger.info("Card updated", extra={"card_id": card_id})
        return saved

    def remove_card(self, card_id: str) -> None:
        """Delete the card together with its transactions and installments"""
        card = self._owned(self.get_card(card_id))
        self._gateway.delete_card(card.user_id, card.id)
        self._cards = [c for c in self._cards if c.id != card_id]
        self._transactions = [t for t in self._transactions if t.card_id != card_id]
        self._installments = [i for i in self._installments if i.card_id != card_id]
        logger.info("Card removed", extra={"card_id": card_id})

    # Transactions

    def add_transaction(self, draft: TransactionDraft) -> Transaction:
        """
        Record a transaction.

        Card purchases in more than one installment get a generated schedule,
        and card expenses reserve the full amount against the card at once.
        If either follow-up write fails, the already persisted rows for this
        transaction are deleted again before the RemoteError propagates.
        """
        identity = self._require_identity()
        fields = self._validate_draft(draft)
        card = self._owned(self.get_card(draft.card_id)) if draft.card_id else None
        if draft.account_id:
            self._owned(self.get_account(draft.account_id))
        if card and fields["kind"] == TransactionKind.EXPENSE and card.current_balance + fields["amount"] > MAX_AMOUNT:
            raise ValidationError("Card balance would exceed the largest supported amount")

        transaction = Transaction(
            id=self._id_factory(),
            user_id=identity.user_id,
            account_id=draft.account_id or None,
            card_id=draft.card_id or None,
            created_at=self._clock(),
            **fields,
        )
        saved = self._gateway.insert_transaction(transaction)

        installments: List[Installment] = []
        updated_card: Optional[Card] = None
        try:
            if card and saved.installments > 1:
                schedule = generate_installments(
                    amount=saved.amount,
                    total=saved.installments,
                    purchase_date=saved.date,
                    card_id=card.id,
                    transaction_id=saved.id,
                    user_id=identity.user_id,
                    id_factory=self._id_factory,
                )
                installments = self._gateway.insert_installments(schedule)
            if card and saved.kind == TransactionKind.EXPENSE:
                updated_card = self._gateway.update_card(
                    replace(card, current_balance=card.current_balance + saved.amount)
                )
        except RemoteError:
            self._compensate(saved)
            raise

        self._transactions.insert(0, saved)
        if installments:
            self._installments = sorted(self._installments + installments, key=lambda i: i.due_date)
        if updated_card:
            self._replace(self._cards, updated_card)

        logger.info(
            "Transaction added",
            extra={
                "transaction_id": saved.id,
                "kind": saved.kind.value,
                "payment_method": saved.payment_method.value,
                "installments": saved.installments,
            },
        )
        return saved

    def update_transaction(self, transaction_id: str, draft: TransactionDraft) -> Transaction:
        """
        Edit a transaction.

        Card transactions already reserved their amount against the card, so
        only their description, category and date can change.
        """
        existing = self._owned(self.get_transaction(transaction_id))
        fields = self._validate_draft(draft)

        if existing.card_id:
            locked = (
                fields["amount"] != existing.amount
                or fields["kind"] != existing.kind
                or fields["installments"] != existing.installments
                or (draft.card_id or None) != existing.card_id
                or draft.account_id
            )
            if locked:
                raise ValidationError(
                    "Only description, category and date can change on a card transaction"
                )
        elif draft.card_id:
            raise ValidationError("Card purchases must be recorded as new transactions")

        if draft.account_id:
            self._owned(self.get_account(draft.account_id))

        updated = replace(existing, account_id=draft.account_id or None, **fields)
        saved = self._gateway.update_transaction(updated)
        self._replace(self._transactions, saved)
        logger.info("Transaction updated", extra={"transaction_id": transaction_id})
        return saved

    def remove_transaction(self, transaction_id: str) -> None:
        """Delete a transaction; its installments stay on the card, unlinked"""
        transaction = self._owned(self.get_transaction(transaction_id))
        self._gateway.delete_transaction(transaction.user_id, transaction.id)
        self._transactions = [t for t in self._transactions if t.id != transaction_id]
        self._installments = [
            replace(i, transaction_id=None) if i.transaction_id == transaction_id else i
            for i in self._installments
        ]
        logger.info("Transaction removed", extra={"transaction_id": transaction_id})

    # Installments

    def set_installment_paid(self, installment_id: str, paid: bool = True) -> Installment:
        installment = self._owned(self.get_installment(installment_id))
        saved = self._gateway.update_installment(replace(installment, paid=paid))
        self._replace(self._installments, saved)
        logger.info("Installment updated", extra={"installment_id": installment_id, "paid": paid})
        return saved

    # Derived data

    def account_balance(self, account_id: str) -> Decimal:
        return balances.account_balance(account_id, self._accounts, self._transactions)

    def summary(self, account_filter: Optional[AccountFilter] = None) -> Summary:
        return balances.summary(
            account_filter or AccountFilter.all_accounts(), self._accounts, self._transactions
        )

    def card_usage(self, card_id: str) -> CardUsage:
        return balances.card_usage(self.get_card(card_id))

    def category_view(
        self, account_filter: Optional[AccountFilter] = None
    ) -> Union[CategoryView, EmptyView]:
        return views.category_view(self._transactions, account_filter or AccountFilter.all_accounts())

    def account_view(self) -> Union[AccountView, EmptyView]:
        return views.account_view(self._accounts, self._transactions)

    def timeline_view(
        self, account_filter: Optional[AccountFilter] = None
    ) -> Union[TimelineView, EmptyView]:
        return views.timeline_view(self._transactions, account_filter or AccountFilter.all_accounts())

    # Helpers

    def _require_identity(self) -> Identity:
        if self._identity is None:
            raise AuthorizationError("No user is signed in")
        return self._identity

    def _owned(self, entity):
        identity = self._require_identity()
        if entity.user_id != identity.user_id:
            raise AuthorizationError("Entity belongs to another user")
        return entity

    def _clear(self) -> None:
        self._accounts = []
        self._cards = []
        self._transactions = []
        self._installments = []

    def _compensate(self, transaction: Transaction) -> None:
        """Undo the rows written for a transaction whose follow-up failed"""
        try:
            self._gateway.delete_installments(transaction.user_id, transaction.id)
            self._gateway.delete_transaction(transaction.user_id, transaction.id)
        except RemoteError:
            logger.error(
                "Could not roll back transaction",
                extra={"transaction_id": transaction.id},
                exc_info=True,
            )

    @staticmethod
    def _find(items, entity_id: str, label: str):
        for item in items:
            if item.id == entity_id:
                return item
        raise NotFoundError(f"{label} {entity_id} not found")

    @staticmethod
    def _replace(items: list, entity) -> None:
        for index, item in enumerate(items):
            if item.id == entity.id:
                items[index] = entity
                return

    @staticmethod
    def _require_name(name: Optional[str], message: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError(message)
        return name

    @staticmethod
    def _money(value, allow_negative: bool = False) -> Decimal:
        try:
            amount = to_money(0 if value is None or value == "" else value)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if amount < 0 and not allow_negative:
            raise ValidationError("Amount cannot be negative")
        return amount

    @staticmethod
    def _day(value: int, label: str) -> int:
        if not isinstance(value, int) or not 1 <= value <= 31:
            raise ValidationError(f"{label} must be between 1 and 31")
        return value

    def _validate_draft(self, draft: TransactionDraft) -> dict:
        description = (draft.description or "").strip()
        category = (draft.category or "").strip()
        if not description or not category or draft.date is None:
            raise ValidationError("Description, amount, category and date are required")

        try:
            amount = to_money(draft.amount)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if amount <= 0:
            raise ValidationError("Amount must be greater than zero")

        try:
            kind = TransactionKind(draft.kind)
        except ValueError as e:
            raise ValidationError(f"Unknown transaction kind: {draft.kind!r}") from e

        if draft.account_id and draft.card_id:
            raise ValidationError("A transaction settles against an account or a card, not both")

        installments = draft.installments
        if not isinstance(installments, int) or installments < 1:
            raise ValidationError("Installment count must be at least 1")
        if installments > 1 and not draft.card_id:
            raise ValidationError("Only card purchases can be split into installments")

        return {
            "description": description,
            "amount": amount,
            "kind": kind,
            "category": category,
            "date": draft.date,
            "installments": installments,
        }
