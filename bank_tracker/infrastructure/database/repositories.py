"""Data access layer for ledger entities"""

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from bank_tracker.domain.models import Account, Card, Identity, Installment, Transaction, TransactionKind
from bank_tracker.infrastructure.database.models import (
    BankRecord,
    CreditCardRecord,
    InstallmentRecord,
    TransactionRecord,
    UserRecord,
)


class UserRepository:
    """Repository for users allowed to sign in"""

    def __init__(self, db: Session):
        self.db = db

    def create_user(self, email: str, password_hash: str, user_id: Optional[str] = None) -> Identity:
        record = UserRecord(id=user_id or str(uuid.uuid4()), email=email.strip().lower(), password_hash=password_hash)
        self.db.add(record)
        self.db.flush()
        return Identity(user_id=record.id, email=record.email)

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        return (
            self.db.query(UserRecord)
            .filter(UserRecord.email == email.strip().lower())
            .first()
        )


class AccountRepository:
    """Repository for bank accounts"""

    def __init__(self, db: Session):
        self.db = db

    def list_by_user(self, user_id: str) -> List[Account]:
        records = (
            self.db.query(BankRecord)
            .filter(BankRecord.user_id == user_id)
            .order_by(BankRecord.created_at.asc())
            .all()
        )
        return [self._to_domain(r) for r in records]

    def insert(self, account: Account) -> Account:
        record = BankRecord(
            id=account.id,
            user_id=account.user_id,
            name=account.name,
            initial_balance=account.initial_balance,
            created_at=account.created_at,
        )
        self.db.add(record)
        self.db.flush()
        return self._to_domain(record)

    def update(self, account: Account) -> Optional[Account]:
        record = self._get(account.user_id, account.id)
        if record is None:
            return None
        record.name = account.name
        record.initial_balance = account.initial_balance
        self.db.flush()
        return self._to_domain(record)

    def delete(self, user_id: str, account_id: str) -> bool:
        """Delete the account; its transactions go with it"""
        record = self._get(user_id, account_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.flush()
        return True

    def _get(self, user_id: str, account_id: str) -> Optional[BankRecord]:
        return (
            self.db.query(BankRecord)
            .filter(BankRecord.id == account_id, BankRecord.user_id == user_id)
            .first()
        )

    @staticmethod
    def _to_domain(record: BankRecord) -> Account:
        return Account(
            id=record.id,
            user_id=record.user_id,
            name=record.name,
            initial_balance=record.initial_balance,
            created_at=record.created_at,
        )


class CardRepository:
    """Repository for credit cards"""

    def __init__(self, db: Session):
        self.db = db

    def list_by_user(self, user_id: str) -> List[Card]:
        records = (
            self.db.query(CreditCardRecord)
            .filter(CreditCardRecord.user_id == user_id)
            .order_by(CreditCardRecord.created_at.asc())
            .all()
        )
        return [self._to_domain(r) for r in records]

    def insert(self, card: Card) -> Card:
        record = CreditCardRecord(
            id=card.id,
            user_id=card.user_id,
            name=card.name,
            credit_limit=card.credit_limit,
            current_balance=card.current_balance,
            closing_day=card.closing_day,
            due_day=card.due_day,
            created_at=card.created_at,
        )
        self.db.add(record)
        self.db.flush()
        return self._to_domain(record)

    def update(self, card: Card) -> Optional[Card]:
        record = self._get(card.user_id, card.id)
        if record is None:
            return None
        record.name = card.name
        record.credit_limit = card.credit_limit
        record.current_balance = card.current_balance
        record.closing_day = card.closing_day
        record.due_day = card.due_day
        self.db.flush()
        return self._to_domain(record)

    def delete(self, user_id: str, card_id: str) -> bool:
        """Delete the card; its transactions and installments go with it"""
        record = self._get(user_id, card_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.flush()
        return True

    def _get(self, user_id: str, card_id: str) -> Optional[CreditCardRecord]:
        return (
            self.db.query(CreditCardRecord)
            .filter(CreditCardRecord.id == card_id, CreditCardRecord.user_id == user_id)
            .first()
        )

    @staticmethod
    def _to_domain(record: CreditCardRecord) -> Card:
        return Card(
            id=record.id,
            user_id=record.user_id,
            name=record.name,
            credit_limit=record.credit_limit,
            current_balance=record.current_balance,
            closing_day=record.closing_day,
            due_day=record.due_day,
            created_at=record.created_at,
        )


class TransactionRepository:
    """Repository for transactions"""

    def __init__(self, db: Session):
        self.db = db

    def list_by_user(self, user_id: str) -> List[Transaction]:
        records = (
            self.db.query(TransactionRecord)
            .filter(TransactionRecord.user_id == user_id)
            .order_by(TransactionRecord.created_at.desc())
            .all()
        )
        return [self._to_domain(r) for r in records]

    def insert(self, transaction: Transaction) -> Transaction:
        record = TransactionRecord(
            id=transaction.id,
            user_id=transaction.user_id,
            bank_id=transaction.account_id,
            credit_card_id=transaction.card_id,
            description=transaction.description,
            amount=transaction.amount,
            type=transaction.kind.value,
            category=transaction.category,
            date=transaction.date,
            installments=transaction.installments,
            created_at=transaction.created_at,
        )
        self.db.add(record)
        self.db.flush()
        return self._to_domain(record)

    def update(self, transaction: Transaction) -> Optional[Transaction]:
        record = self._get(transaction.user_id, transaction.id)
        if record is None:
            return None
        record.bank_id = transaction.account_id
        record.credit_card_id = transaction.card_id
        record.description = transaction.description
        record.amount = transaction.amount
        record.type = transaction.kind.value
        record.category = transaction.category
        record.date = transaction.date
        record.installments = transaction.installments
        self.db.flush()
        return self._to_domain(record)

    def delete(self, user_id: str, transaction_id: str) -> bool:
        """Delete the transaction; its installments are kept, unlinked"""
        record = self._get(user_id, transaction_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.flush()
        return True

    def _get(self, user_id: str, transaction_id: str) -> Optional[TransactionRecord]:
        return (
            self.db.query(TransactionRecord)
            .filter(TransactionRecord.id == transaction_id, TransactionRecord.user_id == user_id)
            .first()
        )

    @staticmethod
    def _to_domain(record: TransactionRecord) -> Transaction:
        return Transaction(
            id=record.id,
            user_id=record.user_id,
            description=record.description,
            amount=record.amount,
            kind=TransactionKind(record.type),
            category=record.category,
            date=record.date,
            account_id=record.bank_id,
            card_id=record.credit_card_id,
            installments=record.installments,
            created_at=record.created_at,
        )


class InstallmentRepository:
    """Repository for installment schedules"""

    def __init__(self, db: Session):
        self.db = db

    def list_by_user(self, user_id: str) -> List[Installment]:
        records = (
            self.db.query(InstallmentRecord)
            .filter(InstallmentRecord.user_id == user_id)
            .order_by(InstallmentRecord.due_date.asc(), InstallmentRecord.installment_number.asc())
            .all()
        )
        return [self._to_domain(r) for r in records]

    def insert_many(self, installments: List[Installment]) -> List[Installment]:
        records = [
            InstallmentRecord(
                id=inst.id,
                user_id=inst.user_id,
                transaction_id=inst.transaction_id,
                credit_card_id=inst.card_id,
                installment_number=inst.number,
                total_installments=inst.total,
                amount=inst.amount,
                due_date=inst.due_date,
                is_paid=inst.paid,
            )
            for inst in installments
        ]
        self.db.add_all(records)
        self.db.flush()
        return [self._to_domain(r) for r in records]

    def update(self, installment: Installment) -> Optional[Installment]:
        record = (
            self.db.query(InstallmentRecord)
            .filter(InstallmentRecord.id == installment.id, InstallmentRecord.user_id == installment.user_id)
            .first()
        )
        if record is None:
            return None
        record.is_paid = installment.paid
        self.db.flush()
        return self._to_domain(record)

    def delete_for_transaction(self, user_id: str, transaction_id: str) -> int:
        records = (
            self.db.query(InstallmentRecord)
            .filter(InstallmentRecord.transaction_id == transaction_id, InstallmentRecord.user_id == user_id)
            .all()
        )
        for record in records:
            self.db.delete(record)
        self.db.flush()
        return len(records)

    @staticmethod
    def _to_domain(record: InstallmentRecord) -> Installment:
        return Installment(
            id=record.id,
            user_id=record.user_id,
            transaction_id=record.transaction_id,
            card_id=record.credit_card_id,
            number=record.installment_number,
            total=record.total_installments,
            amount=record.amount,
            due_date=record.due_date,
            paid=record.is_paid,
        )
