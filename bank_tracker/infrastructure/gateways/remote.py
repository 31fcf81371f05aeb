"""Relational persistence gateway backed by SQLAlchemy"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from werkzeug.security import check_password_hash, generate_password_hash

from bank_tracker.domain.exceptions import AuthError, RemoteError, ValidationError
from bank_tracker.domain.gateway import PersistenceGateway
from bank_tracker.domain.models import Account, Card, Identity, Installment, Transaction
from bank_tracker.infrastructure.database.repositories import (
    AccountRepository,
    CardRepository,
    InstallmentRepository,
    TransactionRepository,
    UserRepository,
)
from bank_tracker.infrastructure.observability.metrics import gateway_failures_counter

logger = logging.getLogger(__name__)


class RemoteGateway(PersistenceGateway):
    """
    Gateway over a SQL database.

    Each call runs in its own database transaction and commits before
    returning, so the caller only sees confirmed writes.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._identity: Optional[Identity] = None

    @contextmanager
    def _unit_of_work(self, operation: str) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            gateway_failures_counter.inc()
            logger.error(f"Database error during {operation}: {e}")
            raise RemoteError(f"{operation} failed") from e
        finally:
            db.close()

    # Session

    def register_user(self, email: str, password: str) -> Identity:
        """Create a user that can sign in; the password is stored hashed"""
        if not email or not password:
            raise ValidationError("Email and password are required")
        with self._unit_of_work("register_user") as db:
            users = UserRepository(db)
            if users.get_by_email(email) is not None:
                raise ValidationError(f"User {email} already exists")
            return users.create_user(email, generate_password_hash(password))

    def get_session(self) -> Optional[Identity]:
        return self._identity

    def sign_in(self, email: str, password: str) -> Identity:
        with self._unit_of_work("sign_in") as db:
            user = UserRepository(db).get_by_email(email)
            if user is None or not check_password_hash(user.password_hash, password):
                raise AuthError("Invalid email or password")
            identity = Identity(user_id=user.id, email=user.email)
        self._identity = identity
        return identity

    def sign_out(self) -> None:
        self._identity = None

    # Reads

    def list_accounts(self, user_id: str) -> List[Account]:
        with self._unit_of_work("list_accounts") as db:
            return AccountRepository(db).list_by_user(user_id)

    def list_cards(self, user_id: str) -> List[Card]:
        with self._unit_of_work("list_cards") as db:
            return CardRepository(db).list_by_user(user_id)

    def list_transactions(self, user_id: str) -> List[Transaction]:
        with self._unit_of_work("list_transactions") as db:
            return TransactionRepository(db).list_by_user(user_id)

    def list_installments(self, user_id: str) -> List[Installment]:
        with self._unit_of_work("list_installments") as db:
            return InstallmentRepository(db).list_by_user(user_id)

    # Accounts

    def insert_account(self, account: Account) -> Account:
        with self._unit_of_work("insert_account") as db:
            return AccountRepository(db).insert(account)

    def update_account(self, account: Account) -> Account:
        with self._unit_of_work("update_account") as db:
            return self._confirmed(AccountRepository(db).update(account), "Account", account.id)

    def delete_account(self, user_id: str, account_id: str) -> None:
        with self._unit_of_work("delete_account") as db:
            self._confirmed(AccountRepository(db).delete(user_id, account_id), "Account", account_id)

    # Cards

    def insert_card(self, card: Card) -> Card:
        with self._unit_of_work("insert_card") as db:
            return CardRepository(db).insert(card)

    def update_card(self, card: Card) -> Card:
        with self._unit_of_work("update_card") as db:
            return self._confirmed(CardRepository(db).update(card), "Card", card.id)

    def delete_card(self, user_id: str, card_id: str) -> None:
        with self._unit_of_work("delete_card") as db:
            self._confirmed(CardRepository(db).delete(user_id, card_id), "Card", card_id)

    # Transactions

    def insert_transaction(self, transaction: Transaction) -> Transaction:
        with self._unit_of_work("insert_transaction") as db:
            return TransactionRepository(db).insert(transaction)

    def update_transaction(self, transaction: Transaction) -> Transaction:
        with self._unit_of_work("update_transaction") as db:
            return self._confirmed(TransactionRepository(db).update(transaction), "Transaction", transaction.id)

    def delete_transaction(self, user_id: str, transaction_id: str) -> None:
        with self._unit_of_work("delete_transaction") as db:
            self._confirmed(TransactionRepository(db).delete(user_id, transaction_id), "Transaction", transaction_id)

    # Installments

    def insert_installments(self, installments: List[Installment]) -> List[Installment]:
        with self._unit_of_work("insert_installments") as db:
            return InstallmentRepository(db).insert_many(installments)

    def update_installment(self, installment: Installment) -> Installment:
        with self._unit_of_work("update_installment") as db:
            return self._confirmed(InstallmentRepository(db).update(installment), "Installment", installment.id)

    def delete_installments(self, user_id: str, transaction_id: str) -> None:
        with self._unit_of_work("delete_installments") as db:
            InstallmentRepository(db).delete_for_transaction(user_id, transaction_id)

    @staticmethod
    def _confirmed(result, label: str, entity_id: str):
        """The backend refuses writes to rows the user does not own or that are gone"""
        if not result:
            gateway_failures_counter.inc()
            raise RemoteError(f"{label} {entity_id} was not found in the backend")
        return result
