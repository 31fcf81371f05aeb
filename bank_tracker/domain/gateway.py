"""Persistence gateway contract shared by the remote and local backends"""

from abc import ABC, abstractmethod
from typing import List, Optional

from bank_tracker.domain.models import Account, Card, Identity, Installment, Transaction


class Authenticator(ABC):
    """Pluggable credential check"""

    @abstractmethod
    def authenticate(self, email: str, password: str) -> Identity:
        """
        Raises:
            AuthError: Unknown user or wrong password
        """


class PersistenceGateway(ABC):
    """
    Loads and saves ledger entities for one user.

    Every write is scoped to the owning user's id. Implementations raise
    RemoteError on transport, storage or permission failures and AuthError
    on rejected credentials.
    """

    # Session

    @abstractmethod
    def get_session(self) -> Optional[Identity]:
        ...

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Identity:
        ...

    @abstractmethod
    def sign_out(self) -> None:
        ...

    # Reads

    @abstractmethod
    def list_accounts(self, user_id: str) -> List[Account]:
        """Accounts by creation time, oldest first"""

    @abstractmethod
    def list_cards(self, user_id: str) -> List[Card]:
        """Cards by creation time, oldest first"""

    @abstractmethod
    def list_transactions(self, user_id: str) -> List[Transaction]:
        """Transactions by creation time, newest first"""

    @abstractmethod
    def list_installments(self, user_id: str) -> List[Installment]:
        """Installments by due date, earliest first"""

    # Accounts

    @abstractmethod
    def insert_account(self, account: Account) -> Account:
        ...

    @abstractmethod
    def update_account(self, account: Account) -> Account:
        ...

    @abstractmethod
    def delete_account(self, user_id: str, account_id: str) -> None:
        """Delete the account and its transactions"""

    # Cards

    @abstractmethod
    def insert_card(self, card: Card) -> Card:
        ...

    @abstractmethod
    def update_card(self, card: Card) -> Card:
        ...

    @abstractmethod
    def delete_card(self, user_id: str, card_id: str) -> None:
        """Delete the card, its transactions and its installments"""

    # Transactions

    @abstractmethod
    def insert_transaction(self, transaction: Transaction) -> Transaction:
        ...

    @abstractmethod
    def update_transaction(self, transaction: Transaction) -> Transaction:
        ...

    @abstractmethod
    def delete_transaction(self, user_id: str, transaction_id: str) -> None:
        """Delete the transaction; its installments keep existing, unlinked"""

    # Installments

    @abstractmethod
    def insert_installments(self, installments: List[Installment]) -> List[Installment]:
        ...

    @abstractmethod
    def update_installment(self, installment: Installment) -> Installment:
        ...

    @abstractmethod
    def delete_installments(self, user_id: str, transaction_id: str) -> None:
        """Remove the installments generated for a transaction"""
