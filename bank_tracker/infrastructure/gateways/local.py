"""Local key-value persistence gateway (no server, one JSON file on disk)"""

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Callable, List, Optional, Type, TypeVar, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from bank_tracker.domain.exceptions import RemoteError
from bank_tracker.domain.gateway import Authenticator, PersistenceGateway
from bank_tracker.domain.models import Account, Card, Identity, Installment, Transaction
from bank_tracker.infrastructure.observability.metrics import gateway_failures_counter
from bank_tracker.utils.json_file import file_lock, read_json_file, write_json_file

logger = logging.getLogger(__name__)

T = TypeVar("T")

SESSION_KEY = "session"


class LocalStorage:
    """
    String key-value store persisted to a JSON file.

    Mirrors the browser localStorage API: values are strings, and a missing
    key reads as None. All instances on one file share `lock`; hold it to
    make a read followed by a write atomic.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.lock = file_lock(self.path)

    def get_item(self, key: str) -> Optional[str]:
        with self.lock:
            return read_json_file(self.path).get(key)

    def set_item(self, key: str, value: str) -> None:
        with self.lock:
            data = read_json_file(self.path)
            data[key] = value
            write_json_file(self.path, data)

    def remove_item(self, key: str) -> None:
        with self.lock:
            data = read_json_file(self.path)
            if data.pop(key, None) is not None:
                write_json_file(self.path, data)


class LocalGateway(PersistenceGateway):
    """
    Gateway over LocalStorage.

    Collections are stored per user under "<user_id>:<collection>" keys, so
    one user can never read or write another user's records.
    """

    def __init__(self, storage: LocalStorage, authenticator: Authenticator):
        self._storage = storage
        self._authenticator = authenticator

    # Session

    def get_session(self) -> Optional[Identity]:
        raw = self._call("get_session", lambda: self._storage.get_item(SESSION_KEY))
        if raw is None:
            return None
        return self._call("get_session", lambda: TypeAdapter(Identity).validate_json(raw))

    def sign_in(self, email: str, password: str) -> Identity:
        identity = self._authenticator.authenticate(email, password)
        payload = TypeAdapter(Identity).dump_json(identity).decode()
        self._call("sign_in", lambda: self._storage.set_item(SESSION_KEY, payload))
        return identity

    def sign_out(self) -> None:
        self._call("sign_out", lambda: self._storage.remove_item(SESSION_KEY))

    # Reads

    def list_accounts(self, user_id: str) -> List[Account]:
        return self._load(user_id, "accounts", Account)

    def list_cards(self, user_id: str) -> List[Card]:
        return self._load(user_id, "cards", Card)

    def list_transactions(self, user_id: str) -> List[Transaction]:
        # Stored in creation order; newest first on read
        return list(reversed(self._load(user_id, "transactions", Transaction)))

    def list_installments(self, user_id: str) -> List[Installment]:
        installments = self._load(user_id, "installments", Installment)
        return sorted(installments, key=lambda i: (i.due_date, i.number))

    # Accounts

    def insert_account(self, account: Account) -> Account:
        return self._insert(account.user_id, "accounts", Account, account)

    def update_account(self, account: Account) -> Account:
        return self._update(account.user_id, "accounts", Account, account)

    def delete_account(self, user_id: str, account_id: str) -> None:
        with self._storage.lock:
            self._delete(user_id, "accounts", Account, account_id)
            transactions = self._load(user_id, "transactions", Transaction)
            self._save(user_id, "transactions", Transaction, [t for t in transactions if t.account_id != account_id])

    # Cards

    def insert_card(self, card: Card) -> Card:
        return self._insert(card.user_id, "cards", Card, card)

    def update_card(self, card: Card) -> Card:
        return self._update(card.user_id, "cards", Card, card)

    def delete_card(self, user_id: str, card_id: str) -> None:
        with self._storage.lock:
            self._delete(user_id, "cards", Card, card_id)
            transactions = self._load(user_id, "transactions", Transaction)
            self._save(user_id, "transactions", Transaction, [t for t in transactions if t.card_id != card_id])
            installments = self._load(user_id, "installments", Installment)
            self._save(user_id, "installments", Installment, [i for i in installments if i.card_id != card_id])

    # Transactions

    def insert_transaction(self, transaction: Transaction) -> Transaction:
        return self._insert(transaction.user_id, "transactions", Transaction, transaction)

    def update_transaction(self, transaction: Transaction) -> Transaction:
        return self._update(transaction.user_id, "transactions", Transaction, transaction)

    def delete_transaction(self, user_id: str, transaction_id: str) -> None:
        with self._storage.lock:
            self._delete(user_id, "transactions", Transaction, transaction_id)
            installments = self._load(user_id, "installments", Installment)
            unlinked = [
                replace(i, transaction_id=None) if i.transaction_id == transaction_id else i
                for i in installments
            ]
            self._save(user_id, "installments", Installment, unlinked)

    # Installments

    def insert_installments(self, installments: List[Installment]) -> List[Installment]:
        if not installments:
            return []
        user_id = installments[0].user_id
        with self._storage.lock:
            existing = self._load(user_id, "installments", Installment)
            self._save(user_id, "installments", Installment, existing + list(installments))
        return list(installments)

    def update_installment(self, installment: Installment) -> Installment:
        return self._update(installment.user_id, "installments", Installment, installment)

    def delete_installments(self, user_id: str, transaction_id: str) -> None:
        with self._storage.lock:
            installments = self._load(user_id, "installments", Installment)
            self._save(
                user_id, "installments", Installment, [i for i in installments if i.transaction_id != transaction_id]
            )

    # Storage helpers

    @staticmethod
    def _key(user_id: str, collection: str) -> str:
        return f"{user_id}:{collection}"

    def _call(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
            gateway_failures_counter.inc()
            logger.error(f"Local storage error during {operation}: {e}")
            raise RemoteError(f"{operation} failed") from e

    def _load(self, user_id: str, collection: str, model: Type[T]) -> List[T]:
        raw = self._call(f"load {collection}", lambda: self._storage.get_item(self._key(user_id, collection)))
        if raw is None:
            return []
        return self._call(f"load {collection}", lambda: TypeAdapter(List[model]).validate_json(raw))

    def _save(self, user_id: str, collection: str, model: Type[T], items: List[T]) -> None:
        payload = TypeAdapter(List[model]).dump_json(items).decode()
        self._call(f"save {collection}", lambda: self._storage.set_item(self._key(user_id, collection), payload))

    def _insert(self, user_id: str, collection: str, model: Type[T], item: T) -> T:
        with self._storage.lock:
            items = self._load(user_id, collection, model)
            items.append(item)
            self._save(user_id, collection, model, items)
        return item

    def _update(self, user_id: str, collection: str, model: Type[T], item: T) -> T:
        with self._storage.lock:
            items = self._load(user_id, collection, model)
            for index, existing in enumerate(items):
                if existing.id == item.id:
                    items[index] = item
                    self._save(user_id, collection, model, items)
                    return item
        gateway_failures_counter.inc()
        raise RemoteError(f"{model.__name__} {item.id} was not found in local storage")

    def _delete(self, user_id: str, collection: str, model: Type[T], item_id: str) -> None:
        with self._storage.lock:
            items = self._load(user_id, collection, model)
            remaining = [i for i in items if i.id != item_id]
            if len(remaining) == len(items):
                gateway_failures_counter.inc()
                raise RemoteError(f"{model.__name__} {item_id} was not found in local storage")
            self._save(user_id, collection, model, remaining)
