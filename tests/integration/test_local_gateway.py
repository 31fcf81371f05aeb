"""Integration tests for the local storage gateway and credential store"""

import json
import threading
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from bank_tracker.config import Settings
from bank_tracker.domain.exceptions import AuthError, RemoteError, ValidationError
from bank_tracker.domain.ledger import LedgerStore
from bank_tracker.domain.models import Account, Installment
from bank_tracker.infrastructure.auth import CredentialStore
from bank_tracker.infrastructure.gateways.factory import GatewayFactory
from bank_tracker.infrastructure.gateways.local import LocalGateway, LocalStorage
from bank_tracker.infrastructure.gateways.remote import RemoteGateway

pytestmark = pytest.mark.integration


def _account(user_id: str, account_id: str = "acc-1") -> Account:
    return Account(
        id=account_id,
        user_id=user_id,
        name="Checking",
        initial_balance=Decimal("1000.00"),
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def test_storage_round_trip(tmp_path):
    storage = LocalStorage(tmp_path / "storage.json")

    assert storage.get_item("missing") is None
    storage.set_item("greeting", "hello")
    assert LocalStorage(tmp_path / "storage.json").get_item("greeting") == "hello"

    storage.remove_item("greeting")
    assert storage.get_item("greeting") is None


def test_collections_are_namespaced_per_user(local_gateway: LocalGateway, tmp_path):
    local_gateway.insert_account(_account("user-ana"))

    assert [a.id for a in local_gateway.list_accounts("user-ana")] == ["acc-1"]
    assert local_gateway.list_accounts("user-bruno") == []

    stored = json.loads((tmp_path / "storage.json").read_text())
    assert "user-ana:accounts" in stored


def test_decimal_values_survive_storage(local_gateway: LocalGateway):
    local_gateway.insert_account(_account("user-ana"))

    [account] = local_gateway.list_accounts("user-ana")

    assert account.initial_balance == Decimal("1000.00")
    assert account.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_session_persists_across_gateways(local_gateway: LocalGateway, tmp_path, credentials):
    identity = local_gateway.sign_in("ana@example.com", "correct horse battery staple")

    fresh = LocalGateway(LocalStorage(tmp_path / "storage.json"), credentials)
    assert fresh.get_session() == identity

    fresh.sign_out()
    assert local_gateway.get_session() is None


def test_sign_in_rejects_wrong_password(local_gateway: LocalGateway):
    with pytest.raises(AuthError):
        local_gateway.sign_in("ana@example.com", "nope")
    assert local_gateway.get_session() is None


def test_update_of_missing_item_fails(local_gateway: LocalGateway):
    with pytest.raises(RemoteError):
        local_gateway.update_account(_account("user-ana", "missing"))
    with pytest.raises(RemoteError):
        local_gateway.delete_card("user-ana", "missing")


def test_installments_listed_by_due_date(local_gateway: LocalGateway):
    def installment(number: int, due: date) -> Installment:
        return Installment(
            id=f"inst-{number}",
            user_id="user-ana",
            transaction_id="txn-1",
            card_id="card-1",
            number=number,
            total=2,
            amount=Decimal("50.00"),
            due_date=due,
        )

    local_gateway.insert_installments([installment(2, date(2024, 2, 15)), installment(1, date(2024, 1, 15))])

    assert [i.number for i in local_gateway.list_installments("user-ana")] == [1, 2]


def test_corrupt_storage_raises_remote_error(tmp_path, credentials):
    path = tmp_path / "storage.json"
    path.write_text("{not json")
    gateway = LocalGateway(LocalStorage(path), credentials)

    with pytest.raises(RemoteError):
        gateway.list_accounts("user-ana")


def test_invalid_records_raise_remote_error(tmp_path, credentials):
    path = tmp_path / "storage.json"
    path.write_text(json.dumps({"user-ana:accounts": '[{"id": "acc-1"}]'}))
    gateway = LocalGateway(LocalStorage(path), credentials)

    with pytest.raises(RemoteError):
        gateway.list_accounts("user-ana")


# Credentials


def test_credentials_store_hashes_only(credentials: CredentialStore, tmp_path):
    raw = (tmp_path / "credentials.json").read_text()

    assert "correct horse battery staple" not in raw
    assert credentials.authenticate("Ana@Example.com", "correct horse battery staple").user_id == "user-ana"


def test_credentials_reject_duplicates_and_blanks(credentials: CredentialStore):
    with pytest.raises(ValidationError):
        credentials.add_user("ana@example.com", "again")
    with pytest.raises(ValidationError):
        credentials.add_user("", "password")


def test_unknown_user_is_rejected(credentials: CredentialStore):
    with pytest.raises(AuthError):
        credentials.authenticate("carla@example.com", "whatever")


# Gateway selection


def test_factory_builds_local_gateway(tmp_path):
    factory = GatewayFactory(
        Settings(
            storage_backend="local",
            local_storage_path=str(tmp_path / "storage.json"),
            local_credentials_path=str(tmp_path / "credentials.json"),
        )
    )

    assert isinstance(factory(), LocalGateway)


def test_factory_shares_database_engine(tmp_path):
    factory = GatewayFactory(Settings(database_url=f"sqlite:///{tmp_path / 'factory.db'}"))

    first, second = factory(), factory()

    assert isinstance(first, RemoteGateway)
    assert first._session_factory is second._session_factory


# Concurrent sessions


def test_concurrent_sessions_keep_every_write(tmp_path, credentials):
    """Two users writing to one storage file from two threads lose nothing"""
    path = tmp_path / "storage.json"
    stores = []
    for email, password in [("ana@example.com", "correct horse battery staple"), ("bruno@example.com", "another password")]:
        ledger = LedgerStore(LocalGateway(LocalStorage(path), credentials))
        ledger.sign_in(email, password)
        stores.append(ledger)

    errors = []

    def add_accounts(ledger: LedgerStore):
        try:
            for n in range(30):
                ledger.add_account(f"Account {n}", n)
        except Exception as e:  # surfaced by the assertion below
            errors.append(e)

    threads = [threading.Thread(target=add_accounts, args=(ledger,)) for ledger in stores]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    reader = LocalGateway(LocalStorage(path), credentials)
    for ledger in stores:
        persisted = reader.list_accounts(ledger.identity.user_id)
        assert len(persisted) == 30
        assert [a.id for a in persisted] == [a.id for a in ledger.accounts]


def test_storage_instances_on_one_file_share_a_lock(tmp_path):
    assert LocalStorage(tmp_path / "storage.json").lock is LocalStorage(tmp_path / "storage.json").lock
    assert LocalStorage(tmp_path / "a.json").lock is not LocalStorage(tmp_path / "b.json").lock


def test_concurrent_user_registration(tmp_path):
    path = tmp_path / "credentials.json"
    emails = [f"user{n}@example.com" for n in range(10)]
    threads = [
        threading.Thread(target=CredentialStore(path).add_user, args=(email, "secret"))
        for email in emails
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    store = CredentialStore(path)
    assert all(store.authenticate(email, "secret").email == email for email in emails)
