"""Unit tests for the ledger store"""

from datetime import date
from decimal import Decimal

import pytest

from bank_tracker.domain.exceptions import (
    AuthError,
    AuthorizationError,
    NotFoundError,
    RemoteError,
    ValidationError,
)
from bank_tracker.domain.ledger import LedgerStore
from bank_tracker.domain.models import AccountFilter, TransactionDraft, TransactionKind
from bank_tracker.infrastructure.gateways.local import LocalGateway

INCOME = TransactionKind.INCOME
EXPENSE = TransactionKind.EXPENSE


def _draft(**overrides) -> TransactionDraft:
    fields = dict(
        description="Groceries",
        amount=Decimal("50.00"),
        kind=EXPENSE,
        category="food",
        date=date(2024, 1, 10),
    )
    fields.update(overrides)
    return TransactionDraft(**fields)


class FlakyGateway(LocalGateway):
    """Local gateway that fails the named operations"""

    def __init__(self, storage, authenticator, fail_on=()):
        super().__init__(storage, authenticator)
        self.fail_on = set(fail_on)

    def _maybe_fail(self, operation):
        if operation in self.fail_on:
            raise RemoteError(f"{operation} failed")

    def insert_account(self, account):
        self._maybe_fail("insert_account")
        return super().insert_account(account)

    def insert_installments(self, installments):
        self._maybe_fail("insert_installments")
        return super().insert_installments(installments)

    def update_card(self, card):
        self._maybe_fail("update_card")
        return super().update_card(card)


@pytest.fixture
def flaky_gateway(local_gateway: LocalGateway) -> FlakyGateway:
    return FlakyGateway(local_gateway._storage, local_gateway._authenticator)


@pytest.fixture
def flaky_store(flaky_gateway: FlakyGateway) -> LedgerStore:
    ledger = LedgerStore(flaky_gateway)
    ledger.sign_in("ana@example.com", "correct horse battery staple")
    return ledger


# Accounts and balances


def test_checking_account_example(store: LedgerStore):
    """Checking 1000 + income 500 - expense 200 = 1300"""
    checking = store.add_account("Checking", Decimal("1000.00"))
    store.add_transaction(_draft(description="Salary", amount=Decimal("500.00"), kind=INCOME,
                                 category="salary", date=date(2024, 1, 5), account_id=checking.id))
    store.add_transaction(_draft(description="Market", amount=Decimal("200.00"),
                                 date=date(2024, 1, 10), account_id=checking.id))

    assert store.account_balance(checking.id) == Decimal("1300.00")

    summary = store.summary(AccountFilter.all_accounts())
    assert summary.total_income == Decimal("500.00")
    assert summary.total_expense == Decimal("200.00")
    assert summary.final_balance == Decimal("1300.00")


def test_add_account_requires_name(store: LedgerStore):
    with pytest.raises(ValidationError):
        store.add_account("   ", 10)
    assert store.accounts == []


def test_update_account(store: LedgerStore):
    account = store.add_account("Checking", "100")

    updated = store.update_account(account.id, "Main checking", "150.50")

    assert updated.name == "Main checking"
    assert store.get_account(account.id).initial_balance == Decimal("150.50")


def test_update_unknown_account(store: LedgerStore):
    with pytest.raises(NotFoundError):
        store.update_account("missing", "Name", 0)


def test_remove_account_cascades_to_transactions(store: LedgerStore):
    checking = store.add_account("Checking", 0)
    savings = store.add_account("Savings", 0)
    store.add_transaction(_draft(account_id=checking.id))
    store.add_transaction(_draft(account_id=checking.id, kind=INCOME))
    kept = store.add_transaction(_draft(account_id=savings.id))

    store.remove_account(checking.id)

    assert [a.id for a in store.accounts] == [savings.id]
    assert all(t.account_id != checking.id for t in store.transactions)
    assert [t.id for t in store.transactions] == [kept.id]
    assert store.account_balance(checking.id) == 0


# Cards and installments


def test_card_installment_example(store: LedgerStore):
    """Visa: 300 in 3 installments from 2024-01-15"""
    visa = store.add_card("Visa", Decimal("1000.00"))
    txn = store.add_transaction(_draft(description="TV", amount=Decimal("300.00"), category="home",
                                       date=date(2024, 1, 15), card_id=visa.id, installments=3))

    installments = store.installments_for_card(visa.id)
    assert [i.amount for i in installments] == [Decimal("100.00")] * 3
    assert [i.due_date for i in installments] == [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15)]
    assert [i.number for i in installments] == [1, 2, 3]
    assert all(i.transaction_id == txn.id and not i.paid for i in installments)
    assert store.get_card(visa.id).current_balance == Decimal("300.00")


def test_card_expense_reserves_full_amount_once(store: LedgerStore):
    visa = store.add_card("Visa", 1000)
    store.add_transaction(_draft(amount=Decimal("120.00"), card_id=visa.id))
    store.add_transaction(_draft(amount=Decimal("100.00"), card_id=visa.id, installments=4))

    assert store.get_card(visa.id).current_balance == Decimal("220.00")
    assert len(store.installments_for_card(visa.id)) == 4


def test_card_income_does_not_change_balance(store: LedgerStore):
    visa = store.add_card("Visa", 1000)
    store.add_transaction(_draft(kind=INCOME, category="refund", card_id=visa.id))

    assert store.get_card(visa.id).current_balance == Decimal("0.00")


def test_card_defaults_and_day_validation(store: LedgerStore):
    visa = store.add_card("Visa", "500")
    assert (visa.due_day, visa.closing_day) == (15, 1)

    with pytest.raises(ValidationError):
        store.add_card("Master", 500, due_day=32)
    with pytest.raises(ValidationError):
        store.add_card("Master", -1)


def test_update_card_keeps_balance(store: LedgerStore):
    visa = store.add_card("Visa", 1000)
    store.add_transaction(_draft(amount=Decimal("80.00"), card_id=visa.id))

    updated = store.update_card(visa.id, "Visa Gold", 2000, due_day=10)

    assert updated.name == "Visa Gold"
    assert updated.credit_limit == Decimal("2000.00")
    assert updated.current_balance == Decimal("80.00")
    assert updated.closing_day == 1


def test_remove_card_cascades(store: LedgerStore):
    visa = store.add_card("Visa", 1000)
    cash = store.add_transaction(_draft())
    store.add_transaction(_draft(card_id=visa.id, installments=2))

    store.remove_card(visa.id)

    assert store.cards == []
    assert [t.id for t in store.transactions] == [cash.id]
    assert store.installments == []


def test_remove_transaction_keeps_installments_unlinked(store: LedgerStore):
    visa = store.add_card("Visa", 1000)
    txn = store.add_transaction(_draft(amount=Decimal("90.00"), card_id=visa.id, installments=3))

    store.remove_transaction(txn.id)

    assert store.transactions == []
    assert len(store.installments) == 3
    assert all(i.transaction_id is None for i in store.installments)
    assert store.get_card(visa.id).current_balance == Decimal("90.00")


def test_set_installment_paid(store: LedgerStore):
    visa = store.add_card("Visa", 1000)
    store.add_transaction(_draft(card_id=visa.id, installments=2))
    first = store.installments[0]

    paid = store.set_installment_paid(first.id)

    assert paid.paid is True
    assert store.get_installment(first.id).paid is True
    assert store.set_installment_paid(first.id, paid=False).paid is False


# Transaction validation


@pytest.mark.parametrize(
    "overrides",
    [
        {"description": ""},
        {"amount": Decimal("0")},
        {"amount": Decimal("-5")},
        {"amount": "abc"},
        {"category": " "},
        {"date": None},
        {"kind": "transfer"},
        {"installments": 0},
        {"installments": 3},
    ],
)
def test_add_transaction_validation(store: LedgerStore, overrides):
    with pytest.raises(ValidationError):
        store.add_transaction(_draft(**overrides))
    assert store.transactions == []


def test_add_transaction_account_and_card_are_exclusive(store: LedgerStore):
    account = store.add_account("Checking", 0)
    visa = store.add_card("Visa", 1000)

    with pytest.raises(ValidationError):
        store.add_transaction(_draft(account_id=account.id, card_id=visa.id))


def test_add_transaction_unknown_card(store: LedgerStore):
    with pytest.raises(NotFoundError):
        store.add_transaction(_draft(card_id="missing"))


def test_transaction_payment_method(store: LedgerStore):
    account = store.add_account("Checking", 0)
    visa = store.add_card("Visa", 1000)

    assert store.add_transaction(_draft()).payment_method.value == "cash"
    assert store.add_transaction(_draft(account_id=account.id)).payment_method.value == "account"
    assert store.add_transaction(_draft(card_id=visa.id)).payment_method.value == "card"


def test_update_cash_transaction(store: LedgerStore):
    account = store.add_account("Checking", 0)
    txn = store.add_transaction(_draft())

    updated = store.update_transaction(txn.id, _draft(amount=Decimal("75.00"), account_id=account.id))

    assert updated.amount == Decimal("75.00")
    assert updated.account_id == account.id
    assert store.account_balance(account.id) == Decimal("-75.00")


def test_update_card_transaction_only_allows_descriptive_fields(store: LedgerStore):
    visa = store.add_card("Visa", 1000)
    txn = store.add_transaction(_draft(card_id=visa.id))

    renamed = store.update_transaction(txn.id, _draft(description="Supermarket", card_id=visa.id))
    assert renamed.description == "Supermarket"

    with pytest.raises(ValidationError):
        store.update_transaction(txn.id, _draft(amount=Decimal("10.00"), card_id=visa.id))


def test_transactions_for_sorted_by_date_descending(store: LedgerStore):
    store.add_transaction(_draft(description="old", date=date(2024, 1, 1)))
    store.add_transaction(_draft(description="new", date=date(2024, 3, 1)))
    store.add_transaction(_draft(description="mid", date=date(2024, 2, 1)))

    listed = store.transactions_for(AccountFilter.cash_only())

    assert [t.description for t in listed] == ["new", "mid", "old"]


# Session and ownership


def test_commands_require_sign_in(local_gateway: LocalGateway):
    ledger = LedgerStore(local_gateway)

    with pytest.raises(AuthorizationError):
        ledger.add_account("Checking", 0)
    with pytest.raises(AuthorizationError):
        ledger.load()


def test_sign_in_rejects_wrong_password(local_gateway: LocalGateway):
    ledger = LedgerStore(local_gateway)

    with pytest.raises(AuthError):
        ledger.sign_in("ana@example.com", "wrong")
    assert ledger.identity is None


def test_sign_in_requires_fields(local_gateway: LocalGateway):
    with pytest.raises(ValidationError):
        LedgerStore(local_gateway).sign_in("", "")


def test_data_survives_new_session(store: LedgerStore, local_gateway: LocalGateway):
    account = store.add_account("Checking", 100)
    first = store.add_transaction(_draft(account_id=account.id))
    second = store.add_transaction(_draft(account_id=account.id))

    reopened = LedgerStore(local_gateway)
    reopened.sign_in("ana@example.com", "correct horse battery staple")

    assert [a.id for a in reopened.accounts] == [account.id]
    assert [t.id for t in reopened.transactions] == [second.id, first.id]
    assert reopened.account_balance(account.id) == Decimal("0.00")


def test_restore_session_and_sign_out(store: LedgerStore, local_gateway: LocalGateway):
    store.add_account("Checking", 0)

    resumed = LedgerStore(local_gateway)
    assert resumed.restore_session().email == "ana@example.com"
    assert len(resumed.accounts) == 1

    resumed.sign_out()
    assert resumed.identity is None
    assert resumed.accounts == []
    assert LedgerStore(local_gateway).restore_session() is None


def test_users_do_not_see_each_other(store: LedgerStore, local_gateway: LocalGateway):
    store.add_account("Ana's checking", 0)

    other = LedgerStore(local_gateway)
    other.sign_in("bruno@example.com", "another password")

    assert other.accounts == []


def test_foreign_entity_is_rejected(store: LedgerStore, local_gateway: LocalGateway):
    other = LedgerStore(local_gateway)
    other.sign_in("bruno@example.com", "another password")
    foreign = other.add_account("Bruno's checking", 0)

    # A mirror that somehow holds another user's record must not act on it
    store._accounts.append(foreign)

    with pytest.raises(AuthorizationError):
        store.remove_account(foreign.id)


# Backend failures


def test_remote_failure_leaves_state_unchanged(flaky_store: LedgerStore, flaky_gateway: FlakyGateway):
    flaky_gateway.fail_on.add("insert_account")

    with pytest.raises(RemoteError):
        flaky_store.add_account("Checking", 0)
    assert flaky_store.accounts == []


@pytest.mark.parametrize("failing_step", ["insert_installments", "update_card"])
def test_failed_follow_up_rolls_back_transaction(
    flaky_store: LedgerStore, flaky_gateway: FlakyGateway, failing_step: str
):
    visa = flaky_store.add_card("Visa", 1000)
    flaky_gateway.fail_on.add(failing_step)

    with pytest.raises(RemoteError):
        flaky_store.add_transaction(_draft(amount=Decimal("90.00"), card_id=visa.id, installments=3))

    assert flaky_store.transactions == []
    assert flaky_store.installments == []
    assert flaky_store.get_card(visa.id).current_balance == Decimal("0.00")

    user_id = flaky_store.identity.user_id
    assert flaky_gateway.list_transactions(user_id) == []
    assert flaky_gateway.list_installments(user_id) == []


# Amount limits


@pytest.mark.parametrize("amount", [Decimal("1e30"), Decimal("10000000000.00"), "Infinity"])
def test_oversized_transaction_amount_is_rejected(store: LedgerStore, amount):
    with pytest.raises(ValidationError):
        store.add_transaction(_draft(amount=amount))
    assert store.transactions == []


def test_oversized_account_balance_is_rejected(store: LedgerStore):
    with pytest.raises(ValidationError):
        store.add_account("Checking", Decimal("1e30"))
    assert store.accounts == []


def test_card_balance_cannot_exceed_largest_amount(store: LedgerStore):
    visa = store.add_card("Visa", "9999999999.99")
    store.add_transaction(_draft(amount=Decimal("9999999999.00"), card_id=visa.id))

    with pytest.raises(ValidationError):
        store.add_transaction(_draft(amount=Decimal("1.00"), card_id=visa.id))
    assert store.get_card(visa.id).current_balance == Decimal("9999999999.00")
    assert len(store.transactions) == 1
