"""Installment schedule generation for multi-part card purchases"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Callable, List

from bank_tracker.domain.models import Installment
from bank_tracker.utils.date_utils import add_months
from bank_tracker.utils.money import from_cents, to_cents


def generate_installments(
    amount: Decimal,
    total: int,
    purchase_date: date,
    card_id: str,
    transaction_id: str,
    user_id: str,
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
) -> List[Installment]:
    """
    Split a card purchase into monthly installments.

    Requirements:
    - Installment i (1-based) is due on the purchase date advanced by i - 1
      months, clamped to the last day of the month
    - Last installment absorbs the rounding remainder (sum is exact)
    - Every installment starts unpaid

    Example:
        100.00 in 3 → [33.33, 33.33, 33.34]
        10000 cents / 3 = 3333 base, remainder 1
        Last installment: 3333 + 1 = 3334
    """
    if total < 1 or amount <= 0:
        return []

    amount_cents = to_cents(amount)
    base_amount = amount_cents // total
    remainder = amount_cents % total

    installments = []
    for i in range(total):
        cents = base_amount + (remainder if i == total - 1 else 0)
        installments.append(
            Installment(
                id=id_factory(),
                user_id=user_id,
                transaction_id=transaction_id,
                card_id=card_id,
                number=i + 1,
                total=total,
                amount=from_cents(cents),
                due_date=add_months(purchase_date, i),
                paid=False,
            )
        )

    return installments
