"""
Installment plan builder.

An installment purchase is stored as N ordinary expenses sharing one
`installment_group`. Each installment falls due one calendar month after
the previous one, keeping the purchase's day of month where it exists.
The ledger never expands installments itself; it only sees these records.
"""

import datetime
from decimal import ROUND_DOWN, Decimal
from typing import Optional, Sequence

from finance_tracker.ledger.dates import add_months
from finance_tracker.models.parsing import parse_amount
from finance_tracker.models.records import Expense, new_record_id

CENT = Decimal("0.01")


def split_amount(total_amount: Decimal, parts: int) -> list[Decimal]:
    """
    Split into `parts` cent-rounded shares that add up to the total.

    The last share absorbs the rounding remainder.
    """
    share = (total_amount / parts).quantize(CENT, rounding=ROUND_DOWN)
    shares = [share] * parts
    shares[-1] = total_amount - share * (parts - 1)
    return shares


def build_installment_plan(
    base_date: datetime.date,
    total_amount,
    total_installments: int,
    category: str,
    payment_method: Optional[str] = None,
    account_id: Optional[str] = None,
    description: str = "",
    location: Optional[str] = None,
    is_credit_card: bool = False,
    due_dates: Optional[Sequence[datetime.date]] = None,
    installment_group: Optional[str] = None,
) -> list[Expense]:
    """
    Materialize an installment purchase as sibling expense records.

    Args:
        base_date: Date of the purchase; the first installment falls due on it
        total_amount: Full purchase amount, split across installments
        total_installments: Number of installments (at least 1)
        due_dates: Optional per-installment due dates overriding the
            monthly schedule (missing entries fall back to it)

    Raises:
        ValueError: If the count is below 1 or the amount is not positive
    """
    if total_installments < 1:
        raise ValueError("total_installments must be at least 1")

    amount = parse_amount(total_amount)
    if amount is None or amount <= 0:
        raise ValueError(f"Invalid installment total: {total_amount!r}")

    group = installment_group or new_record_id()
    overrides = list(due_dates or [])
    shares = split_amount(amount, total_installments)

    plan = []
    for index, share in enumerate(shares):
        if index < len(overrides) and overrides[index] is not None:
            due = overrides[index]
        else:
            due = add_months(base_date, index)
        plan.append(
            Expense(
                date=due,
                due_date=due,
                amount=share,
                category=category,
                description=description,
                location=location,
                payment_method=payment_method,
                account_id=account_id,
                is_installment=True,
                installment_number=index + 1,
                total_installments=total_installments,
                installment_group=group,
                is_credit_card=is_credit_card,
                paid=False,
            )
        )
    return plan
