"""
Expense and income list models.

Filters are set on the list pages; every field is optional and an unset
field matches everything.
"""

import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from finance_tracker.models.parsing import ZERO
from finance_tracker.models.records import Expense, Income


class ExpenseFilters(BaseModel):
    """
    Expense list filters.

    `account` is an account id; `description` and `location` are
    case-insensitive substrings. The date bounds apply to the effective
    date (due date, else purchase date).
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    category: Optional[str] = None
    account: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    installment_group: Optional[str] = None


class IncomeFilters(BaseModel):
    """Income list filters. `description` searches the notes."""

    model_config = ConfigDict(str_strip_whitespace=True)

    source: Optional[str] = None
    account: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None


class ExpenseGroup(BaseModel):
    """
    One row of the expense list.

    Installments sharing a group are shown together; any other expense is
    a group of one keyed by its own id.
    """

    key: str
    is_installment_group: bool = False
    expenses: list[Expense] = Field(default_factory=list)

    @property
    def total_amount(self) -> Decimal:
        return sum((e.amount for e in self.expenses), ZERO)

    @property
    def paid_count(self) -> int:
        return sum(1 for e in self.expenses if e.is_paid)

    @property
    def next_due(self) -> Optional[Expense]:
        """The earliest unpaid installment with a readable date."""
        unpaid = [e for e in self.expenses if not e.is_paid and e.effective_date]
        return min(unpaid, key=lambda e: e.effective_date, default=None)


class ExpenseListing(BaseModel):
    expenses: list[Expense] = Field(default_factory=list)
    groups: list[ExpenseGroup] = Field(default_factory=list)

    @property
    def total_amount(self) -> Decimal:
        return sum((e.amount for e in self.expenses), ZERO)


class IncomeListing(BaseModel):
    income: list[Income] = Field(default_factory=list)

    @property
    def total_amount(self) -> Decimal:
        return sum((i.amount for i in self.income), ZERO)
