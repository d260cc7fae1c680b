"""
Core Record Models for the Finance Tracker

These models define the four record streams the ledger is computed from:
accounts, expenses, income and transfers.

DESIGN DECISION: Records are parsed tolerantly. Spreadsheet rows and old
exports contain blank cells, comma decimals and DD/MM/YYYY dates. Instead of
rejecting a whole row, an unreadable amount becomes zero and an unreadable
date becomes None (the record then matches no day). What was coerced is kept
in `parse_warnings` so the validator can report it.

Records accept both snake_case and the camelCase keys of the original
storage format (paymentMethod, dueDate, initialBalance, fromAccount, ...).
"""

import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Optional
from uuid import uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from finance_tracker.models.parsing import (
    ZERO,
    coerce_amount,
    describe_amount_problem,
    describe_date_problem,
    parse_amount,
    parse_date,
)


def new_record_id() -> str:
    """Generate an id for records created without one."""
    return uuid4().hex


class AccountType(str, Enum):
    """Kinds of account a user can hold."""
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"


class FinanceRecord(BaseModel):
    """
    Base for every stored record.

    Subclasses list which fields hold amounts and dates; the before-validator
    notes anything that will be coerced and drops blank cells so that field
    defaults apply.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    amount_fields: ClassVar[tuple[str, ...]] = ()
    # (field name, required)
    date_fields: ClassVar[tuple[tuple[str, bool], ...]] = ()

    id: str = Field(default_factory=new_record_id)
    parse_warnings: list[str] = Field(default_factory=list, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def collect_parse_warnings(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        warnings = list(data.get("parse_warnings") or [])

        for name in cls.amount_fields:
            raw = _lookup(data, name)
            problem = describe_amount_problem(raw)
            if problem:
                warnings.append(f"{name}: {problem} ({raw!r})")

        for name, required in cls.date_fields:
            raw = _lookup(data, name)
            problem = describe_date_problem(raw, required=required)
            if problem:
                warnings.append(f"{name}: {problem} ({raw!r})")

        cleaned = {
            key: value
            for key, value in data.items()
            if value is not None and not (isinstance(value, str) and not value.strip())
            and key not in ("parse_warnings", "parseWarnings")
        }
        cleaned["parse_warnings"] = warnings
        return cleaned

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def is_degraded(self) -> bool:
        """Was any field coerced while parsing?"""
        return bool(self.parse_warnings)


def _lookup(data: dict, name: str) -> Any:
    if name in data:
        return data[name]
    return data.get(to_camel(name))


# =============================================================================
# ACCOUNT
# =============================================================================

class Account(FinanceRecord):
    """
    A financial account owned by the user.

    Transfers reference accounts by `id`. Older expense and income records
    reference them by `name`.
    """
    name: str = ""
    type: AccountType = AccountType.CHECKING
    initial_balance: Decimal = Field(
        default=ZERO,
        validation_alias=AliasChoices("initial_balance", "initialBalance", "balance"),
        description="Opening balance; may be negative for credit accounts",
    )
    currency: Optional[str] = None

    @field_validator("initial_balance", mode="before")
    @classmethod
    def signed_balance(cls, v: Any) -> Decimal:
        parsed = parse_amount(v)
        return parsed if parsed is not None else ZERO

    @field_validator("type", mode="before")
    @classmethod
    def known_type(cls, v: Any) -> Any:
        if isinstance(v, str) and v.lower() in {t.value for t in AccountType}:
            return v.lower()
        if isinstance(v, AccountType):
            return v
        return AccountType.CHECKING


# =============================================================================
# TRANSACTION STREAMS
# =============================================================================

class Expense(FinanceRecord):
    """
    Money leaving an account.

    Installment purchases are stored as N sibling expenses sharing
    `installment_group`, each with its own `due_date`.
    """
    amount_fields: ClassVar[tuple[str, ...]] = ("amount",)
    date_fields: ClassVar[tuple[tuple[str, bool], ...]] = (
        ("date", True),
        ("due_date", False),
    )

    date: Optional[datetime.date] = None
    due_date: Optional[datetime.date] = None
    amount: Decimal = Field(default=ZERO, ge=0)
    category: str = ""
    description: str = ""
    location: Optional[str] = None

    # Legacy name-based reference; `account_id` is preferred when present
    payment_method: Optional[str] = None
    account_id: Optional[str] = None

    is_installment: Optional[bool] = None
    installment_number: Optional[int] = Field(default=None, ge=1)
    total_installments: Optional[int] = Field(default=None, ge=1)
    installment_group: Optional[str] = None
    is_credit_card: Optional[bool] = None
    paid: Optional[bool] = None
    # A due date was entered but cannot be read; the expense then matches no day
    due_date_unreadable: bool = False

    @model_validator(mode="before")
    @classmethod
    def flag_unreadable_due_date(cls, data: Any) -> Any:
        if isinstance(data, dict) and describe_date_problem(
            _lookup(data, "due_date"), required=False
        ) == "unparseable":
            data = {**data, "due_date_unreadable": True}
        return data

    @field_validator("date", "due_date", mode="before")
    @classmethod
    def tolerant_dates(cls, v: Any) -> Optional[datetime.date]:
        return parse_date(v)

    @field_validator("amount", mode="before")
    @classmethod
    def magnitude(cls, v: Any) -> Decimal:
        return coerce_amount(v)

    @property
    def effective_date(self) -> Optional[datetime.date]:
        """The date the expense hits the ledger: due date, else purchase date."""
        if self.due_date_unreadable:
            return None
        return self.due_date or self.date

    @property
    def is_paid(self) -> bool:
        return bool(self.paid)


class Income(FinanceRecord):
    """Money entering an account. Single-dated, no installments."""
    amount_fields: ClassVar[tuple[str, ...]] = ("amount",)
    date_fields: ClassVar[tuple[tuple[str, bool], ...]] = (("date", True),)

    date: Optional[datetime.date] = None
    amount: Decimal = Field(default=ZERO, ge=0)
    source: str = ""
    notes: Optional[str] = None
    location: Optional[str] = None

    # Legacy name-based reference; `account_id` is preferred when present
    account: Optional[str] = None
    account_id: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def tolerant_dates(cls, v: Any) -> Optional[datetime.date]:
        return parse_date(v)

    @field_validator("amount", mode="before")
    @classmethod
    def magnitude(cls, v: Any) -> Decimal:
        return coerce_amount(v)


class Transfer(FinanceRecord):
    """
    Money moved between two of the user's accounts.

    CRITICAL: `from_account` and `to_account` hold account IDS, never names.
    """
    amount_fields: ClassVar[tuple[str, ...]] = ("amount",)
    date_fields: ClassVar[tuple[tuple[str, bool], ...]] = (("date", True),)

    date: Optional[datetime.date] = None
    amount: Decimal = Field(default=ZERO, ge=0)
    from_account: Optional[str] = None
    to_account: Optional[str] = None
    description: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def tolerant_dates(cls, v: Any) -> Optional[datetime.date]:
        return parse_date(v)

    @field_validator("amount", mode="before")
    @classmethod
    def magnitude(cls, v: Any) -> Decimal:
        return coerce_amount(v)

    @field_validator("from_account", "to_account", mode="before")
    @classmethod
    def account_id_as_string(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def is_self_transfer(self) -> bool:
        return self.from_account is not None and self.from_account == self.to_account
