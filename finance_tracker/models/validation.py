"""
Validation Models

Results of checking the loaded record streams. Validation never changes the
records; it only reports what the ledger will coerce or ignore.
"""

import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class RecordType(str, Enum):
    ACCOUNT = "account"
    EXPENSE = "expense"
    INCOME = "income"
    TRANSFER = "transfer"
    INSTALLMENT_GROUP = "installment_group"


class ValidationIssue(BaseModel):
    """A single problem found in one record."""

    record_type: RecordType
    record_id: Optional[str] = Field(
        default=None,
        description="ID of the offending record (or installment group)"
    )
    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'unparseable', 'unknown_account', 'legacy_reference')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating a snapshot.

    `is_valid` is False only when error-level issues exist. Errors mark
    records the ledger cannot use at all; warnings mark records the ledger
    uses after coercion.
    """

    validation_id: UUID = Field(default_factory=uuid4)
    validated_at: datetime.datetime = Field(
        default_factory=datetime.datetime.utcnow
    )
    records_checked: int = Field(default=0, ge=0)
    is_valid: bool = True
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def issues_for(self, record_id: str) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.record_id == record_id]
