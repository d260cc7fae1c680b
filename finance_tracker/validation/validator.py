"""
Record Validation

DESIGN DECISION: The ledger never rejects a record. Amounts it cannot read
count as zero, dates it cannot read match no day, and references it cannot
resolve land in no account column. That keeps the ledger available, but it
means problems are invisible in the ledger itself.

This validator makes them visible. It checks the loaded snapshot in two
passes:

PASS 1 - RECORD CHECKS:
- Missing or unparseable dates and amounts
- Negative amounts (stored as their magnitude)
- Due date before purchase date

PASS 2 - CROSS-RECORD CHECKS:
- References to unknown accounts
- Legacy name-only references
- Self-transfers
- Duplicate account names and ids
- Installment groups with missing members or inconsistent totals

IMPORTANT: Validation NEVER changes the records.
It reports issues for the user to fix at the source.
"""

from collections import defaultdict
from typing import Optional, Union

from finance_tracker.ledger.resolver import AccountResolver, ResolutionMethod
from finance_tracker.models.ledger import FinanceSnapshot
from finance_tracker.models.records import (
    Account,
    Expense,
    FinanceRecord,
    Income,
    Transfer,
)
from finance_tracker.models.validation import (
    RecordType,
    ValidationIssue,
    ValidationResult,
)

DATE_FIELDS = {"date", "due_date"}


def _record_type(record: FinanceRecord) -> RecordType:
    if isinstance(record, Account):
        return RecordType.ACCOUNT
    if isinstance(record, Expense):
        return RecordType.EXPENSE
    if isinstance(record, Income):
        return RecordType.INCOME
    return RecordType.TRANSFER


def _split_warning(warning: str) -> tuple[str, str]:
    """'amount: unparseable (...)' -> ('amount', 'unparseable')"""
    field, _, rest = warning.partition(": ")
    problem = rest.split(" ", 1)[0] if rest else "unparseable"
    return field, problem


class RecordValidator:
    """
    Validates a FinanceSnapshot.

    Errors mark records the ledger cannot place at all.
    Warnings mark records the ledger uses after coercion.
    Info marks records that work but should be updated.
    """

    def _parse_issues(self, record: FinanceRecord) -> list[ValidationIssue]:
        """Pass 1: problems noted while the record was parsed."""
        issues = []
        record_type = _record_type(record)

        for warning in record.parse_warnings:
            field, problem = _split_warning(warning)

            if field in DATE_FIELDS:
                # a bad due date is not replaced by the purchase date
                issues.append(ValidationIssue(
                    record_type=record_type,
                    record_id=record.id,
                    field=field,
                    issue_type=problem,
                    message=f"{record_type.value.capitalize()} has a {problem} "
                            f"{field.replace('_', ' ')}; it will not appear on any day",
                    severity="error",
                    suggested_fix="Enter the date as YYYY-MM-DD or DD/MM/YYYY",
                ))
            elif problem == "negative":
                issues.append(ValidationIssue(
                    record_type=record_type,
                    record_id=record.id,
                    field=field,
                    issue_type="negative",
                    message=f"{record_type.value.capitalize()} amount is negative; its magnitude is used",
                    severity="warning",
                    suggested_fix="Store amounts as positive numbers",
                ))
            else:
                issues.append(ValidationIssue(
                    record_type=record_type,
                    record_id=record.id,
                    field=field,
                    issue_type=problem,
                    message=f"{record_type.value.capitalize()} amount is {problem}; it counts as zero",
                    severity="warning",
                    suggested_fix="Enter the amount as a number, e.g. 12.50",
                ))

        if isinstance(record, Expense):
            if record.date and record.due_date and record.due_date < record.date:
                issues.append(ValidationIssue(
                    record_type=record_type,
                    record_id=record.id,
                    field="due_date",
                    issue_type="due_before_purchase",
                    message=f"Due date {record.due_date} is before purchase date {record.date}",
                    severity="warning",
                    suggested_fix="Check whether the dates were swapped",
                ))

        return issues

    def _account_issues(self, accounts: list[Account]) -> list[ValidationIssue]:
        issues = []
        by_id: dict[str, int] = defaultdict(int)
        by_name: dict[str, list[Account]] = defaultdict(list)

        for account in accounts:
            by_id[account.id] += 1
            by_name[account.name].append(account)

        for account_id, count in by_id.items():
            if count > 1:
                issues.append(ValidationIssue(
                    record_type=RecordType.ACCOUNT,
                    record_id=account_id,
                    field="id",
                    issue_type="duplicate_id",
                    message=f"{count} accounts share the id {account_id}; only the first is shown",
                    severity="error",
                    suggested_fix="Give every account its own id",
                ))

        for name, same_name in by_name.items():
            if len(same_name) > 1:
                first = same_name[0]
                for duplicate in same_name[1:]:
                    issues.append(ValidationIssue(
                        record_type=RecordType.ACCOUNT,
                        record_id=duplicate.id,
                        field="name",
                        issue_type="duplicate_name",
                        message=(
                            f"Account name '{name}' is also used by account {first.id}; "
                            "records that reference it by name go to that account"
                        ),
                        severity="warning",
                        suggested_fix="Rename one of the accounts",
                    ))
        return issues

    def _reference_issue(
        self,
        record: Union[Expense, Income],
        resolver: AccountResolver,
    ) -> Optional[ValidationIssue]:
        record_type = _record_type(record)
        legacy_field = "payment_method" if isinstance(record, Expense) else "account"
        account_id, method = resolver.resolve_with_method(record)

        if method == ResolutionMethod.UNRESOLVED:
            reference = record.account_id or AccountResolver.legacy_reference(record)
            return ValidationIssue(
                record_type=record_type,
                record_id=record.id,
                field="account_id" if record.account_id else legacy_field,
                issue_type="unknown_account" if reference else "missing_account",
                message=(
                    f"{record_type.value.capitalize()} references unknown account '{reference}'"
                    if reference
                    else f"{record_type.value.capitalize()} has no account"
                ),
                severity="error",
                suggested_fix="Pick one of your existing accounts",
            )

        if method == ResolutionMethod.LEGACY_NAME:
            return ValidationIssue(
                record_type=record_type,
                record_id=record.id,
                field=legacy_field,
                issue_type="legacy_reference",
                message=f"{record_type.value.capitalize()} references its account by name",
                severity="info",
                suggested_fix=f"Set account_id to {account_id}",
            )

        return None

    def _transfer_issues(
        self,
        transfer: Transfer,
        resolver: AccountResolver,
    ) -> list[ValidationIssue]:
        issues = []
        for field in ("from_account", "to_account"):
            value = getattr(transfer, field)
            if not resolver.knows(value):
                issues.append(ValidationIssue(
                    record_type=RecordType.TRANSFER,
                    record_id=transfer.id,
                    field=field,
                    issue_type="unknown_account" if value else "missing_account",
                    message=(
                        f"Transfer references unknown account id '{value}'"
                        if value
                        else f"Transfer has no {field.replace('_', ' ')}"
                    ),
                    severity="error",
                    suggested_fix="Transfers must reference account ids, not names",
                ))

        if transfer.is_self_transfer:
            issues.append(ValidationIssue(
                record_type=RecordType.TRANSFER,
                record_id=transfer.id,
                field="to_account",
                issue_type="self_transfer",
                message="Transfer moves money from an account to itself",
                severity="warning",
                suggested_fix="Delete the transfer or pick a different destination",
            ))
        return issues

    def _installment_issues(self, expenses: list[Expense]) -> list[ValidationIssue]:
        groups: dict[str, list[Expense]] = defaultdict(list)
        for expense in expenses:
            if expense.installment_group:
                groups[expense.installment_group].append(expense)

        issues = []
        for group, members in groups.items():
            totals = {m.total_installments for m in members if m.total_installments}
            if len(totals) > 1:
                issues.append(ValidationIssue(
                    record_type=RecordType.INSTALLMENT_GROUP,
                    record_id=group,
                    field="total_installments",
                    issue_type="inconsistent_total",
                    message=f"Installments of group {group} disagree on the number of installments",
                    severity="warning",
                    suggested_fix="Make every installment state the same total",
                ))
                continue

            expected = totals.pop() if totals else None
            numbers = sorted(m.installment_number for m in members if m.installment_number)
            if expected is None:
                continue

            missing = sorted(set(range(1, expected + 1)) - set(numbers))
            repeated = sorted({n for n in numbers if numbers.count(n) > 1})
            if missing:
                issues.append(ValidationIssue(
                    record_type=RecordType.INSTALLMENT_GROUP,
                    record_id=group,
                    field="installment_number",
                    issue_type="missing_installments",
                    message=(
                        f"Group {group} has {len(members)} of {expected} installments; "
                        f"missing {', '.join(str(n) for n in missing)}"
                    ),
                    severity="warning",
                    suggested_fix="Re-create the missing installments",
                ))
            if repeated:
                issues.append(ValidationIssue(
                    record_type=RecordType.INSTALLMENT_GROUP,
                    record_id=group,
                    field="installment_number",
                    issue_type="duplicate_installments",
                    message=f"Group {group} repeats installment {', '.join(str(n) for n in repeated)}",
                    severity="warning",
                    suggested_fix="Delete the duplicated installments",
                ))
        return issues

    def validate(self, snapshot: FinanceSnapshot) -> ValidationResult:
        """
        Run both passes over the snapshot.

        Returns:
            ValidationResult with all issues found
        """
        all_issues: list[ValidationIssue] = []

        # Pass 1: record checks
        for record in [
            *snapshot.accounts,
            *snapshot.expenses,
            *snapshot.income,
            *snapshot.transfers,
        ]:
            all_issues.extend(self._parse_issues(record))

        # Pass 2: cross-record checks
        resolver = AccountResolver(snapshot.accounts)
        all_issues.extend(self._account_issues(snapshot.accounts))

        for record in [*snapshot.expenses, *snapshot.income]:
            issue = self._reference_issue(record, resolver)
            if issue is not None:
                all_issues.append(issue)

        for transfer in snapshot.transfers:
            all_issues.extend(self._transfer_issues(transfer, resolver))

        all_issues.extend(self._installment_issues(snapshot.expenses))

        warnings = [i.message for i in all_issues if i.severity == "warning"]

        return ValidationResult(
            records_checked=snapshot.record_count,
            is_valid=not any(i.severity == "error" for i in all_issues),
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what the ledger page shows above the table.
        """
        if result.is_valid and not result.warnings:
            return "✅ All records check out."

        lines = []

        if result.has_errors:
            lines.append("❌ Some records cannot be placed in the ledger:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Some records were adjusted to fit the ledger:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
