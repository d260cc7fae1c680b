"""
Main Orchestrator for the Finance Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Daily ledger (load → fingerprint → recompute or reuse → order columns)
2. Record validation report
3. Dashboard figures
4. Writes (single records, installment plans, deletions)

DESIGN DECISION: The orchestrator is the only layer that does I/O.
The ledger engine, validator and dashboard stay pure functions of the
snapshot they are handed. The orchestrator enforces:
- The ledger page never crashes; failures yield an empty ledger
- Every recompute, cache hit, write and failure is audited
- Writes invalidate the cached ledger
"""

import datetime
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

import structlog

from finance_tracker.audit import AuditLogger, create_correlation_id
from finance_tracker.config import get_settings
from finance_tracker.ledger.service import DailySummaryService
from finance_tracker.models.dashboard import DashboardSummary
from finance_tracker.models.ledger import (
    AccountSortKey,
    FinanceSnapshot,
    LedgerFilters,
    LedgerView,
    SortDirection,
)
from finance_tracker.models.listing import (
    ExpenseFilters,
    ExpenseListing,
    IncomeFilters,
    IncomeListing,
)
from finance_tracker.models.records import (
    Account,
    AccountType,
    Expense,
    Income,
    Transfer,
)
from finance_tracker.models.validation import ValidationResult
from finance_tracker.queries import DashboardCalculator, list_expenses, list_income
from finance_tracker.services.installments import build_installment_plan
from finance_tracker.services.storage import (
    FinanceRepositoryInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsFinanceRepository,
    InMemoryAuditStorage,
    InMemoryFinanceRepository,
    StorageError,
)
from finance_tracker.validation import RecordValidator

logger = structlog.get_logger(__name__)

FinanceRecordType = Union[Account, Expense, Income, Transfer]


class LedgerFlow:
    """
    Orchestrates everything the ledger page does.

    Flow for the ledger:
    1. Load → read the four streams from the repository
    2. Fingerprint → hash the snapshot plus the filters
    3. Compute → reuse the cached view or recompute it
    4. Audit → record recompute, cache hit or failure
    """

    def __init__(
        self,
        repository: FinanceRepositoryInterface,
        audit_logger: Optional[AuditLogger] = None,
        service: Optional[DailySummaryService] = None,
        validator: Optional[RecordValidator] = None,
    ):
        settings = get_settings().ledger
        self._repository = repository
        self._audit_logger = audit_logger
        self._service = service or DailySummaryService(
            max_days=settings.max_range_days,
            strict=True,
        )
        self._validator = validator or RecordValidator()
        self._settings = settings

    @property
    def repository(self) -> FinanceRepositoryInterface:
        return self._repository

    @property
    def service(self) -> DailySummaryService:
        return self._service

    def default_filters(self, today: Optional[datetime.date] = None) -> LedgerFilters:
        """Filters used when the page opens."""
        return LedgerFilters.last_days(
            self._settings.default_range_days,
            today=today,
            sort_by=AccountSortKey(self._settings.default_sort_by),
            sort_direction=SortDirection(self._settings.default_sort_direction),
        )

    async def load_snapshot(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> FinanceSnapshot:
        """
        Load all four streams.

        Raises:
            StorageError: If the repository cannot be read
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            snapshot = await self._repository.load_snapshot()
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="load_snapshot",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_records_loaded(
                accounts=len(snapshot.accounts),
                expenses=len(snapshot.expenses),
                income=len(snapshot.income),
                transfers=len(snapshot.transfers),
                correlation_id=correlation_id,
            )
        return snapshot

    async def daily_ledger(
        self,
        filters: Optional[LedgerFilters] = None,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerView:
        """
        Compute (or reuse) the ledger for the given filters.

        Never raises. Storage or computation failures are audited and an
        empty view is returned.
        """
        correlation_id = correlation_id or create_correlation_id()
        filters = filters or self.default_filters()

        try:
            snapshot = await self.load_snapshot(correlation_id)
        except StorageError:
            return LedgerView(filters=filters)

        try:
            view = self._service.get_view(snapshot, filters)
        except Exception as e:
            logger.error(
                "ledger_flow_failed",
                error=str(e),
                error_type=type(e).__name__,
                correlation_id=str(correlation_id),
            )
            self._service.invalidate()
            if self._audit_logger:
                await self._audit_logger.log_ledger_failed(
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return LedgerView(filters=filters)

        if self._audit_logger:
            if self._service.last_was_cache_hit:
                await self._audit_logger.log_ledger_cache_hit(
                    fingerprint=view.fingerprint or "",
                    correlation_id=correlation_id,
                )
            else:
                await self._audit_logger.log_ledger_recomputed(
                    fingerprint=view.fingerprint or "",
                    day_count=view.day_count,
                    account_count=len(snapshot.accounts),
                    correlation_id=correlation_id,
                )
        return view

    async def record_validation(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """Validation report for the stored records."""
        correlation_id = correlation_id or create_correlation_id()
        snapshot = await self.load_snapshot(correlation_id)
        result = self._validator.validate(snapshot)

        if self._audit_logger:
            await self._audit_logger.log_validation_completed(
                records_checked=result.records_checked,
                error_count=result.error_count,
                issue_count=len(result.issues),
                correlation_id=correlation_id,
            )
        return result

    def get_validation_summary(self, result: ValidationResult) -> str:
        return self._validator.get_user_friendly_summary(result)

    async def dashboard(
        self,
        today: Optional[datetime.date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> DashboardSummary:
        """Headline figures for the current month."""
        snapshot = await self.load_snapshot(correlation_id)
        return DashboardCalculator(today).calculate(snapshot.expenses, snapshot.income)

    async def save_record(
        self,
        record: FinanceRecordType,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Insert or replace a single record.

        Raises:
            StorageError: If the write fails
        """
        correlation_id = correlation_id or create_correlation_id()

        if isinstance(record, Account):
            record_type, save = "account", self._repository.save_account
        elif isinstance(record, Expense):
            record_type, save = "expense", self._repository.save_expense
        elif isinstance(record, Income):
            record_type, save = "income", self._repository.save_income
        elif isinstance(record, Transfer):
            record_type, save = "transfer", self._repository.save_transfer
        else:
            raise TypeError(f"Unsupported record: {type(record).__name__}")

        try:
            saved = await save(record)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation=f"save_{record_type}",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        self._service.invalidate()
        if self._audit_logger:
            amount = getattr(record, "amount", None)
            await self._audit_logger.log_record_saved(
                record_type=record_type,
                record_id=record.id,
                amount=str(amount) if amount is not None else None,
                correlation_id=correlation_id,
            )
        return saved

    async def delete_expense(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete an expense.

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            deleted = await self._repository.delete_expense(expense_id)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="delete_expense",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        self._service.invalidate()
        if self._audit_logger:
            await self._audit_logger.log_expense_deleted(
                expense_id=expense_id,
                correlation_id=correlation_id,
            )
        return deleted

    async def delete_installment_group(
        self,
        installment_group: str,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """
        Delete every installment of a purchase.

        Raises:
            NotFoundError: If no expense belongs to the group
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            deleted = await self._repository.delete_installment_group(installment_group)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="delete_installment_group",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        self._service.invalidate()
        if self._audit_logger:
            await self._audit_logger.log_installment_group_deleted(
                installment_group=installment_group,
                deleted_count=deleted,
                correlation_id=correlation_id,
            )
        return deleted

    async def delete_income(
        self,
        income_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete an income record.

        Raises:
            NotFoundError: If the income doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            deleted = await self._repository.delete_income(income_id)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="delete_income",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        self._service.invalidate()
        if self._audit_logger:
            await self._audit_logger.log_income_deleted(
                income_id=income_id,
                correlation_id=correlation_id,
            )
        return deleted

    async def expense_list(
        self,
        filters: Optional[ExpenseFilters] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ExpenseListing:
        """Filtered expenses with installments grouped by purchase."""
        snapshot = await self.load_snapshot(correlation_id)
        return list_expenses(snapshot.expenses, filters, snapshot.accounts)

    async def income_list(
        self,
        filters: Optional[IncomeFilters] = None,
        correlation_id: Optional[UUID] = None,
    ) -> IncomeListing:
        snapshot = await self.load_snapshot(correlation_id)
        return list_income(snapshot.income, filters, snapshot.accounts)

    async def add_installment_expense(
        self,
        base_date: datetime.date,
        total_amount: Union[Decimal, str, int, float],
        total_installments: int,
        category: str,
        payment_method: Optional[str] = None,
        account_id: Optional[str] = None,
        description: str = "",
        location: Optional[str] = None,
        is_credit_card: bool = False,
        correlation_id: Optional[UUID] = None,
    ) -> list[Expense]:
        """
        Build an installment plan and store every installment.

        Raises:
            ValueError: If the plan parameters are invalid
            StorageError: If the write fails
        """
        correlation_id = correlation_id or create_correlation_id()
        plan = build_installment_plan(
            base_date=base_date,
            total_amount=total_amount,
            total_installments=total_installments,
            category=category,
            payment_method=payment_method,
            account_id=account_id,
            description=description,
            location=location,
            is_credit_card=is_credit_card,
        )

        try:
            await self._repository.save_expenses(plan)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="save_installment_plan",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        self._service.invalidate()
        if self._audit_logger:
            await self._audit_logger.log_installment_plan_created(
                installment_group=plan[0].installment_group,
                total_installments=total_installments,
                total_amount=str(sum(e.amount for e in plan)),
                correlation_id=correlation_id,
            )
        return plan


def build_demo_repository(today: Optional[datetime.date] = None) -> InMemoryFinanceRepository:
    """
    A small in-memory data set for trying the ledger without a spreadsheet.

    Dates are relative to `today` so the default range always shows activity.
    """
    today = today or datetime.date.today()

    def days_ago(n: int) -> datetime.date:
        return today - datetime.timedelta(days=n)

    accounts = [
        Account(id="checking", name="Checking", initial_balance=Decimal("1000")),
        Account(
            id="savings",
            name="Savings",
            type=AccountType.SAVINGS,
            initial_balance=Decimal("5000"),
        ),
        Account(
            id="card",
            name="Credit Card",
            type=AccountType.CREDIT,
            initial_balance=Decimal("0"),
        ),
    ]
    expenses = [
        Expense(date=days_ago(20), amount=Decimal("85.40"), category="Groceries",
                account_id="checking", paid=True),
        Expense(date=days_ago(12), amount=Decimal("1200"), category="Rent",
                payment_method="Checking", paid=True),
        Expense(date=days_ago(3), amount=Decimal("42.90"), category="Restaurants",
                account_id="card"),
    ]
    expenses.extend(
        build_installment_plan(
            base_date=days_ago(40),
            total_amount=Decimal("600"),
            total_installments=3,
            category="Electronics",
            account_id="card",
            description="Headphones",
            is_credit_card=True,
        )
    )
    income = [
        Income(date=days_ago(15), amount=Decimal("3200"), source="Salary", account_id="checking"),
        Income(date=days_ago(1), amount=Decimal("150"), source="Freelance", account="Savings"),
    ]
    transfers = [
        Transfer(date=days_ago(10), amount=Decimal("500"), from_account="checking",
                 to_account="savings", description="Monthly savings"),
        Transfer(date=days_ago(2), amount=Decimal("200"), from_account="checking",
                 to_account="card", description="Card payment"),
    ]
    return InMemoryFinanceRepository(
        accounts=accounts,
        expenses=expenses,
        income=income,
        transfers=transfers,
    )


def create_app_components(
    use_storage: bool = True,
) -> tuple[LedgerFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run fully in memory.

    Returns:
        (ledger_flow, sheets_client)
    """
    settings = get_settings()
    sheets_client = None
    repository: FinanceRepositoryInterface

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            repository = GoogleSheetsFinanceRepository(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            use_storage = False

    if not use_storage:
        if settings.app.use_demo_data:
            repository = build_demo_repository()
        else:
            repository = InMemoryFinanceRepository()
        audit_logger = AuditLogger(InMemoryAuditStorage())

    ledger_flow = LedgerFlow(
        repository=repository,
        audit_logger=audit_logger,
    )
    return ledger_flow, sheets_client
