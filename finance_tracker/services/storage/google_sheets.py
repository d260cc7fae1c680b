"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the storage backend because:
1. Users can view and fix their data directly in Sheets
2. No database setup required
3. Easy to export/migrate later

Each stream lives in its own worksheet whose header row holds the record
keys in the original camelCase format (paymentMethod, dueDate, ...).
Rows are parsed through the tolerant record models, so blank or malformed
cells degrade to zero/no-date instead of failing the whole sheet.
"""

import json
from datetime import datetime
from typing import Optional, Type, TypeVar
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_tracker.config import get_settings
from finance_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from finance_tracker.models.records import (
    Account,
    Expense,
    FinanceRecord,
    Income,
    Transfer,
)
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    FinanceRepositoryInterface,
    NotFoundError,
    StorageError,
)

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=FinanceRecord)


# Header rows for each worksheet
ACCOUNT_COLUMNS = ["id", "name", "type", "initialBalance", "currency"]

EXPENSE_COLUMNS = [
    "id",
    "date",
    "dueDate",
    "amount",
    "category",
    "description",
    "location",
    "paymentMethod",
    "accountId",
    "isInstallment",
    "installmentNumber",
    "totalInstallments",
    "installmentGroup",
    "isCreditCard",
    "paid",
]

INCOME_COLUMNS = [
    "id",
    "date",
    "amount",
    "source",
    "notes",
    "location",
    "account",
    "accountId",
]

TRANSFER_COLUMNS = [
    "id",
    "date",
    "amount",
    "fromAccount",
    "toAccount",
    "description",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

sheets_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_not_exception_type(NotFoundError),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @property
    def settings(self):
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet


def record_to_row(record: FinanceRecord, columns: list[str]) -> list:
    """Serialize a record into cells following the header order."""
    data = record.model_dump(mode="json", by_alias=True)
    row = []
    for column in columns:
        value = data.get(column)
        if value is None:
            row.append("")
        elif isinstance(value, bool):
            row.append("TRUE" if value else "FALSE")
        else:
            row.append(value)
    return row


class GoogleSheetsFinanceRepository(FinanceRepositoryInterface):
    """
    Google Sheets implementation of the finance repository.

    One worksheet per stream, one record per row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet_for(self, model: Type[FinanceRecord]) -> tuple[gspread.Worksheet, list[str]]:
        settings = self._client.settings
        layout = {
            Account: (settings.accounts_sheet_name, ACCOUNT_COLUMNS),
            Expense: (settings.expenses_sheet_name, EXPENSE_COLUMNS),
            Income: (settings.income_sheet_name, INCOME_COLUMNS),
            Transfer: (settings.transfers_sheet_name, TRANSFER_COLUMNS),
        }
        title, columns = layout[model]
        return self._client.get_worksheet(title, columns), columns

    def _read_records(self, model: Type[RecordT]) -> list[RecordT]:
        sheet, _ = self._sheet_for(model)
        # Raw cell text; a name like "2024" must stay a string
        values = sheet.get_all_values()
        if not values:
            return []
        header = [str(cell).strip() for cell in values[0]]

        records = []
        for index, cells in enumerate(values[1:], start=2):
            row = {key: cell for key, cell in zip(header, cells) if key}
            if not any(str(value).strip() for value in row.values()):
                continue
            try:
                records.append(model.model_validate(row))
            except ValidationError as e:
                # One unusable row must not hide the rest of the sheet
                logger.warning(
                    "sheet_row_skipped",
                    sheet=sheet.title,
                    row=index,
                    errors=e.error_count(),
                )
        return records

    def _find_row(self, sheet: gspread.Worksheet, record_id: str) -> Optional[int]:
        for index, value in enumerate(sheet.col_values(1), start=1):
            if index > 1 and value == record_id:
                return index
        return None

    def _upsert(self, record: FinanceRecord) -> bool:
        sheet, columns = self._sheet_for(type(record))
        row = record_to_row(record, columns)
        row_index = self._find_row(sheet, record.id)
        if row_index is None:
            sheet.append_row(row, value_input_option="RAW")
        else:
            sheet.update(range_name=f"A{row_index}", values=[row])
        return True

    @sheets_retry
    async def list_accounts(self) -> list[Account]:
        try:
            return self._read_records(Account)
        except Exception as e:
            raise StorageError(f"Failed to list accounts: {e}")

    @sheets_retry
    async def list_expenses(self) -> list[Expense]:
        try:
            return self._read_records(Expense)
        except Exception as e:
            raise StorageError(f"Failed to list expenses: {e}")

    @sheets_retry
    async def list_income(self) -> list[Income]:
        try:
            return self._read_records(Income)
        except Exception as e:
            raise StorageError(f"Failed to list income: {e}")

    @sheets_retry
    async def list_transfers(self) -> list[Transfer]:
        try:
            return self._read_records(Transfer)
        except Exception as e:
            raise StorageError(f"Failed to list transfers: {e}")

    @sheets_retry
    async def save_account(self, account: Account) -> bool:
        try:
            return self._upsert(account)
        except Exception as e:
            raise StorageError(f"Failed to save account: {e}")

    @sheets_retry
    async def save_expense(self, expense: Expense) -> bool:
        try:
            return self._upsert(expense)
        except Exception as e:
            raise StorageError(f"Failed to save expense: {e}")

    @sheets_retry
    async def save_expenses(self, expenses: list[Expense]) -> int:
        if not expenses:
            return 0
        try:
            sheet, columns = self._sheet_for(Expense)
            rows = [record_to_row(expense, columns) for expense in expenses]
            sheet.append_rows(rows, value_input_option="RAW")
            return len(rows)
        except Exception as e:
            raise StorageError(f"Failed to save expenses: {e}")

    @sheets_retry
    async def save_income(self, income: Income) -> bool:
        try:
            return self._upsert(income)
        except Exception as e:
            raise StorageError(f"Failed to save income: {e}")

    @sheets_retry
    async def save_transfer(self, transfer: Transfer) -> bool:
        try:
            return self._upsert(transfer)
        except Exception as e:
            raise StorageError(f"Failed to save transfer: {e}")

    def _delete_record(self, model: Type[FinanceRecord], record_id: str) -> bool:
        label = model.__name__.lower()
        try:
            sheet, _ = self._sheet_for(model)
            row_index = self._find_row(sheet, record_id)
        except Exception as e:
            raise StorageError(f"Failed to delete {label}: {e}")

        if row_index is None:
            raise NotFoundError(f"{model.__name__} not found: {record_id}")

        try:
            sheet.delete_rows(row_index)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete {label}: {e}")

    @sheets_retry
    async def delete_expense(self, expense_id: str) -> bool:
        return self._delete_record(Expense, expense_id)

    @sheets_retry
    async def delete_income(self, income_id: str) -> bool:
        return self._delete_record(Income, income_id)

    @sheets_retry
    async def delete_installment_group(self, installment_group: str) -> int:
        try:
            sheet, _ = self._sheet_for(Expense)
            values = sheet.get_all_values()
        except Exception as e:
            raise StorageError(f"Failed to delete installment group: {e}")

        header = values[0] if values else []
        if "installmentGroup" not in header:
            raise NotFoundError(f"Installment group not found: {installment_group}")
        column = header.index("installmentGroup")

        rows = [
            index
            for index, cells in enumerate(values[1:], start=2)
            if len(cells) > column and cells[column] == installment_group
        ]
        if not rows:
            raise NotFoundError(f"Installment group not found: {installment_group}")

        try:
            # Bottom-up so earlier indexes stay valid
            for row_index in reversed(rows):
                sheet.delete_rows(row_index)
        except Exception as e:
            raise StorageError(f"Failed to delete installment group: {e}")
        return len(rows)


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(
            self._client.settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,
        )

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    def _read_events(self) -> list[AuditEvent]:
        events = []
        for row in self._sheet().get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, ValidationError):
                continue
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._sheet().append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit persistence must not break the main flow
            logger.warning(
                "audit_sheet_write_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    @sheets_retry
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        try:
            events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events

    @sheets_retry
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            events = self._read_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
